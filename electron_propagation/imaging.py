"""Loading of laser intensity profiles from image files."""

import logging

import numpy as np
from PIL import Image

from .exceptions import ImageLoadError

__all__ = ["load_intensity"]

logger = logging.getLogger(__name__)


def load_intensity(path):
    """
    Load an image as a 2D intensity map normalised to [0, 1].

    The image is converted to grayscale, its minimum subtracted and the
    result divided by its maximum. A constant image gives all zeros.
    The returned array is indexed [row, column].
    """
    try:
        with Image.open(path) as img:
            # Convert to grayscale
            if img.mode != 'L':
                img = img.convert('L')
            intensity = np.array(img, dtype=np.float64)
    except OSError as exc:
        raise ImageLoadError(f"Could not load intensity image '{path}': {exc}") from exc

    intensity -= intensity.min()
    peak = intensity.max()
    if peak > 0:
        intensity /= peak
    else:
        logger.warning("Intensity image '%s' is constant", path)

    logger.info("Loaded intensity image '%s' with shape %s", path, intensity.shape)
    return intensity
