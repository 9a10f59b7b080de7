"""Bilinear resampling of maps between transverse grids."""

import logging

import numpy as np
from scipy.interpolate import RegularGridInterpolator

from .exceptions import ConfigurationError
from .grid import validate_axis

__all__ = ["bilinear_resample"]

logger = logging.getLogger(__name__)


def bilinear_resample(values, x, y, x_new, y_new):
    """
    Resample `values[i, j]` given on (x[i], y[j]) onto the grid x_new by y_new.

    Each query point is interpolated linearly along x on the two rows that
    bound it, then linearly along y. Grid points are reproduced exactly;
    points outside the bounding box of (x, y) are set to zero.

    Returns:
    - (len(x_new), len(y_new)) array.
    """
    x = validate_axis(x, "x")
    y = validate_axis(y, "y")
    values = np.asarray(values)
    if values.shape != (x.size, y.size):
        raise ConfigurationError(
            f"Map shape {values.shape} does not match the axes ({x.size}, {y.size})"
        )

    # RegularGridInterpolator wants ascending axes
    if x[1] < x[0]:
        x, values = x[::-1], values[::-1, :]
    if y[1] < y[0]:
        y, values = y[::-1], values[:, ::-1]

    interpolator = RegularGridInterpolator(
        (x, y), values, method="linear", bounds_error=False, fill_value=0.0
    )
    X, Y = np.meshgrid(np.asarray(x_new, dtype=np.float64),
                       np.asarray(y_new, dtype=np.float64), indexing="ij")
    result = interpolator((X, Y))

    outside = (X < x[0]) | (X > x[-1]) | (Y < y[0]) | (Y > y[-1])
    if np.any(outside):
        logger.debug(
            "%d of %d samples fall outside the source grid and are set to zero",
            np.count_nonzero(outside), outside.size,
        )
    return result
