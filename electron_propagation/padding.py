"""Zero padding of an electron beam to the critical sampling size."""

import logging

import numpy as np

from .exceptions import ConfigurationError, OversampledGridError
from .grid import critical_samples
from .waves import ElectronBeam

__all__ = ["zero_padding", "remove_zero_padding"]

logger = logging.getLogger(__name__)


def _extend_axis(axis, size):
    """Extend `axis` symmetrically to `size` samples with the same step."""
    shift = (size - axis.size) // 2
    step = axis[1] - axis[0]
    left = axis[0] - step * np.arange(shift, 0, -1)
    right = axis[-1] + step * np.arange(1, size - axis.size - shift + 1)
    # keep the original samples verbatim so cropping restores them exactly
    return np.concatenate([left, axis, right]), shift


def zero_padding(beam, distance):
    """
    Zero-pad `beam` in place for a Fourier propagation over `distance`.

    The padded size m satisfies m * dx^2 >= distance * wavelength on both
    axes. The field is centred in the padded array and the axes are
    extended with the same step.

    Raises:
        OversampledGridError: the grid already exceeds the critical size.
    """
    if not isinstance(beam, ElectronBeam):
        raise ConfigurationError("Zero padding needs an ElectronBeam")
    if not np.isfinite(distance) or distance == 0:
        raise ConfigurationError(f"Invalid propagation distance: {distance}")

    dx, dy = beam.spacing
    m_x = critical_samples(dx, beam.wavelength, distance)
    m_y = critical_samples(dy, beam.wavelength, distance)
    nx, ny = beam.shape
    if m_x < nx or m_y < ny:
        raise OversampledGridError(beam.shape, (m_x, m_y))

    x, shift_x = _extend_axis(beam.x, m_x)
    y, shift_y = _extend_axis(beam.y, m_y)

    field = np.zeros((m_x, m_y), dtype=beam.field.dtype)
    field[shift_x:shift_x + nx, shift_y:shift_y + ny] = beam.field

    logger.info("Zero padding %s -> %s", beam.shape, field.shape)
    beam.replace_grid(field, x, y, unpadded_shape=beam.unpadded_shape)


def remove_zero_padding(beam):
    """
    Crop `beam` back to the shape it had before zero_padding.

    Does nothing if the grid already has that shape.
    """
    if not isinstance(beam, ElectronBeam):
        raise ConfigurationError("Zero padding needs an ElectronBeam")
    nx, ny = beam.unpadded_shape
    if beam.shape == (nx, ny):
        return

    shift_x = (beam.shape[0] - nx) // 2
    shift_y = (beam.shape[1] - ny) // 2

    logger.info("Removing zero padding %s -> %s", beam.shape, (nx, ny))
    beam.replace_grid(
        beam.field[shift_x:shift_x + nx, shift_y:shift_y + ny],
        beam.x[shift_x:shift_x + nx],
        beam.y[shift_y:shift_y + ny],
    )
