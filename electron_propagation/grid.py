"""Transverse grid helpers: axis validation, spacing and frequency grids."""

import logging
import warnings

import numpy as np
import jax.numpy as jnp

from .exceptions import (
    ConfigurationError,
    CriticalSamplingWarning,
    NumericalPreconditionError,
)

__all__ = [
    "validate_axis",
    "axis_step",
    "get_frequencies",
    "critical_samples",
    "critical_size",
    "check_critical_sampling",
]

logger = logging.getLogger(__name__)

# relative tolerance on the spacing of a "uniform" axis
UNIFORM_RTOL = 1e-6


def validate_axis(axis, name="axis"):
    """
    Return `axis` as a 1D float array.

    Raises ConfigurationError unless the axis has at least two samples and
    is strictly monotonic with uniform spacing.
    """
    axis = np.array(axis, dtype=np.float64)
    if axis.ndim != 1:
        raise ConfigurationError(f"{name} must be one dimensional, got shape {axis.shape}")
    if axis.size < 2:
        raise ConfigurationError(f"{name} needs at least 2 samples, got {axis.size}")
    if not np.all(np.isfinite(axis)):
        raise ConfigurationError(f"{name} contains non-finite values")

    steps = np.diff(axis)
    if not (np.all(steps > 0) or np.all(steps < 0)):
        raise ConfigurationError(f"{name} must be strictly monotonic")
    if not np.allclose(steps, steps[0], rtol=UNIFORM_RTOL, atol=0.0):
        raise ConfigurationError(f"{name} must be uniformly spaced")

    return axis


def axis_step(axis):
    """Sample spacing taken from the first two samples."""
    return abs(float(axis[1]) - float(axis[0]))


def get_frequencies(n, m, ps):
    """
    Centred frequency grids, symmetric ranges of width 1/dx and 1/dy with
    n and m samples.
    """
    fx = jnp.linspace(-1 / (2 * ps[0]), 1 / (2 * ps[0]), n)
    fy = jnp.linspace(-1 / (2 * ps[1]), 1 / (2 * ps[1]), m)
    Fx, Fy = jnp.meshgrid(fx, fy, indexing='ij')
    return Fx, Fy


def critical_samples(step, wavelength, distance):
    """Smallest m with m * step^2 >= |distance| * wavelength."""
    ratio = abs(distance) * wavelength / step**2
    # round-off guard so an exactly critical grid is not bumped up by one
    return int(np.ceil(ratio - 1e-9 * max(ratio, 1.0)))


def critical_size(n, step, wavelength, distance):
    """Number of samples needed on an axis of n samples, at least n."""
    return max(n, critical_samples(step, wavelength, distance))


def check_critical_sampling(shape, spacing, wavelength, distance, policy="warn"):
    """
    Check the Nyquist condition for transfer function propagation.

    Returns True when both axes are critically sampled. Otherwise, depending
    on `policy`, warns, raises NumericalPreconditionError or returns False.
    """
    required = tuple(
        critical_size(n, step, wavelength, distance)
        for n, step in zip(shape, spacing)
    )
    if required == tuple(shape):
        return True

    message = (
        f"Grid {tuple(shape)} is undersampled for a propagation distance of "
        f"{distance:g} m at wavelength {wavelength:g} m, at least {required} "
        f"samples are needed. Zero-pad the wave first."
    )
    if policy == "raise":
        raise NumericalPreconditionError(message)
    if policy == "warn":
        logger.warning(message)
        warnings.warn(message, CriticalSamplingWarning, stacklevel=3)
    return False
