"""
Exception types raised while building and running a propagation setup.
"""

__all__ = [
    "ElectronPropagationError",
    "ConfigurationError",
    "OversampledGridError",
    "NumericalPreconditionError",
    "ImageLoadError",
    "CriticalSamplingWarning",
]


class ElectronPropagationError(Exception):
    """Base class for all errors raised by this package."""
    pass


class ConfigurationError(ElectronPropagationError, ValueError):
    """
    Invalid grid, wave or component parameters.

    Raised before the wave is touched, so a failed call leaves it unchanged.
    """
    pass


class OversampledGridError(ElectronPropagationError):
    """
    Zero-padding was requested for a grid that already has more samples
    than the critical sampling condition asks for.
    """

    def __init__(self, shape, required):
        self.shape = tuple(shape)
        self.required = tuple(required)
        super().__init__(
            f"The wavefunction is already oversampled: grid {self.shape} "
            f"exceeds the critical size {self.required}."
        )


class NumericalPreconditionError(ElectronPropagationError):
    """Critical sampling is violated for a Fourier propagation."""
    pass


class ImageLoadError(ElectronPropagationError, OSError):
    """An intensity image could not be read or decoded."""
    pass


class CriticalSamplingWarning(UserWarning):
    """Fourier propagation on an undersampled grid, aliasing is likely."""
    pass
