"""
Wave state types.

A wave owns a complex field sampled on a transverse grid, indexed
``field[i, j]`` with ``x[i]`` and ``y[j]``. The field is normalised so that
``sum(|field|^2) * dx * dy == norm``; ``norm`` starts at 1 and is lowered by
components that block part of the wave.
"""

import copy
import logging

import numpy as np

from .aberrations import zernike_amplitude
from .constants import c, energy2velocity, energy2wavelength
from .exceptions import ConfigurationError
from .grid import axis_step, validate_axis
from .imaging import load_intensity

__all__ = ["Wave", "ElectronBeam", "LaserBeam"]

logger = logging.getLogger(__name__)


def _positive(value, name):
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive number, got {value}")
    return value


class Wave:
    """
    Complex field on a uniform transverse grid.

    Parameters:
    - field: (len(x), len(y)) complex array, copied.
    - x, y: strictly monotonic, uniformly spaced axes [m].
    - wavelength: wavelength of the wave [m].
    - norm: fraction of the probability / energy still present, in [0, 1].
    """

    def __init__(self, field, x, y, wavelength, norm=1.0):
        x = validate_axis(x, "x")
        y = validate_axis(y, "y")
        field = self._check_field(field, x, y)

        norm = float(norm)
        if not 0.0 <= norm <= 1.0:
            raise ConfigurationError(f"norm must lie in [0, 1], got {norm}")

        self.wavelength = _positive(wavelength, "wavelength")
        self.field = field
        self.x = x
        self.y = y
        self.norm = norm

        if self.energy == 0:
            raise ConfigurationError("Cannot normalize a field without energy")
        self.normalize()

    @staticmethod
    def _check_field(field, x, y):
        field = np.array(field, dtype=np.complex128)
        if field.shape != (x.size, y.size):
            raise ConfigurationError(
                f"Field shape {field.shape} does not match the axes "
                f"({x.size}, {y.size})"
            )
        if not np.all(np.isfinite(field)):
            raise ConfigurationError("Field contains non-finite values")
        return field

    @property
    def shape(self):
        return self.field.shape

    @property
    def spacing(self):
        return axis_step(self.x), axis_step(self.y)

    @property
    def k(self):
        """Wavenumber 2 pi / lambda [1 / m]."""
        return 2 * np.pi / self.wavelength

    @property
    def intensity(self):
        return np.abs(self.field) ** 2

    @property
    def energy(self):
        """sum(|field|^2) dx dy"""
        dx, dy = self.spacing
        return float(np.sum(self.intensity) * dx * dy)

    def energy_of(self, mask):
        """Energy carried by the points selected by the boolean `mask`."""
        dx, dy = self.spacing
        return float(np.sum(np.abs(self.field[mask]) ** 2) * dx * dy)

    def normalize(self):
        """Rescale the field so that its energy equals `norm`."""
        energy = self.energy
        if energy == 0:
            logger.warning("Wave has no energy left, skipping normalization")
            return
        self.field *= np.sqrt(self.norm / energy)

    def replace_grid(self, field, x, y):
        """Swap in a new field sampled on new axes."""
        x = validate_axis(x, "x")
        y = validate_axis(y, "y")
        self.field = self._check_field(field, x, y)
        self.x = x
        self.y = y

    def copy(self):
        """Independent copy, for running several setups on the same input."""
        return copy.deepcopy(self)

    def __repr__(self):
        return (
            f"{type(self).__name__}(shape={self.shape}, "
            f"wavelength={self.wavelength:.4e}, norm={self.norm:.6f})"
        )


class ElectronBeam(Wave):
    """
    Electron wave accelerated through `voltage` volts.

    The default field is a plane wave. The shape of the grid before any
    zero padding is kept in `unpadded_shape`.
    """

    def __init__(self, x, y, voltage, field=None):
        self.voltage = _positive(voltage, "voltage")
        x = validate_axis(x, "x")
        y = validate_axis(y, "y")
        if field is None:
            field = np.ones((x.size, y.size), dtype=np.complex128)

        super().__init__(field, x, y, energy2wavelength(self.voltage))

        self.velocity = float(energy2velocity(self.voltage))
        self.unpadded_shape = self.shape

    @property
    def beta(self):
        return self.velocity / c

    def replace_grid(self, field, x, y, unpadded_shape=None):
        super().replace_grid(field, x, y)
        if unpadded_shape is None:
            unpadded_shape = self.shape
        self.unpadded_shape = tuple(int(n) for n in unpadded_shape)


class LaserBeam(Wave):
    """
    Laser pulse with a transverse intensity profile.

    The field is the square root of `intensity`, normalised like any wave.

    Parameters:
    - intensity: (len(x), len(y)) non-negative real array.
    - x, y: transverse axes [m].
    - wavelength: laser wavelength [m].
    - energy: energy per pulse [J].
    - duration: pulse length [s].
    - z: optional longitudinal axis [m], needed for the temporal envelope.
    """

    def __init__(self, intensity, x, y, wavelength, energy, duration, z=None):
        intensity = np.asarray(intensity)
        if np.iscomplexobj(intensity):
            raise ConfigurationError("Laser intensity must be real")
        intensity = intensity.astype(np.float64)
        if np.any(intensity < 0):
            raise ConfigurationError("Laser intensity must be non-negative")

        super().__init__(np.sqrt(intensity), x, y, wavelength)

        self.pulse_energy = _positive(energy, "pulse energy")
        self.duration = _positive(duration, "pulse duration")
        self.z = None if z is None else validate_axis(z, "z")

    @classmethod
    def from_zernike(cls, x, wavelength, diameter, energy, duration, z=None):
        """Laser with a spherical aberration profile on the square grid x by x."""
        intensity = zernike_amplitude(x, diameter)
        return cls(intensity, x, x, wavelength, energy, duration, z=z)

    @classmethod
    def from_image(cls, path, x, y, wavelength, energy, duration, z=None):
        """Laser whose profile is read from a grayscale image."""
        intensity = load_intensity(path)
        return cls(intensity, x, y, wavelength, energy, duration, z=z)

    @property
    def omega(self):
        """Angular frequency [rad / s]."""
        return 2 * np.pi * c / self.wavelength

    def envelope(self):
        """Gaussian temporal envelope exp(-z^2 / (c dt)^2) sampled on z."""
        if self.z is None:
            raise ConfigurationError("LaserBeam has no z axis")
        return np.exp(-self.z**2 / (c * self.duration) ** 2)

    def peak_intensity(self):
        """
        Peak intensity I0 [W / m^2] such that I0 * intensity * envelope
        carries the pulse energy.
        """
        envelope = self.envelope()
        dz = axis_step(self.z)
        return self.pulse_energy * c / (self.energy * np.sum(envelope) * dz)
