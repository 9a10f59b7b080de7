"""
Optical and electron-optical components.

Every component is configured once and can then be applied to any number of
waves. `apply` mutates the wave in place. Probability that a component
blocks is subtracted from `wave.norm`; no component rescales the field.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
import jax.numpy as jnp

from .config import DEFAULT_OPTIONS
from .constants import c, electron_rest_energy, fine_structure_constant
from .exceptions import ConfigurationError
from .grid import check_critical_sampling, validate_axis
from .interpolation import bilinear_resample
from .kernels import direct_propagation, fresnel_transfer_function, propagator
from .waves import ElectronBeam, LaserBeam, Wave

__all__ = [
    "Component",
    "Aperture",
    "Lens",
    "KnifeEdge",
    "TransferFunctionPropagation",
    "DirectPropagation",
    "PhaseImprint",
    "COMPONENTS",
]

logger = logging.getLogger(__name__)


def _read_only(array):
    array = np.array(array, dtype=np.float64)
    array.flags.writeable = False
    return array


class Component(ABC):
    """A single operation of a setup."""

    @abstractmethod
    def apply(self, wave):
        """Apply the component to `wave` in place."""


@dataclass(frozen=True)
class Aperture(Component):
    """Circular stop of the given diameter [m], centred on the origin."""
    diameter: float

    def __post_init__(self):
        if not np.isfinite(self.diameter) or self.diameter <= 0:
            raise ConfigurationError(
                f"Aperture diameter must be positive, got {self.diameter}"
            )

    def apply(self, wave):
        r2 = wave.x[:, None] ** 2 + wave.y[None, :] ** 2
        blocked = r2 > (self.diameter / 2) ** 2

        lost = wave.energy_of(blocked)
        wave.norm = max(wave.norm - lost, 0.0)
        wave.field[blocked] = 0


@dataclass(frozen=True)
class Lens(Component):
    """Thin lens with focal length f [m]. f = 0 leaves the wave unchanged."""
    focal_length: float

    def __post_init__(self):
        if not np.isfinite(self.focal_length):
            raise ConfigurationError(
                f"Invalid focal length: {self.focal_length}"
            )

    def apply(self, wave):
        if self.focal_length == 0:
            return
        r2 = wave.x[:, None] ** 2 + wave.y[None, :] ** 2
        wave.field *= np.exp(-1j * wave.k / (2 * self.focal_length) * r2)


@dataclass(frozen=True)
class KnifeEdge(Component):
    """
    Knife edge blocking the columns up to the centre of the y axis.

    The edge sits at column round(N / 2 + 1) and is moved by `offset`
    pixels, negative values move it towards the start of the axis.
    """
    offset: int = 0

    def __post_init__(self):
        if int(self.offset) != self.offset:
            raise ConfigurationError(
                f"Knife edge offset must be an integer, got {self.offset}"
            )

    def edge(self, n):
        """Number of blocked columns on an axis of n samples."""
        return int(min(max(round(n / 2 + 1) + int(self.offset), 0), n))

    def apply(self, wave):
        stop = self.edge(wave.shape[1])
        blocked = np.zeros(wave.shape, dtype=bool)
        blocked[:, :stop] = True

        lost = wave.energy_of(blocked)
        wave.norm = max(wave.norm - lost, 0.0)
        wave.field[:, :stop] = 0


class TransferFunctionPropagation(Component):
    """
    Free space propagation over `distance` [m] with the Fresnel transfer
    function, precomputed for the grid and wavelength of `wave`.

    The grid must be critically sampled (see zero_padding), otherwise the
    result is aliased. What happens on an undersampled grid is set by
    `options.sampling_check`.
    """

    def __init__(self, wave, distance, options=None):
        options = options or DEFAULT_OPTIONS
        if not isinstance(wave, Wave):
            raise ConfigurationError(f"Expected a Wave, got {type(wave).__name__}")
        if not np.isfinite(distance):
            raise ConfigurationError(f"Invalid propagation distance: {distance}")

        self._distance = float(distance)
        self._shape = wave.shape
        self._spacing = wave.spacing
        self._wavelength = wave.wavelength

        check_critical_sampling(
            self._shape, self._spacing, self._wavelength, self._distance,
            policy=options.sampling_check,
        )
        self._transfer_function = fresnel_transfer_function(
            *self._shape, self._spacing, self._distance, self._wavelength
        )

    @property
    def distance(self):
        return self._distance

    @property
    def shape(self):
        return self._shape

    @property
    def transfer_function(self):
        return self._transfer_function

    def apply(self, wave):
        if wave.shape != self._shape or not np.allclose(
                wave.spacing, self._spacing, rtol=1e-9, atol=0.0):
            raise ConfigurationError(
                f"Transfer function was built for a {self._shape} grid with "
                f"spacing {self._spacing}, got {wave.shape} with {wave.spacing}"
            )
        if not np.isclose(wave.wavelength, self._wavelength, rtol=1e-9, atol=0.0):
            raise ConfigurationError(
                "Transfer function was built for another wavelength"
            )
        wave.field = np.array(propagator(jnp.asarray(wave.field), self._transfer_function))

    def __repr__(self):
        return f"TransferFunctionPropagation(distance={self._distance:g}, shape={self._shape})"


class DirectPropagation(Component):
    """
    Free space propagation over `distance` [m] by direct evaluation of the
    Fresnel integral onto the target axes `x`, `y`.

    The wave takes the target grid. Source and target grids do not need to
    match; incommensurate grids show periodic ringing in the result.
    """

    def __init__(self, x, y, distance, options=None):
        if not np.isfinite(distance) or distance <= 0:
            raise ConfigurationError(
                f"Direct propagation distance must be positive, got {distance}"
            )
        self._x = _read_only(validate_axis(x, "x"))
        self._y = _read_only(validate_axis(y, "y"))
        self._distance = float(distance)
        self._options = options or DEFAULT_OPTIONS

    @property
    def distance(self):
        return self._distance

    @property
    def x(self):
        return self._x

    @property
    def y(self):
        return self._y

    def apply(self, wave):
        field = direct_propagation(
            wave.field, wave.x, wave.y, self._x, self._y,
            self._distance, wave.wavelength, options=self._options,
        )
        wave.replace_grid(field, self._x, self._y)

    def __repr__(self):
        return (
            f"DirectPropagation(distance={self._distance:g}, "
            f"shape={(self._x.size, self._y.size)})"
        )


class PhaseImprint(Component):
    """
    Phase imprinted on an electron beam by a laser pulse.

    The laser intensity is resampled bilinearly onto the electron grid
    (zero outside the laser grid) and every point picks up the phase
    prefactor * I(x, y).
    """

    def __init__(self, laser):
        if not isinstance(laser, LaserBeam):
            raise ConfigurationError(
                f"PhaseImprint needs a LaserBeam, got {type(laser).__name__}"
            )
        self._laser = laser

    @property
    def laser(self):
        return self._laser

    def prefactor(self, beam):
        """
        -alpha / (2 pi (1 + beta)) * E_pulse / E_e * lambda_laser^2 / integral(I)
        """
        beta = beam.velocity / c
        gamma = 1 / np.sqrt(1 - beta**2)
        electron_energy = gamma * electron_rest_energy()
        laser = self._laser

        return (
            -fine_structure_constant() / (2 * np.pi * (1 + beta))
            * laser.pulse_energy / electron_energy
            * laser.wavelength**2 / laser.energy
        )

    def apply(self, wave):
        if not isinstance(wave, ElectronBeam):
            raise ConfigurationError(
                f"PhaseImprint acts on an ElectronBeam, got {type(wave).__name__}"
            )
        laser = self._laser
        intensity = bilinear_resample(laser.intensity, laser.x, laser.y, wave.x, wave.y)
        wave.field *= np.exp(1j * self.prefactor(wave) * intensity)

    def __repr__(self):
        return f"PhaseImprint({self._laser!r})"


COMPONENTS = (
    Aperture,
    Lens,
    KnifeEdge,
    TransferFunctionPropagation,
    DirectPropagation,
    PhaseImprint,
)
