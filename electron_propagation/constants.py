import numpy as np
from ase import units

__all__ = [
    "c",
    "hbar",
    "m_e",
    "e",
    "eps0",
    "electron_rest_energy",
    "fine_structure_constant",
    "relativistic_mass_correction",
    "energy2velocity",
    "energy2wavelength",
]


# =============================================================================
# 1. Physical Constants (SI)
# =============================================================================

c = units._c
hbar = units._hplanck / (2 * np.pi)
m_e = units._me
e = units._e
eps0 = units._eps0


# =============================================================================
# 2. Conversion Utilities
# =============================================================================

def electron_rest_energy():
    """
    Return the electron rest energy E0 = m_e c^2 in J.
    """
    return m_e * c**2


def fine_structure_constant():
    """alpha = e^2 / (4 pi eps0 hbar c)"""
    return e**2 / (4 * np.pi * eps0 * hbar * c)


def relativistic_mass_correction(energy):
    """Lorentz factor gamma of an electron accelerated through `energy` volts."""
    return 1 + e * energy / (m_e * c**2)


def energy2velocity(energy):
    """
    Calculate the velocity of an electron accelerated through `energy` volts.
    Returns: Velocity [m / s]
    """
    gamma = relativistic_mass_correction(energy)
    return c * np.sqrt(1 - 1 / gamma**2)


def energy2wavelength(energy):
    """
    Calculate relativistic de Broglie wavelength from energy.
    Returns: Relativistic de Broglie wavelength [m].
    """
    return (
        units._hplanck
        * c
        / np.sqrt(energy * (2 * m_e * c**2 / e + energy))
        / e
    )
