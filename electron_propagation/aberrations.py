"""Zernike polynomial patterns used as synthetic laser profiles."""

from math import factorial

import numpy as np

from .exceptions import ConfigurationError
from .grid import validate_axis

__all__ = ["zernike_polynomial", "zernike_amplitude"]


def zernike_polynomial(n: int, m: int, rho: np.ndarray, phi: np.ndarray) -> np.ndarray:
    """Evaluate the orthonormal Zernike polynomial Z_n^m.

    Args:
        n: Radial order.
        m: Azimuthal frequency, |m| <= n and n - |m| even.
        rho: Radial coordinates (0 to 1 within the pupil).
        phi: Azimuthal angles (radians).

    Returns:
        Z_n^m evaluated at each point, not masked to the unit disk.
    """
    if n < 0 or abs(m) > n or (n - abs(m)) % 2:
        raise ConfigurationError(f"Invalid Zernike indices n={n}, m={m}")

    norm = np.sqrt(2.0 * (n + 1) / (1.0 + float(m == 0)))
    r_nm = _radial_polynomial(abs(m), n, rho)
    if m >= 0:
        return norm * r_nm * np.cos(m * phi)
    return -norm * r_nm * np.sin(abs(m) * phi)


def _radial_polynomial(m: int, n: int, rho: np.ndarray) -> np.ndarray:
    """Compute radial Zernike polynomial R_n^m(rho)."""
    result = np.zeros_like(rho, dtype=np.float64)
    num_terms = (n - m) // 2

    for k in range(num_terms + 1):
        sign = (-1.0) ** k
        numerator = factorial(n - k)
        denominator = (
            factorial(k)
            * factorial((n + m) // 2 - k)
            * factorial((n - m) // 2 - k)
        )
        result += sign * numerator / denominator * np.power(rho, n - 2 * k)

    return result


def zernike_amplitude(x, diameter, n=4, m=0):
    """Zernike amplitude pattern on the square grid x by x.

    The polynomial (spherical aberration by default) is evaluated over a
    disk of the given diameter centred on the origin, shifted so that its
    minimum over the disk is zero, and set to zero outside the disk.

    Args:
        x: Axis used for both grid directions [m].
        diameter: Diameter of the pattern [m].
        n, m: Zernike indices.

    Returns:
        (len(x), len(x)) non-negative array.
    """
    x = validate_axis(x, "x")
    diameter = float(diameter)
    if not diameter > 0:
        raise ConfigurationError(f"Diameter must be positive, got {diameter}")

    radius = diameter / 2
    X, Y = np.meshgrid(x, x, indexing="ij")
    rho = np.sqrt(X**2 + Y**2) / radius
    phi = np.arctan2(Y, X)
    inside = rho <= 1.0
    if not np.any(inside):
        raise ConfigurationError(
            f"Diameter {diameter:g} m does not cover any grid point"
        )

    pattern = zernike_polynomial(n, m, rho, phi)
    pattern -= pattern[inside].min()
    return np.where(inside, pattern, 0.0)
