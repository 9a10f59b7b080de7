import numpy as np
import pytest

import electron_propagation.kernels as kernels
from electron_propagation import (
    Aperture,
    ConfigurationError,
    CriticalSamplingWarning,
    DirectPropagation,
    ElectronBeam,
    KnifeEdge,
    LaserBeam,
    Lens,
    NumericalPreconditionError,
    PhaseImprint,
    PropagationOptions,
    TransferFunctionPropagation,
    Wave,
)

QUIET = PropagationOptions(workers=2, rows_per_task=5, progress=False)


def _centered_axis(n, step=1.0):
    return (np.arange(n) - n // 2) * step


def _gaussian_wave(n=48, sigma=3.0, wavelength=1.0):
    x = _centered_axis(n)
    X, Y = np.meshgrid(x, x, indexing="ij")
    field = np.exp(-(X**2 + Y**2) / (2 * sigma**2))
    return Wave(field, x, x, wavelength)


def _plane_wave(n):
    x = _centered_axis(n)
    return Wave(np.ones((n, n)), x, x, wavelength=1.0)


# -----------------------------------------------------------------------------
# Aperture
# -----------------------------------------------------------------------------

def test_aperture_keeps_only_origin():
    axis = np.array([-2.0, -1.0, 0.0, 1.0, 2.0])
    wave = Wave(np.ones((5, 5)), axis, axis, wavelength=1.0)

    Aperture(1).apply(wave)

    expected = np.zeros((5, 5), dtype=bool)
    expected[2, 2] = True
    assert np.array_equal(wave.field != 0, expected)
    # only 1 of 25 equally bright pixels survives
    assert wave.norm == pytest.approx(1 / 25)
    assert wave.energy == pytest.approx(wave.norm)


def test_aperture_is_idempotent():
    wave = _gaussian_wave()
    aperture = Aperture(10.0)

    aperture.apply(wave)
    field, norm = wave.field.copy(), wave.norm
    assert norm < 1.0

    aperture.apply(wave)
    assert np.array_equal(wave.field, field)
    assert wave.norm == norm


def test_aperture_rejects_bad_diameter():
    with pytest.raises(ConfigurationError):
        Aperture(0)
    with pytest.raises(ConfigurationError):
        Aperture(-1.0)


def test_aperture_is_immutable():
    aperture = Aperture(1.0)
    with pytest.raises(AttributeError):
        aperture.diameter = 2.0


# -----------------------------------------------------------------------------
# Knife edge
# -----------------------------------------------------------------------------

@pytest.mark.parametrize(
    "n, offset, blocked",
    [(6, 0, 4), (6, -2, 2), (6, 1, 5), (5, 0, 4), (6, 10, 6), (6, -10, 0)],
)
def test_knife_edge_position(n, offset, blocked):
    assert KnifeEdge(offset).edge(n) == blocked


def test_knife_edge_blocks_columns_and_tracks_norm():
    wave = _plane_wave(6)
    KnifeEdge().apply(wave)

    assert np.all(wave.field[:, :4] == 0)
    assert np.all(wave.field[:, 4:] != 0)
    assert wave.norm == pytest.approx(2 / 6)
    assert wave.energy == pytest.approx(wave.norm)


def test_knife_edge_is_idempotent_and_never_increases_norm():
    wave = _gaussian_wave()
    edge = KnifeEdge(-3)

    edge.apply(wave)
    field, norm = wave.field.copy(), wave.norm
    assert 0 < norm <= 1.0

    edge.apply(wave)
    assert np.array_equal(wave.field, field)
    assert wave.norm == norm


def test_knife_edge_rejects_fractional_offset():
    with pytest.raises(ConfigurationError):
        KnifeEdge(0.5)


# -----------------------------------------------------------------------------
# Lens
# -----------------------------------------------------------------------------

def test_lens_zero_focal_length_is_noop():
    wave = _gaussian_wave()
    field = wave.field.copy()
    Lens(0).apply(wave)
    assert np.array_equal(wave.field, field)


def test_lens_applies_quadratic_phase():
    wave = _gaussian_wave(n=16)
    field = wave.field.copy()
    f = 20.0
    Lens(f).apply(wave)

    r2 = wave.x[:, None] ** 2 + wave.y[None, :] ** 2
    expected = field * np.exp(-1j * 2 * np.pi / (2 * f) * r2)
    assert np.allclose(wave.field, expected)
    assert wave.energy == pytest.approx(1.0)


# -----------------------------------------------------------------------------
# Transfer function propagation
# -----------------------------------------------------------------------------

def test_transfer_function_forward_and_back_restores_field():
    wave = _gaussian_wave(n=64)
    original = wave.field.copy()

    TransferFunctionPropagation(wave, 32.0).apply(wave)
    assert not np.allclose(wave.field, original)
    assert wave.energy == pytest.approx(1.0)

    TransferFunctionPropagation(wave, -32.0).apply(wave)
    assert np.allclose(wave.field, original, atol=1e-10)


def test_transfer_function_has_unit_modulus():
    wave = _gaussian_wave(n=32)
    tf = TransferFunctionPropagation(wave, 16.0)
    assert tf.shape == (32, 32)
    assert np.allclose(np.abs(np.asarray(tf.transfer_function)), 1.0)


def test_transfer_function_on_two_by_two_grid():
    beam = ElectronBeam([1.0, 2.0], [1.0, 2.0], 1.0)
    tf = TransferFunctionPropagation(beam, 1.0)
    H = np.asarray(tf.transfer_function)

    # frequencies are +-1/2 on both axes, so every entry is the same
    assert np.allclose(H, H[0, 0], rtol=0.0, atol=1e-20)
    assert H[0, 0].real == pytest.approx(1.0)
    assert H[0, 0].imag == pytest.approx(-1.926465401546721e-9, rel=1e-6)


def test_transfer_function_frequency_grid_is_centred():
    n, distance = 5, 2.0
    wave = _gaussian_wave(n=n, wavelength=1.0)
    H = np.fft.fftshift(np.asarray(TransferFunctionPropagation(wave, distance).transfer_function))

    f = np.linspace(-0.5, 0.5, n)
    F = f[:, None] ** 2 + f[None, :] ** 2
    assert np.allclose(H, np.exp(-1j * np.pi * distance * F))
    assert H[n // 2, n // 2] == pytest.approx(1.0)


def test_transfer_function_undersampled_grid_warns():
    wave = _gaussian_wave(n=32)
    with pytest.warns(CriticalSamplingWarning):
        TransferFunctionPropagation(wave, 100.0)


def test_transfer_function_undersampled_grid_can_raise():
    wave = _gaussian_wave(n=32)
    options = PropagationOptions(sampling_check="raise")
    with pytest.raises(NumericalPreconditionError):
        TransferFunctionPropagation(wave, 100.0, options=options)


def test_transfer_function_rejects_other_grid():
    tf = TransferFunctionPropagation(_gaussian_wave(n=32), 10.0)
    wave = _gaussian_wave(n=48)
    field = wave.field.copy()
    with pytest.raises(ConfigurationError):
        tf.apply(wave)
    assert np.array_equal(wave.field, field)


def test_transfer_function_rejects_other_wavelength():
    x = np.linspace(-8e-9, 7e-9, 16)
    fast = ElectronBeam(x, x, 100e3)
    slow = ElectronBeam(x, x, 1.0)
    tf = TransferFunctionPropagation(fast, 1e-9)
    field = slow.field.copy()

    with pytest.raises(ConfigurationError):
        tf.apply(slow)
    assert np.array_equal(slow.field, field)


def test_transfer_function_rejects_small_spacing_mismatch():
    x = np.linspace(-8e-9, 7e-9, 16)
    tf = TransferFunctionPropagation(ElectronBeam(x, x, 100e3), 1e-9)
    wider = ElectronBeam(2 * x, 2 * x, 100e3)

    with pytest.raises(ConfigurationError):
        tf.apply(wider)


# -----------------------------------------------------------------------------
# Direct propagation
# -----------------------------------------------------------------------------

def test_direct_matches_transfer_function():
    n = 49
    distance = 46.0
    wave_tf = _gaussian_wave(n=n)
    wave_direct = wave_tf.copy()

    # on an odd grid the frequency step 1 / ((n - 1) dx) equals the DFT
    # step at the distance scaled by (n / (n - 1))^2
    effective = distance * (n / (n - 1)) ** 2

    TransferFunctionPropagation(wave_tf, distance).apply(wave_tf)
    DirectPropagation(wave_direct.x, wave_direct.y, effective, options=QUIET).apply(wave_direct)

    # the transfer function leaves out the constant phase exp(i k d)
    expected = wave_tf.field * np.exp(1j * 2 * np.pi * effective)
    scale = np.abs(expected).max()
    assert np.abs(wave_direct.field - expected).max() < 1e-4 * scale


def test_direct_propagation_replaces_grid():
    x = np.linspace(-1e-6, 1e-6, 12)
    beam = ElectronBeam(x, x, 100.0)
    x_t = np.linspace(-2e-6, 2e-6, 7)
    y_t = np.linspace(-3e-6, 3e-6, 9)

    DirectPropagation(x_t, y_t, 1e-3, options=QUIET).apply(beam)

    assert beam.shape == (7, 9)
    assert beam.unpadded_shape == (7, 9)
    assert np.allclose(beam.x, x_t)
    assert np.allclose(beam.y, y_t)


def test_direct_propagation_rows_do_not_depend_on_partition():
    wave = _gaussian_wave(n=20)
    x_t = _centered_axis(13, 1.5)
    single = wave.copy()
    split = wave.copy()

    DirectPropagation(x_t, x_t, 30.0, options=PropagationOptions(
        workers=1, rows_per_task=100, progress=False)).apply(single)
    DirectPropagation(x_t, x_t, 30.0, options=PropagationOptions(
        workers=3, rows_per_task=2, progress=False)).apply(split)

    assert np.allclose(single.field, split.field)


def test_direct_propagation_worker_failure_aborts(monkeypatch):
    wave = _gaussian_wave(n=16)
    field = wave.field.copy()

    def broken(*args):
        raise RuntimeError("worker failed")

    monkeypatch.setattr(kernels, "fresnel_rows", broken)
    with pytest.raises(RuntimeError, match="worker failed"):
        DirectPropagation(wave.x, wave.y, 10.0, options=QUIET).apply(wave)

    assert np.array_equal(wave.field, field)
    assert wave.shape == (16, 16)


@pytest.mark.parametrize("distance", [0.0, -1.0, np.inf])
def test_direct_propagation_needs_positive_distance(distance):
    x = _centered_axis(8)
    with pytest.raises(ConfigurationError):
        DirectPropagation(x, x, distance)


def test_direct_propagation_target_axes_are_read_only():
    x = _centered_axis(8)
    component = DirectPropagation(x, x, 1.0)
    x[0] = 100.0
    assert component.x[0] == -4.0
    with pytest.raises(ValueError):
        component.x[0] = 1.0


# -----------------------------------------------------------------------------
# Phase imprint
# -----------------------------------------------------------------------------

def _laser(x, intensity=None):
    if intensity is None:
        intensity = np.ones((x.size, x.size))
    return LaserBeam(intensity, x, x, wavelength=800e-9, energy=1e-6, duration=1e-13)


def test_phase_imprint_prefactor():
    x = np.linspace(-1e-6, 1e-6, 9)
    beam = ElectronBeam(x, x, 200e3)
    laser_x = np.linspace(-2e-6, 2e-6, 11)
    laser = _laser(laser_x)
    imprint = PhaseImprint(laser)

    alpha = 1.602176634e-19**2 / (4 * np.pi * 8.8541878128e-12 * 1.054571817e-34 * 299792458.0)
    beta = beam.velocity / 299792458.0
    gamma = 1 / np.sqrt(1 - beta**2)
    electron_energy = gamma * 9.1093837015e-31 * 299792458.0**2
    integral = np.sum(laser.intensity) * (laser_x[1] - laser_x[0]) ** 2
    expected = (-alpha / (2 * np.pi * (1 + beta)) * 1e-6 / electron_energy
                * (800e-9) ** 2 / integral)

    assert imprint.prefactor(beam) == pytest.approx(expected, rel=1e-5)


def test_phase_imprint_uniform_laser():
    x = np.linspace(-1e-6, 1e-6, 9)
    beam = ElectronBeam(x, x, 200e3)
    field = beam.field.copy()
    laser = _laser(np.linspace(-2e-6, 2e-6, 11))
    imprint = PhaseImprint(laser)

    imprint.apply(beam)

    level = laser.intensity[0, 0]
    expected = field * np.exp(1j * imprint.prefactor(beam) * level)
    assert np.allclose(beam.field, expected)
    assert beam.energy == pytest.approx(1.0)
    assert beam.norm == 1.0


def test_phase_imprint_follows_resampled_ramp():
    x = np.linspace(-2e-6, 2e-6, 9)
    beam = ElectronBeam(x, x, 200e3)
    field = beam.field.copy()

    # coarser, offset laser grid with different x and y extents
    laser_x = np.linspace(-1.4e-6, 1.3e-6, 8)
    laser_y = np.linspace(-1.1e-6, 1.7e-6, 6)
    X, Y = np.meshgrid(laser_x, laser_y, indexing="ij")

    def ramp(u, v):
        return 1e6 * u + 3e6 * v + 5.0

    laser = LaserBeam(ramp(X, Y), laser_x, laser_y, wavelength=800e-9,
                      energy=1e-12, duration=1e-13)
    scale = laser.intensity[0, 0] / ramp(laser_x[0], laser_y[0])
    imprint = PhaseImprint(laser)

    imprint.apply(beam)

    EX, EY = np.meshgrid(x, x, indexing="ij")
    inside = ((EX >= laser_x[0]) & (EX <= laser_x[-1])
              & (EY >= laser_y[0]) & (EY <= laser_y[-1]))
    expected = np.where(inside, imprint.prefactor(beam) * scale * ramp(EX, EY), 0.0)

    phase = np.angle(beam.field / field)
    assert np.count_nonzero(inside) == 30
    assert np.allclose(phase, expected, rtol=1e-6, atol=1e-15)
    assert np.all(phase[~inside] == 0.0)
    assert np.abs(beam.field) == pytest.approx(np.abs(field))


def test_phase_imprint_outside_laser_grid_is_untouched():
    x = np.linspace(-4e-6, 4e-6, 9)
    beam = ElectronBeam(x, x, 200e3)
    field = beam.field.copy()
    laser = _laser(np.linspace(-1e-6, 1e-6, 5))

    PhaseImprint(laser).apply(beam)

    outside = (np.abs(x[:, None]) > 1e-6) | (np.abs(x[None, :]) > 1e-6)
    assert np.array_equal(beam.field[outside], field[outside])
    assert not np.allclose(beam.field[~outside], field[~outside])


def test_phase_imprint_argument_types():
    x = np.linspace(-1.0, 1.0, 4)
    with pytest.raises(ConfigurationError):
        PhaseImprint(Wave(np.ones((4, 4)), x, x, 1.0))

    imprint = PhaseImprint(_laser(x))
    with pytest.raises(ConfigurationError):
        imprint.apply(Wave(np.ones((4, 4)), x, x, 1.0))
