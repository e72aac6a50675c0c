import numpy as np

from spectral_ocean.fft import inverse_fft2
from spectral_ocean.time_dependent_spectrum import calculate_amplitudes


def spectrum_of(surface):
    return np.array(surface.field("h0")), np.array(surface.field("waves_data"))


def test_evaluation_is_pure(surface):
    h0, waves_data = spectrum_of(surface)
    h0.flags.writeable = False
    waves_data.flags.writeable = False
    first = calculate_amplitudes(h0, waves_data, 12.5)
    second = calculate_amplitudes(h0, waves_data, 12.5)
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a, b)


def test_amplitudes_change_with_time(surface):
    h0, waves_data = spectrum_of(surface)
    early, _ = calculate_amplitudes(h0, waves_data, 0.0)
    late, _ = calculate_amplitudes(h0, waves_data, 1.0)
    assert not np.allclose(early, late)


def test_cells_without_frequency_stay_empty(surface):
    h0, waves_data = spectrum_of(surface)
    amp_dx_dz, amp_dyx_dyz = calculate_amplitudes(h0, waves_data, 3.0)
    empty = waves_data[..., 3] == 0
    assert (amp_dx_dz[empty] == 0).all()
    assert (amp_dyx_dyz[empty] == 0).all()


def test_single_wave_oscillates_with_its_frequency():
    size = 8
    h0 = np.zeros((size, size, 2), dtype=complex)
    waves_data = np.zeros((size, size, 4))
    waves_data[..., 1] = 1.0
    h0[5, 6, 0] = 1.0
    waves_data[5, 6] = (2.0, 0.5, 0.0, 2.0)

    quarter_period = np.pi / 4.0
    amp_dx_dz, _ = calculate_amplitudes(h0, waves_data, quarter_period)
    # Dy = h = exp(i omega t) = i; Dx = i h kx / |k| = -1.
    assert np.isclose(amp_dx_dz[5, 6, 1].real, 0.0)
    assert np.isclose(amp_dx_dz[5, 6, 0], -1.0)

    full_period, _ = calculate_amplitudes(h0, waves_data, np.pi)
    start, _ = calculate_amplitudes(h0, waves_data, 0.0)
    np.testing.assert_allclose(full_period, start, atol=1e-12)


def test_packed_fields_separate_after_transform(surface):
    h0, waves_data = spectrum_of(surface)
    kx, inv_k, kz = waves_data[..., 0], waves_data[..., 1], waves_data[..., 2]
    time = 10003.7
    amp_dx_dz, amp_dyx_dyz = calculate_amplitudes(h0, waves_data, time)

    exponent = np.exp(1j * waves_data[..., 3] * time)
    h = h0[..., 0] * exponent + h0[..., 1] * np.conj(exponent)
    height = inverse_fft2(h, centered=True)
    displacement_x = inverse_fft2(1j * h * kx * inv_k, centered=True)
    displacement_z = inverse_fft2(1j * h * kz * inv_k, centered=True)

    # Each field is real on its own.
    np.testing.assert_allclose(height.imag, 0.0, atol=1e-9)

    packed = inverse_fft2(amp_dx_dz, centered=True)
    np.testing.assert_allclose(packed[..., 0].real, displacement_x.real, atol=1e-9)
    np.testing.assert_allclose(packed[..., 0].imag, displacement_z.real, atol=1e-9)
    np.testing.assert_allclose(packed[..., 1].real, height.real, atol=1e-9)

    slopes = inverse_fft2(amp_dyx_dyz, centered=True)
    slope_x = inverse_fft2(1j * h * kx, centered=True)
    np.testing.assert_allclose(slopes[..., 0].real, slope_x.real, atol=1e-9)
