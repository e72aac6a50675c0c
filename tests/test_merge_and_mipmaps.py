import numpy as np
import pytest

from spectral_ocean.mipmaps import downsample, mip_field_name, mip_shape
from spectral_ocean.waves_data_merge import (
    TURBULENCE_RECOVERY_RATE,
    blur_turbulence,
    merge_waves_data,
)


def packed_fields(dx=0.0, dz=0.0, dy=0.0, dxz=0.0, dyx=0.0, dyz=0.0, dxx=0.0, dzz=0.0):
    amp_dx_dz = np.zeros((4, 4, 2), dtype=complex)
    amp_dyx_dyz = np.zeros((4, 4, 2), dtype=complex)
    amp_dx_dz[..., 0] = dx + 1j * dz
    amp_dx_dz[..., 1] = dy + 1j * dxz
    amp_dyx_dyz[..., 0] = dyx + 1j * dyz
    amp_dyx_dyz[..., 1] = dxx + 1j * dzz
    return amp_dx_dz, amp_dyx_dyz


def test_merge_scales_horizontal_displacement():
    amp_dx_dz, amp_dyx_dyz = packed_fields(dx=1.0, dz=2.0, dy=3.0, dyx=0.5, dyz=0.25)
    displacement, derivatives, turbulence = merge_waves_data(
        amp_dx_dz, amp_dyx_dyz, np.ones((4, 4)), 1.2, 0.0
    )
    np.testing.assert_allclose(displacement[0, 0], [1.2, 3.0, 2.4])
    np.testing.assert_allclose(derivatives[0, 0], [0.5, 0.25, 1.0, 1.0])
    np.testing.assert_allclose(turbulence, 1.0)


def test_jacobian():
    amp_dx_dz, amp_dyx_dyz = packed_fields(dxz=0.5, dxx=-0.5, dzz=0.25)
    _, derivatives, _ = merge_waves_data(amp_dx_dz, amp_dyx_dyz, np.ones((4, 4)), 1.0, 0.0)
    assert derivatives[0, 0, 2] == pytest.approx(0.5 * 1.25 - 0.25)


def test_turbulence_follows_compression_immediately_and_recovers_slowly():
    compressed = packed_fields(dxx=-0.5)
    flat = packed_fields()
    lambda_ = 1.2

    _, _, turbulence = merge_waves_data(*compressed, np.ones((4, 4)), lambda_, 0.0)
    np.testing.assert_allclose(turbulence, 0.4)

    _, _, held = merge_waves_data(*flat, turbulence, lambda_, 0.0)
    np.testing.assert_allclose(held, 0.4)

    _, _, recovering = merge_waves_data(*flat, turbulence, lambda_, 1.0)
    expected = 0.4 + 0.6 * (1.0 - np.exp(-TURBULENCE_RECOVERY_RATE))
    np.testing.assert_allclose(recovering, expected)

    _, _, recovered = merge_waves_data(*flat, turbulence, lambda_, 100.0)
    np.testing.assert_allclose(recovered, 1.0, atol=1e-6)


def test_blur_keeps_constant_field():
    np.testing.assert_allclose(blur_turbulence(np.full((8, 8), 0.7)), 0.7)


def test_blur_spreads_a_spike_with_wrap_around():
    field = np.zeros((8, 8))
    field[0, 0] = 9.0
    blurred = blur_turbulence(field)
    assert blurred.sum() == pytest.approx(9.0)
    assert blurred[0, 0] == pytest.approx(1.0)
    assert blurred[7, 7] == pytest.approx(1.0)
    assert blurred[2, 2] == 0.0


def test_downsample_averages_blocks():
    field = np.arange(16, dtype=float).reshape(4, 4)
    np.testing.assert_allclose(downsample(field), [[2.5, 4.5], [10.5, 12.5]])

    vectors = np.stack([field, -field, 2 * field], axis=-1)
    assert downsample(vectors).shape == (2, 2, 3)
    np.testing.assert_allclose(downsample(vectors)[..., 1], -downsample(field))


def test_mip_naming_and_shapes():
    assert mip_field_name("displacement", 0) == "displacement"
    assert mip_field_name("displacement", 2) == "displacement_mip2"
    assert mip_shape((64, 64, 3), 3) == (8, 8, 3)


def test_surface_mip_chain(surface):
    surface.dispatch(1.0, 0.016)
    levels = surface.displacement_levels
    assert [level.shape for level in levels] == [
        (32, 32, 3),
        (16, 16, 3),
        (8, 8, 3),
        (4, 4, 3),
    ]
    for finer, coarser in zip(levels, levels[1:]):
        np.testing.assert_allclose(coarser, downsample(np.asarray(finer)))

    derivative_levels = surface.derivatives_levels
    assert derivative_levels[3].shape == (4, 4, 4)
    np.testing.assert_allclose(
        derivative_levels[3].mean(axis=(0, 1)),
        surface.derivatives.mean(axis=(0, 1)),
        atol=1e-12,
    )
