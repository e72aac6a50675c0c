import numpy as np
import pytest

from spectral_ocean.cascade import (
    BAND_HIGH,
    BAND_LOW,
    LENGTH_SCALES,
    OceanCascade,
    cascade_boundaries,
    cascade_spectrum_parameters,
)
from spectral_ocean.commands import CommandEncoder
from spectral_ocean.init_helper import OceanCascadeParameters
from spectral_ocean.merge_cascades import merge_cascades
from spectral_ocean.ocean_surface import SurfaceState
from spectral_ocean.sampling import sample_bilinear


@pytest.fixture
def cascade():
    cascade = OceanCascade(OceanCascadeParameters(size=32), seed=21)
    cascade.init()
    return cascade


def test_boundaries():
    low, high = cascade_boundaries()
    assert low == pytest.approx(2.0 * np.pi / 85.0 * 6.0)
    assert high == pytest.approx(2.0 * np.pi / 10.0 * 6.0)


def test_bands_partition_the_wave_numbers():
    params = cascade_spectrum_parameters(OceanCascadeParameters())
    assert [p.length_scale for p in params] == list(LENGTH_SCALES)
    assert params[0].cut_off_low == BAND_LOW
    assert params[-1].cut_off_high == BAND_HIGH
    for lower, upper in zip(params, params[1:]):
        assert lower.cut_off_high == upper.cut_off_low
    assert all(p.wind_speed == 10.0 and p.swell == 0.4 for p in params)


def test_surfaces_own_their_fields(cascade):
    first, second, third = cascade.surfaces
    assert first is cascade.cascade_0
    assert third is cascade.cascade_2
    assert not np.shares_memory(first.displacement, second.displacement)
    assert not np.shares_memory(second.field("h0"), third.field("h0"))
    assert not np.allclose(first.field("noise"), second.field("noise"))


def test_seed_reproduces_the_cascade():
    heights = []
    for _ in range(2):
        cascade = OceanCascade(OceanCascadeParameters(size=16), seed=3)
        cascade.init()
        cascade.dispatch(1.0, 0.016)
        heights.append(np.array(cascade.cascade_1.displacement))
    np.testing.assert_array_equal(heights[0], heights[1])


def test_default_cascade_is_finite():
    cascade = OceanCascade(seed=0)
    cascade.init()
    cascade.dispatch(0.016, 0.016)
    for surface in cascade.surfaces:
        assert surface.size == 256
        assert np.isfinite(surface.displacement).all()
        assert np.isfinite(surface.derivatives).all()


def test_one_encoder_records_every_surface(cascade):
    encoder = CommandEncoder()
    cascade.dispatch(2.0, 0.016, encoder=encoder)
    labels = encoder.labels()
    assert labels.count("Calculate time-dependent spectrum") == 3
    assert labels.count("Generate mipmaps") == 3
    assert "Merge cascades" not in labels
    encoder.submit()
    for surface in cascade.surfaces:
        assert np.abs(surface.displacement).max() > 0.0


def test_merge_cascades_function():
    displacements = [np.full((4, 4, 3), value) for value in (1.0, 2.0, 3.0)]
    derivatives = [
        np.full((4, 4, 4), value) for value in (0.5, -1.0, 2.0)
    ]
    displacement, merged = merge_cascades(displacements, derivatives)
    np.testing.assert_allclose(displacement, 6.0)
    np.testing.assert_allclose(merged[..., :2], 1.5)
    np.testing.assert_allclose(merged[..., 2:], -1.0)


def test_merge_cascades_is_explicit(cascade):
    cascade.dispatch(1.0, 0.016)
    assert cascade._merge_pipeline is None

    displacement, derivatives = cascade.merge_cascades()
    expected = sum(np.asarray(s.displacement) for s in cascade.surfaces)
    np.testing.assert_allclose(displacement, expected)
    np.testing.assert_allclose(
        derivatives[..., 2],
        np.min([s.derivatives[..., 2] for s in cascade.surfaces], axis=0),
    )


def test_change_parameters_marks_every_surface(cascade):
    cascade.change_parameters(OceanCascadeParameters(size=32, wind_speed=4.0))
    assert all(
        s.state is SurfaceState.PENDING_REGENERATION for s in cascade.surfaces
    )
    assert cascade.cascade_2.params.wind_speed == 4.0
    assert cascade.cascade_2.params.length_scale == LENGTH_SCALES[2]
    cascade.dispatch(0.0)
    assert all(s.state is SurfaceState.READY for s in cascade.surfaces)


def test_water_height_before_any_frame_is_zero(cascade):
    heights = cascade.get_real_water_height(np.linspace(0.0, 40.0, 7), np.zeros(7))
    np.testing.assert_array_equal(heights, 0.0)


def test_water_height_shapes(cascade):
    cascade.dispatch(3.0, 0.016)
    assert np.shape(cascade.get_real_water_height(1.0, 2.0)) == ()
    grid_x, grid_z = np.meshgrid(np.arange(5.0), np.arange(3.0))
    heights = cascade.get_real_water_height(grid_x, grid_z)
    assert heights.shape == (3, 5)
    assert np.isfinite(heights).all()


def test_water_height_without_horizontal_motion_is_total_height(cascade):
    cascade.dispatch(3.0, 0.016)
    x = np.array([0.0, 12.5, 70.0])
    z = np.array([3.0, 0.0, 41.0])
    expected = cascade.total_displacement(x, z)[..., 1]
    np.testing.assert_allclose(cascade.get_real_water_height(x, z, n_iter=0), expected)


def test_bilinear_sampling():
    field = np.arange(16, dtype=float).reshape(4, 4)
    assert sample_bilinear(field, 0.25, 0.5) == field[2, 1]
    # Halfway between two texels along x.
    assert sample_bilinear(field, 0.125, 0.0) == pytest.approx(0.5)
    # The tile repeats.
    assert sample_bilinear(field, 1.25, -0.5) == pytest.approx(field[2, 1])
    # Between the last and the first column.
    assert sample_bilinear(field, 0.875, 0.0) == pytest.approx(1.5)

    vectors = np.stack([field, 2 * field], axis=-1)
    np.testing.assert_allclose(sample_bilinear(vectors, 0.25, 0.5), [9.0, 18.0])
