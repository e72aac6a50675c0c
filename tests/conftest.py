import pytest

from spectral_ocean.init_helper import OceanSpectrumParameters
from spectral_ocean.noise import NoiseSource
from spectral_ocean.ocean_surface import OceanSurface


@pytest.fixture
def small_params():
    return OceanSpectrumParameters(
        size=32,
        length_scale=50.0,
        wind_speed=10.0,
        wind_direction=-20.0,
        swell=0.4,
    )


@pytest.fixture
def surface(small_params):
    surface = OceanSurface(small_params, NoiseSource(7), name="test")
    surface.init()
    return surface
