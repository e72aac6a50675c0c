import logging
from dataclasses import replace

import numpy as np

from spectral_ocean.commands import CommandEncoder
from spectral_ocean.init_helper import OceanCascadeParameters
from spectral_ocean.merge_cascades import MergeCascadesPipeline
from spectral_ocean.noise import NoiseSource
from spectral_ocean.ocean_surface import OceanSurface
from spectral_ocean.sampling import sample_displacement
from spectral_ocean.waves_data_merge import DEFAULT_LAMBDA

logger = logging.getLogger(__name__)

LENGTH_SCALES = (500.0, 85.0, 10.0)
BAND_LOW = 0.0001
BAND_HIGH = 9999.0


def cascade_boundaries(length_scales=LENGTH_SCALES):
    """
    Wave numbers where one cascade hands over to the next: six wavelengths
    across the finer cascade's tile.
    """
    return tuple(2.0 * np.pi / length * 6.0 for length in length_scales[1:])


def cascade_spectrum_parameters(params, length_scales=LENGTH_SCALES):
    """
    Split one cascade configuration into per-surface parameters whose bands
    are contiguous and do not overlap.
    """
    base = params.surface_parameters()
    edges = (BAND_LOW,) + cascade_boundaries(length_scales) + (BAND_HIGH,)
    return [
        replace(
            base,
            length_scale=length,
            cut_off_low=edges[i],
            cut_off_high=edges[i + 1],
        )
        for i, length in enumerate(length_scales)
    ]


class OceanCascade:

    def __init__(self, params=None, seed=None, lambda_=DEFAULT_LAMBDA):
        """
        Three surfaces covering the long, medium and short waves.

        Parameters:
            params (OceanCascadeParameters): Shared wind and grid settings.
            seed (int): Seed for the noise of all three surfaces.
            lambda_ (float): Horizontal displacement exaggeration.
        """
        self.params = params if params is not None else OceanCascadeParameters()
        noise = NoiseSource(seed)
        self.surfaces = [
            OceanSurface(surface_params, noise.spawn(), lambda_, name=f"cascade_{i}")
            for i, surface_params in enumerate(
                cascade_spectrum_parameters(self.params)
            )
        ]
        self._merge_pipeline = None

    @property
    def cascade_0(self):
        return self.surfaces[0]

    @property
    def cascade_1(self):
        return self.surfaces[1]

    @property
    def cascade_2(self):
        return self.surfaces[2]

    def _record(self, encoder, method, *args):
        own = encoder is None
        if own:
            encoder = CommandEncoder("cascade")
        for surface in self.surfaces:
            getattr(surface, method)(*args, encoder=encoder)
        if own:
            encoder.submit()

    def init(self, encoder=None):
        self._record(encoder, "init")

    def dispatch(self, time, dt=0.0, encoder=None):
        self._record(encoder, "dispatch", time, dt)

    def change_parameters(self, params):
        self.params = params
        for surface, surface_params in zip(
            self.surfaces, cascade_spectrum_parameters(params)
        ):
            surface.change_parameters(surface_params)

    def merge_cascades(self, encoder=None):
        """
        Sum the three cascades into a single displacement/derivatives pair.
        Not part of `dispatch`; the renderer normally samples each cascade.
        """
        size = self.surfaces[0].size
        if self._merge_pipeline is None or self._merge_pipeline.size != size:
            self._merge_pipeline = MergeCascadesPipeline(size)
        own = encoder is None
        if own:
            encoder = CommandEncoder("merge cascades")
        self._merge_pipeline.dispatch(encoder, self.surfaces)
        if own:
            encoder.submit()
        return self._merge_pipeline.displacement, self._merge_pipeline.derivatives

    def total_displacement(self, x, z, level=0):
        return sum(
            sample_displacement(surface, x, z, level) for surface in self.surfaces
        )

    def get_real_water_height(self, x, z, n_iter=4, level=0):
        """
        Water height at fixed world positions (x, z).

        The surface is the parametric sheet (p + D(p), h(p)); the queried
        positions are corrected iteratively by the horizontal displacement
        summed over all cascades before the heights are summed.
        """
        x = np.asarray(x, dtype=float)
        z = np.asarray(z, dtype=float)
        x_guess = x.copy()
        z_guess = z.copy()
        for _ in range(n_iter):
            displacement = self.total_displacement(x_guess, z_guess, level)
            x_guess = x - displacement[..., 0]
            z_guess = z - displacement[..., 2]
        return self.total_displacement(x_guess, z_guess, level)[..., 1]
