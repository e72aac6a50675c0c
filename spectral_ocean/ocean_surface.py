import logging
from enum import Enum

import numpy as np

from spectral_ocean.commands import CommandEncoder
from spectral_ocean.errors import SurfaceStateError
from spectral_ocean.fft import FFT
from spectral_ocean.fields import FieldArena, StageBinding
from spectral_ocean.init_helper import OceanSpectrumParameters
from spectral_ocean.initial_spectrum import (
    H0_FIELD,
    H0K_FIELD,
    NOISE_FIELD,
    WAVES_DATA_FIELD,
    InitialSpectrumPipeline,
)
from spectral_ocean.mipmaps import (
    MIP_LEVEL_COUNT,
    GenerateMipmapsPipeline,
    mip_field_name,
)
from spectral_ocean.noise import NoiseSource
from spectral_ocean.time_dependent_spectrum import (
    AMP_DX_DZ_FIELD,
    AMP_DYX_DYZ_FIELD,
    TimeDependentSpectrumPipeline,
)
from spectral_ocean.waves_data_merge import (
    DEFAULT_LAMBDA,
    DERIVATIVES_FIELD,
    DISPLACEMENT_FIELD,
    TURBULENCE_FIELD,
    WavesDataMergePipeline,
)

logger = logging.getLogger(__name__)

# Added to the simulation clock; the spectrum looks too regular near t = 0.
TIME_OFFSET = 10000.0


class SurfaceState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    PENDING_REGENERATION = "pending_regeneration"


def to_seconds(dt):
    """Accept plain seconds or a datetime.timedelta."""
    if hasattr(dt, "total_seconds"):
        return dt.total_seconds()
    return float(dt)



class SurfaceResources:
    """Field arena of one surface and the pipelines bound to it."""

    def __init__(self, name, params, noise_source, lambda_):
        size = params.size
        arena = FieldArena(name)
        arena.allocate(NOISE_FIELD, (size, size, 4))
        arena.allocate(H0K_FIELD, (size, size), dtype=np.complex128)
        arena.allocate(H0_FIELD, (size, size, 2), dtype=np.complex128)
        arena.allocate(WAVES_DATA_FIELD, (size, size, 4))
        arena.allocate(AMP_DX_DZ_FIELD, (size, size, 2), dtype=np.complex128)
        arena.allocate(AMP_DYX_DYZ_FIELD, (size, size, 2), dtype=np.complex128)
        arena.allocate(DISPLACEMENT_FIELD, (size, size, 3))
        arena.allocate(DERIVATIVES_FIELD, (size, size, 4))
        # A flat surface has jacobian 1 everywhere.
        arena.allocate(TURBULENCE_FIELD, (size, size), fill=1.0)

        self.size = size
        self.arena = arena
        self.reset_view = arena.bind(
            StageBinding("reset", writes=(NOISE_FIELD, TURBULENCE_FIELD))
        )
        self.reset_view.write(NOISE_FIELD)[...] = noise_source.uniform(size)

        self.initial_spectrum_pipeline = InitialSpectrumPipeline(arena)
        self.time_dependent_spectrum_pipeline = TimeDependentSpectrumPipeline(arena)
        self.fft = FFT(size, arena, (AMP_DX_DZ_FIELD, AMP_DYX_DYZ_FIELD))
        self.waves_data_merge_pipeline = WavesDataMergePipeline(arena, lambda_)
        self.generate_mipmaps_pipeline = GenerateMipmapsPipeline(arena)
        logger.info(
            "%s: built %dx%d surface, length scale %.1f m, band [%.4g, %.4g)",
            name,
            size,
            size,
            params.length_scale,
            params.cut_off_low,
            params.cut_off_high,
        )


class OceanSurface:

    def __init__(
        self,
        params=None,
        noise_source=None,
        lambda_=DEFAULT_LAMBDA,
        name="surface",
    ):
        """
        One spectral band of the ocean, with every field it needs.

        Parameters:
            params (OceanSpectrumParameters): Initial configuration.
            noise_source (NoiseSource): Where the spectrum noise comes from;
                an unseeded source is used when omitted.
            lambda_ (float): Horizontal displacement exaggeration.
            name (str): Label used in logs and errors.
        """
        self.name = name
        self.params = params if params is not None else OceanSpectrumParameters()
        self.lambda_ = lambda_
        self.noise_source = noise_source if noise_source is not None else NoiseSource()
        self.state = SurfaceState.UNINITIALIZED
        # Bumped by every configuration change; a regeneration recorded for
        # an older generation does not mark the surface ready.
        self._generation = 0
        self.resources = SurfaceResources(
            self.name, self.params, self.noise_source, self.lambda_
        )

    @property
    def arena(self):
        return self.resources.arena

    @property
    def size(self):
        return self.resources.size

    def _record(self, encoder, record):
        if encoder is not None:
            record(encoder)
            return
        encoder = CommandEncoder(self.name)
        record(encoder)
        encoder.submit()

    def init(self, encoder=None):
        """
        Generate the spectrum and the FFT tables. Safe to call again. The
        surface becomes READY once the recorded passes have run.
        """
        self._record(encoder, self._record_regeneration)

    def _record_regeneration(self, encoder):
        """
        Record the spectrum passes for the current parameters and return the
        resources the rest of the frame must use. A new size gets a new
        arena, installed by the first recorded pass.
        """
        params = self.params
        resources = self.resources
        if params.size != resources.size:
            resources = SurfaceResources(
                self.name, params, self.noise_source, self.lambda_
            )
            encoder.record("Install resized fields", self._install, resources)
        resources.initial_spectrum_pipeline.dispatch(encoder, params)
        resources.fft.precompute(encoder)
        encoder.record("Mark spectrum ready", self._mark_ready, self._generation)
        return resources

    def _install(self, resources):
        self.resources = resources

    def _mark_ready(self, generation):
        if generation == self._generation:
            self.state = SurfaceState.READY

    def dispatch(self, time, dt=0.0, encoder=None):
        """
        Run one frame: regenerate the spectrum if the parameters changed,
        then evolve, transform, merge and downsample.

        Parameters:
            time (float): Simulation clock in seconds.
            dt: Real time since the previous frame, seconds or timedelta.
            encoder (CommandEncoder): Record into this encoder instead of
                running immediately.
        """
        if self.state is SurfaceState.UNINITIALIZED:
            raise SurfaceStateError(f"{self.name}: dispatch() before init()")
        delta_time = to_seconds(dt)
        if delta_time < 0:
            raise ValueError(f"dt must not be negative, got {delta_time}")

        def record(encoder):
            resources = self.resources
            if self.state is SurfaceState.PENDING_REGENERATION:
                logger.info("%s: regenerating spectrum", self.name)
                resources = self._record_regeneration(encoder)
            resources.time_dependent_spectrum_pipeline.dispatch(
                encoder, time + TIME_OFFSET
            )
            resources.fft.dispatch(encoder)
            resources.waves_data_merge_pipeline.dispatch(encoder, delta_time)
            resources.generate_mipmaps_pipeline.dispatch(encoder)

        self._record(encoder, record)

    def change_parameters(self, params):
        """
        Replace the configuration. The spectrum is rebuilt by the next
        dispatch; a new size reallocates every field at that point.
        """
        if not isinstance(params, OceanSpectrumParameters):
            raise TypeError(
                f"expected OceanSpectrumParameters, got {type(params).__name__}"
            )
        self.params = params
        self._generation += 1
        if self.state is not SurfaceState.UNINITIALIZED:
            self.state = SurfaceState.PENDING_REGENERATION
        logger.info("%s: parameters changed, state %s", self.name, self.state.value)

    def reset(self):
        """Draw new noise and forget the turbulence history."""
        view = self.resources.reset_view
        view.write(NOISE_FIELD)[...] = self.noise_source.uniform(self.size)
        view.write(TURBULENCE_FIELD)[...] = 1.0
        self._generation += 1
        if self.state is not SurfaceState.UNINITIALIZED:
            self.state = SurfaceState.PENDING_REGENERATION

    def field(self, name):
        return self.arena.get(name)

    @property
    def displacement(self):
        return self.arena.get(DISPLACEMENT_FIELD)

    @property
    def derivatives(self):
        return self.arena.get(DERIVATIVES_FIELD)

    @property
    def displacement_levels(self):
        return [
            self.arena.get(mip_field_name(DISPLACEMENT_FIELD, level))
            for level in range(MIP_LEVEL_COUNT)
        ]

    @property
    def derivatives_levels(self):
        return [
            self.arena.get(mip_field_name(DERIVATIVES_FIELD, level))
            for level in range(MIP_LEVEL_COUNT)
        ]
