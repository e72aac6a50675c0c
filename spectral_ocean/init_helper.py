import numbers
from dataclasses import dataclass, fields, replace

import numpy as np

from spectral_ocean.errors import ConfigurationError

MIN_SIZE = 8


def is_power_of_two(n):
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        return False
    n = int(n)
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class OceanSpectrumParameters:
    """
    Physical configuration of one wave cascade.

    Parameters:
        size (int): Grid points per side, a power of two.
        length_scale (float): Side of the simulated patch in meters.
        cut_off_low, cut_off_high (float): Wave number band [low, high)
            handled by this cascade.
        gravity_acceleration (float): g in m/s^2.
        depth (float): Water depth in meters.
        scale (float): Multiplier on the spectral energy.
        wind_speed (float): Wind speed in m/s (must be > 0).
        wind_direction (float): Wind direction in degrees.
        fetch (float): Fetch in meters.
        spread_blend (float): 0 gives a plain cos^2 spread, 1 the
            swell-narrowed cosine-2s spread.
        swell (float): Swell amount, clamped to [0.01, 1] when used.
        peak_enhancement (float): JONSWAP gamma.
        short_waves_fade (float): Damping length of the short waves.
    """

    size: int = 256
    length_scale: float = 150.0
    cut_off_low: float = 0.0001
    cut_off_high: float = 9999.0
    gravity_acceleration: float = 9.81
    depth: float = 500.0
    scale: float = 1.0
    wind_speed: float = 0.5
    wind_direction: float = 200.0
    fetch: float = 100000.0
    spread_blend: float = 1.0
    swell: float = 0.7
    peak_enhancement: float = 3.3
    short_waves_fade: float = 0.01

    def __post_init__(self):
        self.validate()
        # numpy integers are accepted but stored as plain ints.
        object.__setattr__(self, "size", int(self.size))

    def validate(self):
        if not is_power_of_two(self.size):
            raise ConfigurationError(
                f"size must be a power of two, got {self.size!r}"
            )
        for field in fields(self):
            if field.name == "size":
                continue
            value = getattr(self, field.name)
            if not isinstance(value, numbers.Real) or not np.isfinite(value):
                raise ConfigurationError(
                    f"{field.name} must be a finite number, got {value!r}"
                )
        if self.size < MIN_SIZE:
            raise ConfigurationError(
                f"size must be at least {MIN_SIZE} for 4 mip levels, "
                f"got {self.size}"
            )
        for name in (
            "length_scale",
            "gravity_acceleration",
            "depth",
            "wind_speed",
            "fetch",
        ):
            if not getattr(self, name) > 0:
                raise ConfigurationError(
                    f"{name} must be positive, got {getattr(self, name)!r}"
                )
        if not 0.0 <= self.spread_blend <= 1.0:
            raise ConfigurationError(
                f"spread_blend must lie in [0, 1], got {self.spread_blend!r}"
            )
        if self.scale < 0 or self.short_waves_fade < 0:
            raise ConfigurationError(
                "scale and short_waves_fade must not be negative"
            )
        if self.cut_off_low < 0:
            raise ConfigurationError("cut_off_low must not be negative")
        if not self.cut_off_low < self.cut_off_high:
            raise ConfigurationError(
                f"empty band: cut_off_low={self.cut_off_low} >= "
                f"cut_off_high={self.cut_off_high}"
            )

    def with_changes(self, **changes):
        return replace(self, **changes)


@dataclass(frozen=True)
class OceanCascadeParameters:
    size: int = 256
    wind_speed: float = 10.0
    wind_direction: float = -20.0
    swell: float = 0.4

    def __post_init__(self):
        # Reuse the single-surface rules for the shared fields.
        self.surface_parameters()

    def surface_parameters(self):
        return OceanSpectrumParameters(
            size=self.size,
            wind_speed=self.wind_speed,
            wind_direction=self.wind_direction,
            swell=self.swell,
        )


class OceanInitConfig:

    def __init__(self, N, wind_speed, wind_direction, swell, seed=None):
        self.N = N
        self.wind_speed = wind_speed
        self.wind_direction = wind_direction
        self.swell = swell
        self.seed = seed

    def cascade_parameters(self):
        return OceanCascadeParameters(
            size=self.N,
            wind_speed=self.wind_speed,
            wind_direction=self.wind_direction,
            swell=self.swell,
        )
