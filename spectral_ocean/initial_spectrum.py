import logging
from dataclasses import dataclass

import numpy as np

from spectral_ocean.fields import StageBinding
from spectral_ocean.noise import box_muller

logger = logging.getLogger(__name__)

NOISE_FIELD = "noise"
H0K_FIELD = "h0k"
H0_FIELD = "h0"
WAVES_DATA_FIELD = "waves_data"


def jonswap_alpha(g, fetch, wind_speed):
    return 0.076 * (g * fetch / wind_speed / wind_speed) ** -0.22


def jonswap_peak_frequency(g, fetch, wind_speed):
    return 22.0 * (wind_speed * fetch / g / g) ** -0.33


@dataclass(frozen=True)
class SpectrumParameters:
    """Spectrum constants derived once from an OceanSpectrumParameters."""

    scale: float
    angle: float
    spread_blend: float
    swell: float
    alpha: float
    peak_omega: float
    gamma: float
    short_waves_fade: float

    @classmethod
    def from_ocean_parameters(cls, params):
        g = params.gravity_acceleration
        return cls(
            scale=params.scale,
            angle=np.deg2rad(params.wind_direction),
            spread_blend=params.spread_blend,
            swell=float(np.clip(params.swell, 0.01, 1.0)),
            alpha=jonswap_alpha(g, params.fetch, params.wind_speed),
            peak_omega=jonswap_peak_frequency(g, params.fetch, params.wind_speed),
            gamma=params.peak_enhancement,
            short_waves_fade=params.short_waves_fade,
        )


def frequency(k, g, depth):
    """Dispersion relation omega(k) = sqrt(g k tanh(k depth))."""
    return np.sqrt(g * k * np.tanh(np.minimum(k * depth, 20.0)))


def frequency_derivative(k, g, depth):
    kd = np.minimum(k * depth, 20.0)
    th = np.tanh(kd)
    ch = np.cosh(kd)
    return g * (depth * k / ch / ch + th) / frequency(k, g, depth) / 2.0


def normalisation_factor(s):
    """Polynomial fit of the cosine-2s normalisation, split at s = 5."""
    s2 = s * s
    s3 = s2 * s
    s4 = s3 * s
    low = -0.000564 * s4 + 0.00776 * s3 - 0.044 * s2 + 0.192 * s + 0.163
    high = -4.80e-08 * s4 + 1.07e-05 * s3 - 9.53e-04 * s2 + 5.90e-02 * s + 3.93e-01
    return np.where(s < 5.0, low, high)


def cosine_2s(theta, s):
    return normalisation_factor(s) * np.abs(np.cos(0.5 * theta)) ** (2.0 * s)


def spread_power(omega, peak_omega):
    ratio = np.abs(omega / peak_omega)
    return np.where(omega > peak_omega, 9.77 * ratio**-2.5, 6.97 * ratio**5)


def direction_spectrum(theta, omega, spectrum):
    s = (
        spread_power(omega, spectrum.peak_omega)
        + 16.0
        * np.tanh(np.minimum(omega / spectrum.peak_omega, 20.0))
        * spectrum.swell
        * spectrum.swell
    )
    wide = 2.0 / np.pi * np.cos(theta) ** 2
    narrow = cosine_2s(theta - spectrum.angle, s)
    return wide + (narrow - wide) * spectrum.spread_blend


def tma_correction(omega, g, depth):
    """Kitaigorodskii depth attenuation of the deep-water spectrum."""
    omega_h = omega * np.sqrt(depth / g)
    return np.where(
        omega_h <= 1.0,
        0.5 * omega_h * omega_h,
        np.where(omega_h < 2.0, 1.0 - 0.5 * (2.0 - omega_h) ** 2, 1.0),
    )


def jonswap(omega, g, depth, spectrum):
    sigma = np.where(omega <= spectrum.peak_omega, 0.07, 0.09)
    r = np.exp(
        -((omega - spectrum.peak_omega) ** 2)
        / (2.0 * sigma**2 * spectrum.peak_omega**2)
    )
    with np.errstate(over="ignore", under="ignore"):
        # (peak / omega)**4 may overflow for very long waves, exp() then
        # yields the correct 0.
        peak_term = np.exp(-1.25 * (spectrum.peak_omega / omega) ** 4)
    return (
        spectrum.scale
        * tma_correction(omega, g, depth)
        * spectrum.alpha
        * g
        * g
        / omega**5
        * peak_term
        * np.abs(spectrum.gamma) ** r
    )


def short_waves_fade(k_length, spectrum):
    return np.exp(-(spectrum.short_waves_fade**2) * k_length * k_length)


def wave_vectors(size, length_scale):
    """Wave vector grids (kx, kz) with k = 2 pi (i - size/2) / L."""
    delta_k = 2.0 * np.pi / length_scale
    n = (np.arange(size) - size // 2) * delta_k
    kx = np.broadcast_to(n[np.newaxis, :], (size, size))
    kz = np.broadcast_to(n[:, np.newaxis], (size, size))
    return kx, kz


def calculate_initial_spectrum(noise, params):
    """
    Compute the raw amplitudes h0(k) and the per-cell wave data.

    Parameters:
        noise (np.ndarray): (size, size, 4) uniforms in [0, 1).
        params (OceanSpectrumParameters): Cascade configuration.

    Returns:
        h0k (np.ndarray): (size, size) complex amplitudes, zero outside the
            band [cut_off_low, cut_off_high) and at k = 0.
        waves_data (np.ndarray): (size, size, 4) with (kx, 1/|k|, kz, omega),
            (kx, 1, kz, 0) outside the band.
    """
    size = params.size
    g = params.gravity_acceleration
    depth = params.depth
    delta_k = 2.0 * np.pi / params.length_scale
    spectrum = SpectrumParameters.from_ocean_parameters(params)

    kx, kz = wave_vectors(size, params.length_scale)
    k_length = np.hypot(kx, kz)
    # Row and column 0 hold the Nyquist frequency, which has no mirror
    # partner on the grid; leaving them empty keeps every derived field
    # exactly conjugate symmetric.
    off_nyquist = np.arange(size) != 0
    in_band = (
        (k_length > 0.0)
        & (k_length >= params.cut_off_low)
        & (k_length < params.cut_off_high)
        & off_nyquist[np.newaxis, :]
        & off_nyquist[:, np.newaxis]
    )
    safe_k = np.where(in_band, k_length, 1.0)

    omega = frequency(safe_k, g, depth)
    d_omega_dk = frequency_derivative(safe_k, g, depth)
    theta = np.arctan2(kz, kx)

    density = (
        jonswap(omega, g, depth, spectrum)
        * direction_spectrum(theta, omega, spectrum)
        * short_waves_fade(safe_k, spectrum)
    )
    amplitude = np.sqrt(2.0 * density * np.abs(d_omega_dk) / safe_k * delta_k**2)
    gauss_re, gauss_im = box_muller(noise[..., 0], noise[..., 1])

    h0k = np.where(in_band, (gauss_re + 1j * gauss_im) * amplitude, 0.0)

    waves_data = np.empty((size, size, 4))
    waves_data[..., 0] = kx
    waves_data[..., 1] = np.where(in_band, 1.0 / safe_k, 1.0)
    waves_data[..., 2] = kz
    waves_data[..., 3] = np.where(in_band, omega, 0.0)
    return h0k, waves_data


def calculate_conjugated_spectrum(h0k):
    """
    Pair every amplitude with the conjugate of its mirror cell,
    h0[i, j] = (h0k[i, j], conj(h0k[(N - i) % N, (N - j) % N])).
    """
    size = h0k.shape[0]
    mirror = (size - np.arange(size)) % size
    h0_minus_k = h0k[np.ix_(mirror, mirror)]
    return np.stack([h0k, np.conj(h0_minus_k)], axis=-1)


class InitialSpectrumPipeline:

    def __init__(self, arena):
        self._initial_view = arena.bind(
            StageBinding(
                "initial spectrum",
                reads=(NOISE_FIELD,),
                writes=(H0K_FIELD, WAVES_DATA_FIELD),
            )
        )
        self._conjugate_view = arena.bind(
            StageBinding(
                "conjugated spectrum", reads=(H0K_FIELD,), writes=(H0_FIELD,)
            )
        )

    def dispatch(self, encoder, params):
        encoder.record(
            "Calculate initial spectrum", _initial_spectrum, self._initial_view, params
        )
        encoder.record(
            "Calculate conjugated spectrum", _conjugated_spectrum, self._conjugate_view
        )


def _initial_spectrum(view, params):
    h0k, waves_data = calculate_initial_spectrum(view.read(NOISE_FIELD), params)
    view.write(H0K_FIELD)[...] = h0k
    view.write(WAVES_DATA_FIELD)[...] = waves_data
    logger.debug(
        "initial spectrum: %d of %d cells in band, max |h0| %.3g",
        int(np.count_nonzero(h0k)),
        h0k.size,
        float(np.abs(h0k).max()),
    )


def _conjugated_spectrum(view):
    view.write(H0_FIELD)[...] = calculate_conjugated_spectrum(view.read(H0K_FIELD))
