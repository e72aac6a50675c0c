from dataclasses import dataclass

import numpy as np

from spectral_ocean.fields import StageBinding
from spectral_ocean.time_dependent_spectrum import AMP_DX_DZ_FIELD, AMP_DYX_DYZ_FIELD

DISPLACEMENT_FIELD = "displacement"
DERIVATIVES_FIELD = "derivatives"
TURBULENCE_FIELD = "turbulence"

DEFAULT_LAMBDA = 1.2
# Rate (1/s) at which the turbulence recovers toward the current jacobian.
TURBULENCE_RECOVERY_RATE = 0.5


@dataclass(frozen=True)
class MergeParameters:
    lambda_: float
    delta_time: float


def merge_waves_data(amp_dx_dz, amp_dyx_dyz, turbulence, lambda_, delta_time):
    """
    Unpack the spatial fields coming out of the FFT.

    Parameters:
        amp_dx_dz, amp_dyx_dyz (np.ndarray): (size, size, 2) complex FFT
            outputs, packed as produced by `calculate_amplitudes`.
        turbulence (np.ndarray): Previous frame's turbulence, (size, size).
        lambda_ (float): Horizontal displacement exaggeration.
        delta_time (float): Real time since the previous frame, in seconds.

    Returns:
        displacement (np.ndarray): (size, size, 3) as (x, y, z).
        derivatives (np.ndarray): (size, size, 4) as (slope_x, slope_z,
            jacobian, turbulence).
        turbulence (np.ndarray): The new turbulence state.

    Compression shows up immediately (the turbulence never exceeds the
    jacobian), relaxation is exponential in `delta_time`.
    """
    dx = amp_dx_dz[..., 0].real
    dz = amp_dx_dz[..., 0].imag
    dy = amp_dx_dz[..., 1].real
    dxz = amp_dx_dz[..., 1].imag
    dyx = amp_dyx_dyz[..., 0].real
    dyz = amp_dyx_dyz[..., 0].imag
    dxx = amp_dyx_dyz[..., 1].real
    dzz = amp_dyx_dyz[..., 1].imag

    displacement = np.stack([lambda_ * dx, dy, lambda_ * dz], axis=-1)

    jacobian = (1.0 + lambda_ * dxx) * (1.0 + lambda_ * dzz) - lambda_**2 * dxz * dxz
    blend = 1.0 - np.exp(-TURBULENCE_RECOVERY_RATE * delta_time)
    smoothed = turbulence + (jacobian - turbulence) * blend
    new_turbulence = np.minimum(jacobian, smoothed)

    derivatives = np.stack([dyx, dyz, jacobian, new_turbulence], axis=-1)
    return displacement, derivatives, new_turbulence


def blur_turbulence(turbulence):
    """3x3 box filter with wrap-around, the tile being periodic."""
    total = np.zeros_like(turbulence)
    for dz in (-1, 0, 1):
        for dx in (-1, 0, 1):
            total += np.roll(turbulence, (dz, dx), axis=(0, 1))
    return total / 9.0


class WavesDataMergePipeline:

    def __init__(self, arena, lambda_=DEFAULT_LAMBDA):
        self.lambda_ = lambda_
        self._merge_view = arena.bind(
            StageBinding(
                "waves data merge",
                reads=(AMP_DX_DZ_FIELD, AMP_DYX_DYZ_FIELD),
                writes=(DISPLACEMENT_FIELD, DERIVATIVES_FIELD),
                read_writes=(TURBULENCE_FIELD,),
            )
        )
        self._blur_view = arena.bind(
            StageBinding(
                "blur turbulence",
                reads=(TURBULENCE_FIELD,),
                writes=(DERIVATIVES_FIELD,),
            )
        )

    def dispatch(self, encoder, delta_time):
        encoder.record(
            "Waves data merge",
            _merge,
            self._merge_view,
            MergeParameters(lambda_=self.lambda_, delta_time=float(delta_time)),
        )
        encoder.record("Blur turbulence", _blur, self._blur_view)


def _merge(view, params):
    turbulence = view.write(TURBULENCE_FIELD)
    displacement, derivatives, new_turbulence = merge_waves_data(
        view.read(AMP_DX_DZ_FIELD),
        view.read(AMP_DYX_DYZ_FIELD),
        turbulence,
        params.lambda_,
        params.delta_time,
    )
    turbulence[...] = new_turbulence
    view.write(DISPLACEMENT_FIELD)[...] = displacement
    view.write(DERIVATIVES_FIELD)[...] = derivatives


def _blur(view):
    view.write(DERIVATIVES_FIELD)[..., 3] = blur_turbulence(view.read(TURBULENCE_FIELD))
