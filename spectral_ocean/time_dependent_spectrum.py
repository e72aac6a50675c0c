from dataclasses import dataclass

import numpy as np

from spectral_ocean.fields import StageBinding
from spectral_ocean.initial_spectrum import H0_FIELD, WAVES_DATA_FIELD

AMP_DX_DZ_FIELD = "amp_dx_dz"
AMP_DYX_DYZ_FIELD = "amp_dyx_dyz"


@dataclass(frozen=True)
class TimeParameters:
    time: float


def calculate_amplitudes(h0, waves_data, time):
    """
    Advance the spectrum to `time` and build the Fourier amplitudes of the
    displacement and its derivatives.

    Two real fields are packed into each complex value (a + i b), which
    survives the inverse transform because each of them is conjugate
    symmetric on its own.

    Returns:
        amp_dx_dz (np.ndarray): (size, size, 2) complex holding
            (Dx + i Dz, Dy + i Dxz).
        amp_dyx_dyz (np.ndarray): (size, size, 2) complex holding
            (Dyx + i Dyz, Dxx + i Dzz).
    """
    kx = waves_data[..., 0]
    inv_k = waves_data[..., 1]
    kz = waves_data[..., 2]
    omega = waves_data[..., 3]

    exponent = np.exp(1j * omega * time)
    h = h0[..., 0] * exponent + h0[..., 1] * np.conj(exponent)
    ih = 1j * h

    displacement_x = ih * kx * inv_k
    displacement_y = h
    displacement_z = ih * kz * inv_k
    displacement_x_dx = -h * kx * kx * inv_k
    displacement_y_dx = ih * kx
    displacement_z_dx = -h * kx * kz * inv_k
    displacement_y_dz = ih * kz
    displacement_z_dz = -h * kz * kz * inv_k

    amp_dx_dz = np.stack(
        [
            displacement_x + 1j * displacement_z,
            displacement_y + 1j * displacement_z_dx,
        ],
        axis=-1,
    )
    amp_dyx_dyz = np.stack(
        [
            displacement_y_dx + 1j * displacement_y_dz,
            displacement_x_dx + 1j * displacement_z_dz,
        ],
        axis=-1,
    )
    return amp_dx_dz, amp_dyx_dyz


class TimeDependentSpectrumPipeline:

    def __init__(self, arena):
        self._view = arena.bind(
            StageBinding(
                "time-dependent spectrum",
                reads=(H0_FIELD, WAVES_DATA_FIELD),
                writes=(AMP_DX_DZ_FIELD, AMP_DYX_DYZ_FIELD),
            )
        )

    def dispatch(self, encoder, time):
        encoder.record(
            "Calculate time-dependent spectrum",
            _calculate_amplitudes,
            self._view,
            TimeParameters(time=float(time)),
        )


def _calculate_amplitudes(view, params):
    amp_dx_dz, amp_dyx_dyz = calculate_amplitudes(
        view.read(H0_FIELD), view.read(WAVES_DATA_FIELD), params.time
    )
    view.write(AMP_DX_DZ_FIELD)[...] = amp_dx_dz
    view.write(AMP_DYX_DYZ_FIELD)[...] = amp_dyx_dyz
