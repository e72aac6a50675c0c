import logging
from dataclasses import dataclass

import numpy as np

from spectral_ocean.commands import CommandEncoder
from spectral_ocean.errors import ConfigurationError
from spectral_ocean.fields import FieldArena, StageBinding
from spectral_ocean.init_helper import is_power_of_two

logger = logging.getLogger(__name__)

PRECOMPUTE_FIELD = "fft_precompute"


@dataclass(frozen=True)
class FFTParameters:
    ping_pong: int
    step: int
    size: int


def bit_reverse_indices(size):
    bits = size.bit_length() - 1
    n = np.arange(size)
    reversed_ = np.zeros_like(n)
    for b in range(bits):
        reversed_ |= ((n >> b) & 1) << (bits - 1 - b)
    return reversed_


def precompute_twiddle_factors_and_input_indices(size):
    """
    Build the (log2(size), size, 4) table read by the butterfly stages.

    Row `step` holds, for every output index n, the twiddle factor (real,
    imaginary) and the two input indices combined into n:

        out[n] = in[a] + w * in[b]

    Stage `step` pairs elements 2**step apart with
    w = +/- exp(2 pi i k / 2**(step + 1)). The stage 0 indices already point
    at the bit-reversed input positions, so the stages read natural-order
    data and produce natural-order output.
    """
    log_size = size.bit_length() - 1
    table = np.zeros((log_size, size, 4))
    n = np.arange(size)
    reversed_ = bit_reverse_indices(size)

    for step in range(log_size):
        half = 1 << step
        span = half << 1
        j = n % span
        top = j < half
        k = np.where(top, j, j - half)
        twiddle = np.exp(2j * np.pi * k / span)
        twiddle = np.where(top, twiddle, -twiddle)
        a = np.where(top, n, n - half)
        b = a + half
        if step == 0:
            a, b = reversed_[a], reversed_[b]
        table[step, :, 0] = twiddle.real
        table[step, :, 1] = twiddle.imag
        table[step, :, 2] = a
        table[step, :, 3] = b

    return table


class FFT:
    """
    2D inverse FFT over square power-of-two grids, run as a sequence of
    butterfly passes alternating between each input and a private buffer.

    All `inputs` (fields of shape (size, size, channels), complex) are
    transformed by the same pass sequence and the result lands back in them.
    With `centered` set, the inputs are spectra whose index i stands for
    frequency i - size/2 and the permute pass corrects for that offset.

    The transform is unnormalised; `scale` divides by size**2 when a true
    inverse of numpy's forward transform is wanted.
    """

    def __init__(self, size, arena, inputs, centered=True):
        if not is_power_of_two(size) or size < 2:
            raise ConfigurationError(f"FFT size must be a power of two, got {size}")
        self.size = size = int(size)
        self.log_size = size.bit_length() - 1
        self.centered = centered
        self.inputs = tuple(inputs)
        self.buffers = tuple(f"{name}_pong" for name in self.inputs)

        if PRECOMPUTE_FIELD not in arena:
            arena.allocate(PRECOMPUTE_FIELD, (self.log_size, size, 4))
        for name, buffer in zip(self.inputs, self.buffers):
            field = arena.get(name)
            arena.allocate(buffer, field.shape, dtype=field.dtype)

        self._precompute_view = arena.bind(
            StageBinding("fft precompute", writes=(PRECOMPUTE_FIELD,))
        )
        self._steps_view = arena.bind(
            StageBinding(
                "fft",
                reads=(PRECOMPUTE_FIELD,),
                read_writes=self.inputs + self.buffers,
            )
        )
        self._sign = 1.0 - 2.0 * (np.add.outer(np.arange(size), np.arange(size)) % 2)

    def precompute(self, encoder):
        encoder.record(
            "FFT precompute",
            _precompute,
            self._precompute_view,
            FFTParameters(ping_pong=0, step=0, size=self.size),
        )

    def dispatch(self, encoder):
        """
        Record log2(size) horizontal and log2(size) vertical stages, the
        swap that brings the result back into the inputs, and the permute
        pass.
        """
        ping_pong = 0
        pairs = tuple(zip(self.inputs, self.buffers))

        for step in range(self.log_size):
            ping_pong = 1 - ping_pong
            encoder.record(
                f"FFT horizontal step {step}",
                _butterfly,
                self._steps_view,
                pairs,
                1,
                FFTParameters(ping_pong=ping_pong, step=step, size=self.size),
            )

        for step in range(self.log_size):
            ping_pong = 1 - ping_pong
            encoder.record(
                f"FFT vertical step {step}",
                _butterfly,
                self._steps_view,
                pairs,
                0,
                FFTParameters(ping_pong=ping_pong, step=step, size=self.size),
            )

        if ping_pong == 1:
            encoder.record(
                "FFT swap",
                _swap,
                self._steps_view,
                pairs,
                FFTParameters(ping_pong=0, step=0, size=self.size),
            )

        encoder.record(
            "FFT permute",
            _permute,
            self._steps_view,
            self.inputs,
            self._sign if self.centered else None,
        )

    def scale(self, encoder):
        encoder.record(
            "FFT scale",
            _scale,
            self._steps_view,
            self.inputs,
            FFTParameters(ping_pong=0, step=0, size=self.size),
        )


def _precompute(view, params):
    table = view.write(PRECOMPUTE_FIELD)
    table[...] = precompute_twiddle_factors_and_input_indices(params.size)


def _butterfly(view, pairs, axis, params):
    row = view.read(PRECOMPUTE_FIELD)[params.step]
    twiddle = row[:, 0] + 1j * row[:, 1]
    a = row[:, 2].astype(np.intp)
    b = row[:, 3].astype(np.intp)

    for name, buffer in pairs:
        if params.ping_pong:
            source, target = view.read(name), view.write(buffer)
        else:
            source, target = view.read(buffer), view.write(name)
        shape = [1] * source.ndim
        shape[axis] = params.size
        w = twiddle.reshape(shape)
        target[...] = np.take(source, a, axis=axis) + w * np.take(
            source, b, axis=axis
        )


def _swap(view, pairs, params):
    for name, buffer in pairs:
        view.write(name)[...] = view.read(buffer)


def _permute(view, inputs, sign):
    if sign is None:
        return
    for name in inputs:
        field = view.write(name)
        field *= sign.reshape(sign.shape + (1,) * (field.ndim - 2))


def _scale(view, inputs, params):
    for name in inputs:
        view.write(name)[...] /= params.size * params.size


def inverse_fft2(data, centered=False, normalize=False):
    """
    Run the engine on a free-standing square array of shape (N, N) or
    (N, N, channels) and return the transformed copy.
    """
    data = np.asarray(data, dtype=np.complex128)
    squeeze = data.ndim == 2
    if squeeze:
        data = data[..., np.newaxis]
    if data.shape[0] != data.shape[1]:
        raise ConfigurationError(f"expected a square grid, got {data.shape[:2]}")

    arena = FieldArena("inverse_fft2")
    arena.allocate("input", data.shape, dtype=np.complex128)
    arena.bind(StageBinding("load", writes=("input",))).write("input")[...] = data

    fft = FFT(data.shape[0], arena, ("input",), centered=centered)
    encoder = CommandEncoder("inverse_fft2")
    fft.precompute(encoder)
    fft.dispatch(encoder)
    if normalize:
        fft.scale(encoder)
    encoder.submit()

    result = arena.get("input").copy()
    return result[..., 0] if squeeze else result
