import numpy as np

from spectral_ocean.fields import StageBinding
from spectral_ocean.waves_data_merge import DERIVATIVES_FIELD, DISPLACEMENT_FIELD

MIP_LEVEL_COUNT = 4


def mip_field_name(base, level):
    return base if level == 0 else f"{base}_mip{level}"


def mip_shape(shape, level):
    return (shape[0] >> level, shape[1] >> level) + tuple(shape[2:])


def downsample(field):
    """Average each 2x2 block of a (h, w, ...) field."""
    h, w = field.shape[:2]
    blocks = field.reshape((h // 2, 2, w // 2, 2) + field.shape[2:])
    return blocks.mean(axis=(1, 3))


class GenerateMipmapsPipeline:

    def __init__(self, arena, fields=(DISPLACEMENT_FIELD, DERIVATIVES_FIELD)):
        self.fields = tuple(fields)
        for name in self.fields:
            base = arena.get(name)
            for level in range(1, MIP_LEVEL_COUNT):
                arena.allocate(mip_field_name(name, level), mip_shape(base.shape, level))
        self._view = arena.bind(
            StageBinding(
                "generate mipmaps",
                reads=self.fields,
                writes=tuple(
                    mip_field_name(name, level)
                    for name in self.fields
                    for level in range(1, MIP_LEVEL_COUNT)
                ),
            )
        )

    def dispatch(self, encoder):
        encoder.record("Generate mipmaps", _generate, self._view, self.fields)


def _generate(view, fields):
    for name in fields:
        previous = view.read(name)
        for level in range(1, MIP_LEVEL_COUNT):
            target = view.write(mip_field_name(name, level))
            target[...] = downsample(np.asarray(previous))
            previous = target
