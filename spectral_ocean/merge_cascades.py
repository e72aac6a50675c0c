import numpy as np

from spectral_ocean.fields import FieldArena, StageBinding

MERGED_DISPLACEMENT_FIELD = "merged_displacement"
MERGED_DERIVATIVES_FIELD = "merged_derivatives"


def merge_cascades(displacements, derivatives):
    """
    Combine the base levels of several cascades texel by texel.

    Displacements and slopes add up; for the jacobian and turbulence
    channels the most compressed cascade wins.
    """
    displacement = np.sum(displacements, axis=0)
    stacked = np.asarray(derivatives)
    merged = np.empty(stacked.shape[1:])
    merged[..., :2] = stacked[..., :2].sum(axis=0)
    merged[..., 2:] = stacked[..., 2:].min(axis=0)
    return displacement, merged


class MergeCascadesPipeline:
    """
    Optional final step summing the cascades into one pair of textures.

    It is never part of a cascade's per-frame dispatch; callers that want a
    single texture invoke it explicitly after the frame was submitted or
    recorded.
    """

    def __init__(self, size):
        self.size = size
        self.arena = FieldArena("merged cascades")
        self.arena.allocate(MERGED_DISPLACEMENT_FIELD, (size, size, 3))
        self.arena.allocate(MERGED_DERIVATIVES_FIELD, (size, size, 4))
        self._view = self.arena.bind(
            StageBinding(
                "merge cascades",
                writes=(MERGED_DISPLACEMENT_FIELD, MERGED_DERIVATIVES_FIELD),
            )
        )

    def dispatch(self, encoder, surfaces):
        encoder.record("Merge cascades", _merge, self._view, tuple(surfaces))

    @property
    def displacement(self):
        return self.arena.get(MERGED_DISPLACEMENT_FIELD)

    @property
    def derivatives(self):
        return self.arena.get(MERGED_DERIVATIVES_FIELD)


def _merge(view, surfaces):
    # Surfaces are read through their public read-only views at run time.
    displacement, derivatives = merge_cascades(
        [surface.displacement for surface in surfaces],
        [surface.derivatives for surface in surfaces],
    )
    view.write(MERGED_DISPLACEMENT_FIELD)[...] = displacement
    view.write(MERGED_DERIVATIVES_FIELD)[...] = derivatives
