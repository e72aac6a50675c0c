import numpy as np


class NoiseSource:
    """
    Seedable source of the per-cell uniform noise used by the spectrum.

    Each call to `uniform` draws a fresh (size, size, 4) block of samples in
    [0, 1). A surface draws once when built and keeps the block for its
    lifetime, so the spectrum only changes with the parameters.
    """

    def __init__(self, seed=None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self, size):
        return self._rng.random((size, size, 4))

    def spawn(self):
        """
        Derive an independent child source, so that several surfaces built
        from one seed do not share noise.
        """
        child_seed = int(self._rng.integers(0, 2**63 - 1))
        return NoiseSource(child_seed)


def box_muller(u1, u2):
    """
    Turn two uniform samples in [0, 1) into two independent standard
    normal samples.
    """
    # 1 - u1 lies in (0, 1], keeping the log finite.
    radius = np.sqrt(-2.0 * np.log(1.0 - u1))
    angle = 2.0 * np.pi * u2
    return radius * np.cos(angle), radius * np.sin(angle)
