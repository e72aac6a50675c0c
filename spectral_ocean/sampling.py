import numpy as np


def sample_bilinear(field, u, v):
    """
    Bilinear lookup in a periodic (h, w) or (h, w, channels) field.

    u and v are texture coordinates (1.0 spans the whole tile along x and z)
    and may have any shape; the result has that shape plus the channels.
    """
    h, w = field.shape[:2]
    x = np.asarray(u, dtype=float) * w
    y = np.asarray(v, dtype=float) * h

    x0 = np.floor(x)
    y0 = np.floor(y)
    fx = x - x0
    fy = y - y0
    x0 = x0.astype(np.intp) % w
    y0 = y0.astype(np.intp) % h
    x1 = (x0 + 1) % w
    y1 = (y0 + 1) % h

    if field.ndim == 3:
        fx = fx[..., np.newaxis]
        fy = fy[..., np.newaxis]

    return (
        field[y0, x0] * (1 - fx) * (1 - fy)
        + field[y0, x1] * fx * (1 - fy)
        + field[y1, x0] * (1 - fx) * fy
        + field[y1, x1] * fx * fy
    )


def sample_displacement(surface, x, z, level=0):
    """
    Displacement of `surface` at world positions (x, z) in meters, from the
    given mip level. The tile repeats every `length_scale` meters.
    """
    length = surface.params.length_scale
    field = surface.displacement_levels[level]
    return sample_bilinear(field, np.asarray(x) / length, np.asarray(z) / length)
