import logging

import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger(__name__)


def save_snapshot(ocean, path, domain_length=100.0, resolution=128):
    """
    Write a top view and a profile of the cascade's water height to an
    image file.
    """
    axis = np.linspace(0, domain_length, resolution)
    x, z = np.meshgrid(axis, axis, indexing="ij")
    heights = ocean.get_real_water_height(x, z)

    fig, (ax_map, ax_profile) = plt.subplots(
        2, 1, figsize=(8, 9), gridspec_kw={"height_ratios": [3, 1]}
    )
    image = ax_map.imshow(
        heights.T,
        origin="lower",
        extent=(0, domain_length, 0, domain_length),
        cmap="Blues_r",
    )
    fig.colorbar(image, ax=ax_map, label="Water height (m)")
    ax_map.set_xlabel("x (m)")
    ax_map.set_ylabel("z (m)")

    ax_profile.plot(axis, heights[:, 0], lw=2, color="b")
    ax_profile.set_xlabel("x (m)")
    ax_profile.set_ylabel("Height at z = 0 (m)")

    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    logger.info("snapshot written to %s", path)
    return heights
