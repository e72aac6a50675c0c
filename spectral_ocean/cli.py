import argparse
import logging

import numpy as np

from spectral_ocean.cascade import OceanCascade
from spectral_ocean.errors import OceanError
from spectral_ocean.init_helper import OceanInitConfig

logger = logging.getLogger("spectral_ocean")


def main():
    parser = argparse.ArgumentParser(
        description="Spectral (Tessendorf) ocean cascades"
    )
    parser.add_argument(
        "-n",
        "--size",
        type=int,
        default=256,
        help="Grid points per side, a power of two (default: 256)",
    )
    parser.add_argument(
        "-w",
        "--wind_speed",
        type=float,
        default=10.0,
        help="Wind speed in m/s (default: 10.0)",
    )
    parser.add_argument(
        "-a",
        "--wind_direction",
        type=float,
        default=-20.0,
        help="Wind direction in degrees (default: -20.0)",
    )
    parser.add_argument(
        "-s",
        "--swell",
        type=float,
        default=0.4,
        help="Swell amount in [0.01, 1] (default: 0.4)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the spectrum noise (default: random)",
    )
    parser.add_argument(
        "-t",
        "--time_scale",
        type=float,
        default=1.0,
        help="Time scaling factor for visualization (default: 1.0)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window and log per-frame statistics",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=60,
        help="Frames to simulate in headless mode (default: 60)",
    )
    parser.add_argument(
        "--snapshot",
        default=None,
        help="Write an image of the final height field (headless mode)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = OceanInitConfig(
        N=args.size,
        wind_speed=args.wind_speed,
        wind_direction=args.wind_direction,
        swell=args.swell,
        seed=args.seed,
    )

    try:
        ocean = OceanCascade(config.cascade_parameters(), seed=config.seed)
        ocean.init()
    except OceanError as exc:
        parser.error(str(exc))

    if args.headless:
        run_headless(ocean, args.frames, args.time_scale, args.snapshot)
        return

    from spectral_ocean.drawer import OceanDrawer

    drawer = OceanDrawer(ocean, 100.0, 8 * args.size, args.time_scale)
    drawer.run()


def run_headless(ocean, frames, time_scale, snapshot=None):
    dt = 0.016 * time_scale
    t = 0.0
    for frame in range(frames):
        t += dt
        ocean.dispatch(t, dt)
        heights = [surface.displacement[..., 1] for surface in ocean.surfaces]
        logger.info(
            "frame %d t=%.3f s height std per cascade: %s",
            frame,
            t,
            ", ".join(f"{np.std(h):.3f}" for h in heights),
        )

    if snapshot:
        from spectral_ocean.snapshot import save_snapshot

        save_snapshot(ocean, snapshot)
