import sys

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

import main  # noqa: E402
from spectral_ocean import cli  # noqa: E402
from spectral_ocean.cascade import OceanCascade  # noqa: E402
from spectral_ocean.init_helper import OceanCascadeParameters  # noqa: E402
from spectral_ocean.snapshot import save_snapshot  # noqa: E402


def test_headless_run_writes_snapshot(tmp_path, monkeypatch):
    path = tmp_path / "ocean.png"
    monkeypatch.setattr(
        sys,
        "argv",
        ["main.py", "-n", "16", "--seed", "1", "--headless", "--frames", "3",
         "--snapshot", str(path)],
    )
    cli.main()
    assert path.exists()
    assert path.stat().st_size > 0


def test_invalid_size_exits(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["main.py", "-n", "100", "--headless"])
    with pytest.raises(SystemExit):
        cli.main()


def test_snapshot_returns_heights(tmp_path):
    ocean = OceanCascade(OceanCascadeParameters(size=16), seed=2)
    ocean.init()
    ocean.dispatch(1.0, 0.016)
    heights = save_snapshot(ocean, tmp_path / "snap.png", resolution=8)
    assert heights.shape == (8, 8)
    assert np.isfinite(heights).all()


def test_root_launcher_runs_the_package_cli():
    assert main.main is cli.main
