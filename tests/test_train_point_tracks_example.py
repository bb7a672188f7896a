from __future__ import annotations

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def test_point_track_example_runs_quickly() -> None:
    cmd = [
        sys.executable,
        str(ROOT / "examples" / "train_point_tracks.py"),
        "--config",
        str(ROOT / "examples" / "point_tracks.yaml"),
        "--set",
        "solver.max_iterations=50",
        "--seed",
        "123",
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    assert proc.returncode == 0, proc.stderr
    assert "structrack point-track training completed" in proc.stdout
    assert "accuracy=" in proc.stdout
