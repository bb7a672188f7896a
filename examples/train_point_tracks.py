from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np

# Support direct execution via: python examples/train_point_tracks.py
if __package__ is None or __package__ == "":
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from structrack.config import load_yaml_config
from structrack.tracking import NOT_MATCHED
from structrack.train import StructuralTrackAssociationTrainer, describe_trainer


class PointTrack:
    """Constant-velocity 2-D point track."""

    def __init__(self) -> None:
        self.position: np.ndarray | None = None
        self.velocity = np.zeros(2, dtype=np.float64)

    def update_track(self, detection: np.ndarray) -> None:
        if self.position is not None:
            self.velocity = detection - self.position
        self.position = detection

    def propagate_track(self) -> None:
        if self.position is not None:
            self.position = self.position + self.velocity

    def get_similarity_features(self, detection: np.ndarray) -> np.ndarray:
        predicted = np.zeros(2) if self.position is None else self.position + self.velocity
        delta = np.abs(detection - predicted)
        return np.array([-delta[0], -delta[1], 1.0], dtype=np.float64)


def synthetic_history(
    rng: np.random.RandomState, num_objects: int, num_steps: int
) -> list[list[tuple[np.ndarray, int]]]:
    """Objects on a coarse grid moving at small constant velocities, entering at random steps."""
    cells = rng.choice(100, size=num_objects, replace=False)
    starts = np.stack([cells % 10, cells // 10], axis=1).astype(np.float64) * 25.0
    velocities = rng.uniform(-2.0, 2.0, size=(num_objects, 2))
    entry = rng.randint(0, max(num_steps // 2, 1), size=num_objects)

    history: list[list[tuple[np.ndarray, int]]] = []
    for step in range(num_steps):
        detections = [
            (starts[obj] + velocities[obj] * (step - entry[obj]), obj)
            for obj in rng.permutation(num_objects)
            if step >= entry[obj]
        ]
        history.append(detections)
    return history


def association_accuracy(function: Any, history: list[list[tuple[np.ndarray, int]]]) -> float:
    tracks: list[PointTrack] = []
    identities: dict[int, int] = {}
    correct = 0
    total = 0
    for step in history:
        first_new = len(tracks)
        assigned = function.update_tracks(tracks, [det for det, _ in step], PointTrack)
        for (_, label), track_idx in zip(step, assigned):
            expected = identities.get(label, NOT_MATCHED)
            correct += int(track_idx == expected)
            total += 1
            if track_idx == NOT_MATCHED:
                # New tracks are appended in detection order.
                track_idx = first_new
                first_new += 1
            identities.setdefault(label, track_idx)
    return correct / max(total, 1)


def run_training(
    config_path: Path,
    overrides: Sequence[str] | None = None,
    seed: int = 0,
    num_histories: int = 3,
) -> dict[str, Any]:
    cfg = load_yaml_config(path=config_path, overrides=overrides)
    rng = np.random.RandomState(seed)

    histories = [synthetic_history(rng, num_objects=4, num_steps=6) for _ in range(num_histories)]
    trainer = StructuralTrackAssociationTrainer.from_config(PointTrack, cfg)
    function = trainer.train(histories)

    held_out = synthetic_history(rng, num_objects=4, num_steps=6)
    return {
        "trainer": describe_trainer(trainer),
        "weights": function.weights.tolist(),
        "accuracy": association_accuracy(function, held_out),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="structrack point-track training example")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(__file__).with_name("point_tracks.yaml"),
        help="Path to YAML config",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        help="Override config value with section.key=value",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--histories", type=int, default=3, help="Training histories")
    args = parser.parse_args()

    result = run_training(
        config_path=args.config,
        overrides=args.overrides,
        seed=args.seed,
        num_histories=args.histories,
    )

    print("structrack point-track training completed")
    print(f"c={result['trainer']['c']}")
    print(f"weights={[round(w, 4) for w in result['weights']]}")
    print(f"accuracy={result['accuracy']:.3f}")


if __name__ == "__main__":
    main()
