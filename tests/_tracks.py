from __future__ import annotations

from typing import Any

import numpy as np


class RecordingTrack:
    """Track that remembers every call made on it."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def update_track(self, detection: Any) -> None:
        self.events.append(("update", detection))

    def propagate_track(self) -> None:
        self.events.append(("propagate", None))

    def get_similarity_features(self, detection: Any) -> list[float]:
        return [float(len(self.events)), 1.0]


class PointTrack:
    """Constant-velocity 2-D point track comparing detections to its prediction."""

    def __init__(self) -> None:
        self.position: np.ndarray | None = None
        self.velocity = np.zeros(2, dtype=np.float64)

    def update_track(self, detection: Any) -> None:
        point = np.asarray(detection, dtype=np.float64)
        if self.position is not None:
            self.velocity = point - self.position
        self.position = point

    def propagate_track(self) -> None:
        if self.position is not None:
            self.position = self.position + self.velocity

    def predicted(self) -> np.ndarray:
        if self.position is None:
            return np.zeros(2, dtype=np.float64)
        return self.position + self.velocity

    def get_similarity_features(self, detection: Any) -> np.ndarray:
        delta = np.abs(np.asarray(detection, dtype=np.float64) - self.predicted())
        return np.array([-delta[0], -delta[1], 1.0], dtype=np.float64)


def point_history(
    starts: dict[str, tuple[float, float]],
    velocities: dict[str, tuple[float, float]],
    *,
    num_steps: int,
    first_seen: dict[str, int] | None = None,
) -> list[list[tuple[tuple[float, float], str]]]:
    """Labeled detections of objects moving at constant velocity."""
    first_seen = first_seen or {}
    history: list[list[tuple[tuple[float, float], str]]] = []
    for step in range(num_steps):
        detections: list[tuple[tuple[float, float], str]] = []
        for label, (x0, y0) in starts.items():
            start_step = first_seen.get(label, 0)
            if step < start_step:
                continue
            vx, vy = velocities[label]
            age = step - start_step
            detections.append(((x0 + vx * age, y0 + vy * age), label))
        history.append(detections)
    return history
