from __future__ import annotations

from collections.abc import Hashable, Sequence
from copy import deepcopy
from typing import Any

from .types import TimeStepDetections, TrackFactory, to_correspondence_label


def apply_assignments(
    tracks: list[Any],
    detections: Sequence[Any],
    assignments: Sequence[int | None],
    track_factory: TrackFactory,
) -> list[int]:
    """Update ``tracks`` in place from per-detection track indices.

    ``None`` spawns a new track for the detection; new tracks are appended in
    detection order. Tracks that existed before the call and received no
    detection are propagated. Returns the index each detection ended up in.
    """
    if len(detections) != len(assignments):
        raise ValueError("detections and assignments must have the same length")

    num_existing = len(tracks)
    touched = [False] * num_existing
    placed: list[int] = []

    for detection, track_idx in zip(detections, assignments):
        if track_idx is None:
            new_track = track_factory()
            new_track.update_track(detection)
            tracks.append(new_track)
            placed.append(len(tracks) - 1)
            continue
        if not 0 <= track_idx < num_existing:
            raise ValueError(f"track index {track_idx} out of range for {num_existing} tracks")
        if touched[track_idx]:
            raise ValueError(f"track {track_idx} was assigned more than one detection")
        tracks[track_idx].update_track(detection)
        touched[track_idx] = True
        placed.append(track_idx)

    for idx, was_touched in enumerate(touched):
        if not was_touched:
            tracks[idx].propagate_track()

    return placed


class TrackSet:
    """Live tracks of one history plus the identity-label to track-index map.

    Indices are assigned in order of first appearance and never change; tracks
    are never removed.
    """

    def __init__(self, track_factory: TrackFactory) -> None:
        self.track_factory = track_factory
        self.tracks: list[Any] = []
        self.labels: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self.tracks)

    def lookup(self, label: Hashable) -> int | None:
        return self.labels.get(label)

    def correspondence_labels(self, detections: TimeStepDetections) -> list[int]:
        return [to_correspondence_label(self.lookup(label)) for _, label in detections]

    def snapshot(self) -> list[Any]:
        return deepcopy(self.tracks)

    def add_detections(self, detections: TimeStepDetections) -> None:
        step_labels = [label for _, label in detections]
        if len(set(step_labels)) != len(step_labels):
            raise ValueError("identity labels must be unique within a time step")

        assignments = [self.lookup(label) for label in step_labels]
        placed = apply_assignments(
            self.tracks,
            [detection for detection, _ in detections],
            assignments,
            self.track_factory,
        )
        for (_, label), track_idx in zip(detections, placed):
            self.labels.setdefault(label, track_idx)
