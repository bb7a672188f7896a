"""Data contracts shared by the association-set builder, trainer and inference."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias, runtime_checkable

NOT_MATCHED = -1
"""Correspondence label for a detection that matches no existing track."""


@runtime_checkable
class TrackProtocol(Protocol):
    """Caller-defined track state updated once per time step."""

    def update_track(self, detection: Any) -> None:
        """Absorb a detection that was associated with this track."""
        ...

    def propagate_track(self) -> None:
        """Advance the track through a time step in which it received no detection."""
        ...

    def get_similarity_features(self, detection: Any) -> Any:
        """Return a 1-D numeric feature vector comparing this track to ``detection``.

        Every call within one training run must return a vector of the same length.
        """
        ...


TrackFactory: TypeAlias = Callable[[], TrackProtocol]
LabeledDetection: TypeAlias = tuple[Any, Hashable]
TimeStepDetections: TypeAlias = Sequence[LabeledDetection]
TrackHistory: TypeAlias = Sequence[TimeStepDetections]


@dataclass(frozen=True, slots=True)
class AssignmentSample:
    """One time step's association task: new detections against the tracks before it."""

    detections: list[Any]
    tracks: list[Any]

    @property
    def num_detections(self) -> int:
        return len(self.detections)

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)


def unlabeled_detections(detections: TimeStepDetections) -> list[Any]:
    return [detection for detection, _ in detections]


def to_correspondence_label(track_index: int | None) -> int:
    return NOT_MATCHED if track_index is None else int(track_index)
