from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Any

from structrack.utils.logging import get_logger, log_event

from .state import TrackSet
from .types import AssignmentSample, TrackFactory, TrackHistory, unlabeled_detections

LOGGER = get_logger(__name__)


def convert_history_to_association_sets(
    history: TrackHistory,
    track_factory: TrackFactory,
) -> tuple[list[AssignmentSample], list[list[int]]]:
    """Build one assignment problem per time step after the first.

    Labels for step ``t`` are looked up against the tracks built from steps
    ``0..t-1``; the track set is only updated with step ``t`` afterwards, so every
    label indexes into the snapshot stored in the same sample.
    """
    samples: list[AssignmentSample] = []
    labels: list[list[int]] = []
    if len(history) < 1:
        return samples, labels

    track_set = TrackSet(track_factory)
    track_set.add_detections(history[0])

    for step in history[1:]:
        samples.append(
            AssignmentSample(detections=unlabeled_detections(step), tracks=track_set.snapshot())
        )
        labels.append(track_set.correspondence_labels(step))
        track_set.add_detections(step)

    return samples, labels


def build_association_dataset(
    histories: Sequence[TrackHistory],
    track_factory: TrackFactory,
) -> tuple[list[AssignmentSample], list[list[int]]]:
    """Flatten every history into one training set, history-major then step-minor."""
    samples: list[AssignmentSample] = []
    labels: list[list[int]] = []
    for history in histories:
        history_samples, history_labels = convert_history_to_association_sets(
            history, track_factory
        )
        samples.extend(history_samples)
        labels.extend(history_labels)

    log_event(
        LOGGER,
        "association_dataset_built",
        level="DEBUG",
        fields={
            "num_histories": len(histories),
            "num_samples": len(samples),
            "num_detections": sum(sample.num_detections for sample in samples),
        },
    )
    return samples, labels


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _is_labeled_detection(value: Any) -> bool:
    return isinstance(value, tuple) and len(value) == 2 and isinstance(value[1], Hashable)


def is_track_association_problem(histories: Any) -> bool:
    """Return True when ``histories`` can be turned into a training set.

    Every history must be a sequence of time steps, every time step a sequence of
    ``(detection, label)`` pairs with hashable labels that are unique within the
    step. Histories shorter than two steps are valid and simply yield no samples.
    """
    if not _is_sequence(histories) or len(histories) == 0:
        return False

    for history in histories:
        if not _is_sequence(history):
            return False
        for step in history:
            if not _is_sequence(step):
                return False
            seen: set[Hashable] = set()
            for item in step:
                if not _is_labeled_detection(item):
                    return False
                try:
                    if item[1] in seen:
                        return False
                    seen.add(item[1])
                except TypeError:
                    # Tuples containing unhashable members pass the Hashable check.
                    return False

    return True
