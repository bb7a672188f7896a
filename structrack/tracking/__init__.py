"""Conversion of labeled detection histories into assignment training sets."""

from .association import (
    build_association_dataset,
    convert_history_to_association_sets,
    is_track_association_problem,
)
from .state import TrackSet, apply_assignments
from .types import (
    NOT_MATCHED,
    AssignmentSample,
    LabeledDetection,
    TimeStepDetections,
    TrackFactory,
    TrackHistory,
    TrackProtocol,
)

__all__ = [
    "NOT_MATCHED",
    "AssignmentSample",
    "LabeledDetection",
    "TimeStepDetections",
    "TrackHistory",
    "TrackFactory",
    "TrackProtocol",
    "TrackSet",
    "apply_assignments",
    "convert_history_to_association_sets",
    "build_association_dataset",
    "is_track_association_problem",
]
