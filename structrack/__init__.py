"""structrack public API."""

from .config import StructrackConfig, TrackTrainerConfig, load_yaml_config
from .infer import AssignmentFunction, TrackAssociationFeatureExtractor, TrackAssociationFunction
from .tracking import (
    NOT_MATCHED,
    AssignmentSample,
    TrackProtocol,
    TrackSet,
    build_association_dataset,
    convert_history_to_association_sets,
    is_track_association_problem,
)
from .train import (
    DimensionInferenceError,
    StructuralAssignmentTrainer,
    StructuralTrackAssociationTrainer,
    SubgradientSolver,
)

__version__ = "0.1.0"

__all__ = [
    "NOT_MATCHED",
    "AssignmentSample",
    "TrackProtocol",
    "TrackSet",
    "convert_history_to_association_sets",
    "build_association_dataset",
    "is_track_association_problem",
    "TrackAssociationFeatureExtractor",
    "AssignmentFunction",
    "TrackAssociationFunction",
    "StructuralAssignmentTrainer",
    "StructuralTrackAssociationTrainer",
    "SubgradientSolver",
    "DimensionInferenceError",
    "StructrackConfig",
    "TrackTrainerConfig",
    "load_yaml_config",
]
