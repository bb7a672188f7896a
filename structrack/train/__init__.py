"""Training of track association functions."""

from __future__ import annotations

from .assignment_trainer import (
    AssignmentTrainerProtocol,
    StructuralAssignmentTrainer,
    validate_assignment_problem,
)
from .solver import RiskEvaluation, RiskOracle, SolverProtocol, SubgradientSolver
from .trainer import (
    AssignmentTrainerFactory,
    DimensionInferenceError,
    StructuralTrackAssociationTrainer,
    describe_trainer,
    find_num_dims,
)

__all__ = [
    "AssignmentTrainerProtocol",
    "StructuralAssignmentTrainer",
    "validate_assignment_problem",
    "RiskEvaluation",
    "RiskOracle",
    "SolverProtocol",
    "SubgradientSolver",
    "AssignmentTrainerFactory",
    "DimensionInferenceError",
    "StructuralTrackAssociationTrainer",
    "describe_trainer",
    "find_num_dims",
]
