"""Inference-time association for trained track association functions."""

from .association import (
    AssignmentFunction,
    TrackAssociationFeatureExtractor,
    TrackAssociationFunction,
    as_feature_vector,
    solve_assignment,
)

__all__ = [
    "AssignmentFunction",
    "TrackAssociationFeatureExtractor",
    "TrackAssociationFunction",
    "as_feature_vector",
    "solve_assignment",
]
