from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np
import torch
from scipy.optimize import linear_sum_assignment
from torch import Tensor

from structrack.tracking import NOT_MATCHED, TrackFactory, apply_assignments


def as_feature_vector(raw: Any) -> Tensor:
    """Convert a similarity-feature vector (sequence, ndarray or tensor) to float64 [K]."""
    if isinstance(raw, Tensor):
        vector = raw.detach().to(device="cpu", dtype=torch.float64)
    else:
        vector = torch.from_numpy(np.asarray(raw, dtype=np.float64))
    if vector.ndim != 1:
        raise ValueError(f"similarity features must be 1-D, got shape {tuple(vector.shape)}")
    return vector


class TrackAssociationFeatureExtractor:
    """Joint features for (track, detection) pairs taken from the track itself.

    The first ``num_nonnegative_dims`` weights learned over these features are
    constrained to be >= 0.
    """

    def __init__(self, num_dims: int, num_nonnegative_dims: int = 0) -> None:
        if num_dims < 0:
            raise ValueError("num_dims must be >= 0")
        if not 0 <= num_nonnegative_dims <= num_dims:
            raise ValueError("num_nonnegative_dims must be within [0, num_dims]")
        self._num_dims = int(num_dims)
        self._num_nonnegative_dims = int(num_nonnegative_dims)

    @property
    def num_features(self) -> int:
        return self._num_dims

    @property
    def num_nonnegative_dims(self) -> int:
        return self._num_nonnegative_dims

    def get_features(self, track: Any, detection: Any) -> Tensor:
        features = as_feature_vector(track.get_similarity_features(detection))
        if features.shape[0] != self._num_dims:
            raise ValueError(
                "similarity features must have a consistent length: "
                f"expected {self._num_dims}, got {features.shape[0]}"
            )
        return features

    def feature_tensor(self, detections: Sequence[Any], tracks: Sequence[Any]) -> Tensor:
        """Stack features for every pair into a [D, T, K] tensor."""
        out = torch.zeros((len(detections), len(tracks), self._num_dims), dtype=torch.float64)
        for d, detection in enumerate(detections):
            for t, track in enumerate(tracks):
                out[d, t] = self.get_features(track, detection)
        return out


def solve_assignment(scores: Tensor, unmatched_scores: Tensor | None = None) -> list[int]:
    """Maximize total score with each detection either matched to one track or unmatched.

    ``scores`` is [D, T]; ``unmatched_scores`` [D] is the score of leaving each
    detection unmatched (zero when omitted). Returns one track index or
    ``NOT_MATCHED`` per detection.
    """
    if scores.ndim != 2:
        raise ValueError("scores must be [D,T]")
    num_dets, num_tracks = int(scores.shape[0]), int(scores.shape[1])
    if unmatched_scores is None:
        unmatched_scores = scores.new_zeros((num_dets,))
    if unmatched_scores.shape != (num_dets,):
        raise ValueError("unmatched_scores must be [D]")
    if not bool(torch.isfinite(scores).all()) or not bool(torch.isfinite(unmatched_scores).all()):
        raise ValueError("scores must be finite")
    if num_dets == 0:
        return []
    if num_tracks == 0:
        return [NOT_MATCHED] * num_dets

    # Column T + d is detection d's private "unmatched" slot; the other
    # detections may not take it.
    unmatched = np.full((num_dets, num_dets), -np.inf)
    np.fill_diagonal(unmatched, unmatched_scores.detach().cpu().to(torch.float64).numpy())
    profit = np.concatenate(
        [scores.detach().cpu().to(torch.float64).numpy(), unmatched], axis=1
    )

    rows, cols = linear_sum_assignment(profit, maximize=True)
    assignment = [NOT_MATCHED] * num_dets
    for row, col in zip(rows.tolist(), cols.tolist()):
        if col < num_tracks:
            assignment[row] = col
    return assignment


class AssignmentFunction:
    """Learned linear scorer over track features plus optimal assignment."""

    def __init__(self, weights: Tensor, feature_extractor: TrackAssociationFeatureExtractor):
        weights = as_feature_vector(weights)
        if weights.shape[0] != feature_extractor.num_features:
            raise ValueError("weights length must match feature_extractor.num_features")
        self._weights = weights.clone()
        self.feature_extractor = feature_extractor

    @property
    def weights(self) -> Tensor:
        return self._weights.clone()

    def score(self, track: Any, detection: Any) -> float:
        return float(self.feature_extractor.get_features(track, detection) @ self._weights)

    def score_matrix(self, detections: Sequence[Any], tracks: Sequence[Any]) -> Tensor:
        return self.feature_extractor.feature_tensor(detections, tracks) @ self._weights

    def __call__(self, detections: Sequence[Any], tracks: Sequence[Any]) -> list[int]:
        return solve_assignment(self.score_matrix(detections, tracks))


class TrackAssociationFunction:
    """Inference-time wrapper that associates detections with live tracks."""

    def __init__(self, assignment_function: AssignmentFunction) -> None:
        self._assignment_function = assignment_function

    @property
    def assignment_function(self) -> AssignmentFunction:
        return self._assignment_function

    @property
    def weights(self) -> Tensor:
        return self._assignment_function.weights

    def similarity(self, track: Any, detection: Any) -> float:
        return self._assignment_function.score(track, detection)

    def associate(self, detections: Sequence[Any], tracks: Sequence[Any]) -> list[int]:
        return self._assignment_function(detections, tracks)

    def update_tracks(
        self,
        tracks: list[Any],
        detections: Sequence[Any],
        track_factory: TrackFactory,
    ) -> list[int]:
        """Run one tracking step in place and return the association labels.

        Matched tracks are updated, each unmatched detection starts a new track
        (appended in detection order) and tracks without a detection are propagated.
        """
        labels = self.associate(detections, tracks)
        apply_assignments(
            tracks,
            detections,
            [None if label == NOT_MATCHED else label for label in labels],
            track_factory,
        )
        return labels
