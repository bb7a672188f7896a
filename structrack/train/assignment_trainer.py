"""Structural SVM training of linear assignment functions.

Each training sample pairs a list of detections with a list of tracks and a
label per detection (a track index or ``NOT_MATCHED``). The learned weights
score a pair as ``w . features(track, detection)``; the loss is the number of
detections whose association differs from the label.
"""

from __future__ import annotations

import operator
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import torch
from torch import Tensor

from structrack.config import validate_count, validate_positive
from structrack.infer import AssignmentFunction, TrackAssociationFeatureExtractor, solve_assignment
from structrack.tracking import NOT_MATCHED, AssignmentSample
from structrack.utils import get_logger, log_event

from .solver import RiskEvaluation, SolverProtocol, SubgradientSolver

LOGGER = get_logger(__name__)


@runtime_checkable
class AssignmentTrainerProtocol(Protocol):
    """Trainer that learns an AssignmentFunction from labeled assignment samples."""

    c: float
    epsilon: float
    max_cache_size: int
    num_threads: int
    solver: SolverProtocol

    def be_verbose(self) -> None:
        ...

    def be_quiet(self) -> None:
        ...

    def train(
        self,
        samples: Sequence[AssignmentSample],
        labels: Sequence[Sequence[int]],
    ) -> AssignmentFunction:
        ...


def validate_assignment_problem(
    samples: Sequence[AssignmentSample],
    labels: Sequence[Sequence[int]],
) -> None:
    """Raise ValueError unless every label list is a valid partial assignment."""
    if len(samples) != len(labels):
        raise ValueError(
            f"samples and labels must have the same length: {len(samples)} != {len(labels)}"
        )
    for i, (sample, sample_labels) in enumerate(zip(samples, labels)):
        if len(sample_labels) != sample.num_detections:
            raise ValueError(
                f"labels[{i}] has {len(sample_labels)} entries for "
                f"{sample.num_detections} detections"
            )
        claimed: set[int] = set()
        for label in sample_labels:
            if isinstance(label, bool):
                raise ValueError(f"labels[{i}] must hold integers, got a bool")
            try:
                track_idx = operator.index(label)
            except TypeError:
                raise ValueError(
                    f"labels[{i}] must hold integers, got {type(label).__name__}"
                ) from None
            if track_idx == NOT_MATCHED:
                continue
            if not 0 <= track_idx < sample.num_tracks:
                raise ValueError(
                    f"labels[{i}] references track {track_idx} but only "
                    f"{sample.num_tracks} tracks exist"
                )
            if track_idx in claimed:
                raise ValueError(f"labels[{i}] assigns track {track_idx} more than once")
            claimed.add(track_idx)


@dataclass(slots=True)
class _CachedLabeling:
    joint_features: Tensor
    loss: float


class _SeparationOracle:
    """Loss-augmented inference over all samples with a per-sample constraint cache."""

    def __init__(
        self,
        samples: Sequence[AssignmentSample],
        labels: Sequence[Sequence[int]],
        feature_extractor: TrackAssociationFeatureExtractor,
        *,
        epsilon: float,
        max_cache_size: int,
        executor: ThreadPoolExecutor | None,
    ) -> None:
        self.num_dims = feature_extractor.num_features
        self.epsilon = epsilon
        self.max_cache_size = max_cache_size
        self.executor = executor

        self.features = [
            feature_extractor.feature_tensor(sample.detections, sample.tracks) for sample in samples
        ]
        self.labels = [[int(label) for label in sample_labels] for sample_labels in labels]
        self.true_features = [
            self._joint_features(i, self.labels[i]) for i in range(len(self.features))
        ]
        self.caches: list[list[_CachedLabeling]] = [[] for _ in self.features]
        self.last_fresh: list[float] = [float("inf")] * len(self.features)
        self.oracle_calls = 0
        self.cache_hits = 0

    def _joint_features(self, i: int, assignment: Sequence[int]) -> Tensor:
        out = torch.zeros((self.num_dims,), dtype=torch.float64)
        for d, track_idx in enumerate(assignment):
            if track_idx != NOT_MATCHED:
                out += self.features[i][d, track_idx]
        return out

    def _loss(self, i: int, assignment: Sequence[int]) -> float:
        return float(sum(1 for got, want in zip(assignment, self.labels[i]) if got != want))

    def _fresh(self, i: int, weights: Tensor) -> _CachedLabeling:
        phi = self.features[i]
        truth = torch.tensor(self.labels[i], dtype=torch.int64)
        num_dets, num_tracks = int(phi.shape[0]), int(phi.shape[1])

        scores = phi @ weights
        wrong_track = torch.ones((num_dets, num_tracks), dtype=torch.float64)
        matched = truth != NOT_MATCHED
        if num_tracks > 0 and bool(matched.any()):
            wrong_track[matched.nonzero().flatten(), truth[matched]] = 0.0
        unmatched_loss = matched.to(torch.float64)

        assignment = solve_assignment(scores + wrong_track, unmatched_loss)
        return _CachedLabeling(
            joint_features=self._joint_features(i, assignment),
            loss=self._loss(i, assignment),
        )

    def _violation(self, i: int, labeling: _CachedLabeling, weights: Tensor) -> float:
        return labeling.loss + float((labeling.joint_features - self.true_features[i]) @ weights)

    def separate(self, i: int, weights: Tensor) -> tuple[float, Tensor, bool]:
        cache = self.caches[i]
        if cache:
            violations = [self._violation(i, item, weights) for item in cache]
            best = max(range(len(cache)), key=violations.__getitem__)
            if violations[best] > self.epsilon and violations[best] >= (
                self.last_fresh[i] - self.epsilon
            ):
                item = cache.pop(best)
                cache.append(item)
                return violations[best], item.joint_features - self.true_features[i], True

        labeling = self._fresh(i, weights)
        violation = max(self._violation(i, labeling, weights), 0.0)
        self.last_fresh[i] = violation
        if self.max_cache_size > 0 and labeling.loss > 0:
            cache.append(labeling)
            del cache[: max(len(cache) - self.max_cache_size, 0)]
        return violation, labeling.joint_features - self.true_features[i], False

    def __call__(self, weights: Tensor) -> RiskEvaluation:
        indices = range(len(self.features))
        if self.executor is not None:
            results = list(self.executor.map(lambda i: self.separate(i, weights), indices))
        else:
            results = [self.separate(i, weights) for i in indices]

        hits = sum(1 for _, _, from_cache in results if from_cache)
        self.cache_hits += hits
        self.oracle_calls += len(results) - hits

        risk = sum(violation for violation, _, _ in results) / len(results)
        subgradient = torch.stack([direction for _, direction, _ in results]).mean(dim=0)
        return RiskEvaluation(risk=risk, subgradient=subgradient, exact=hits == 0)


class StructuralAssignmentTrainer(AssignmentTrainerProtocol):
    """Learns a linear AssignmentFunction with a structural SVM."""

    def __init__(
        self,
        feature_extractor: TrackAssociationFeatureExtractor,
        *,
        c: float = 100.0,
        epsilon: float = 0.1,
        max_cache_size: int = 5,
        num_threads: int = 2,
        solver: SolverProtocol | None = None,
        verbose: bool = False,
    ) -> None:
        self.feature_extractor = feature_extractor
        self.c = c
        self.epsilon = epsilon
        self.max_cache_size = max_cache_size
        self.num_threads = num_threads
        self.solver = solver if solver is not None else SubgradientSolver()
        self.verbose = bool(verbose)

    @property
    def c(self) -> float:
        return self._c

    @c.setter
    def c(self, value: float) -> None:
        self._c = validate_positive("c", value)

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @epsilon.setter
    def epsilon(self, value: float) -> None:
        self._epsilon = validate_positive("epsilon", value)

    @property
    def max_cache_size(self) -> int:
        return self._max_cache_size

    @max_cache_size.setter
    def max_cache_size(self, value: int) -> None:
        self._max_cache_size = validate_count("max_cache_size", value)

    @property
    def num_threads(self) -> int:
        return self._num_threads

    @num_threads.setter
    def num_threads(self, value: int) -> None:
        self._num_threads = validate_count("num_threads", value)

    def be_verbose(self) -> None:
        self.verbose = True

    def be_quiet(self) -> None:
        self.verbose = False

    def train(
        self,
        samples: Sequence[AssignmentSample],
        labels: Sequence[Sequence[int]],
    ) -> AssignmentFunction:
        validate_assignment_problem(samples, labels)
        if len(samples) == 0:
            raise ValueError("at least one assignment sample is required")

        executor = (
            ThreadPoolExecutor(max_workers=self.num_threads, thread_name_prefix="structrack")
            if self.num_threads > 1 and len(samples) > 1
            else None
        )
        try:
            oracle = _SeparationOracle(
                samples,
                labels,
                self.feature_extractor,
                epsilon=self.epsilon,
                max_cache_size=self.max_cache_size,
                executor=executor,
            )
            weights = self.solver.solve(
                oracle,
                self.feature_extractor.num_features,
                c=self.c,
                epsilon=self.epsilon,
                num_nonnegative_dims=self.feature_extractor.num_nonnegative_dims,
                verbose=self.verbose,
            )
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        log_event(
            LOGGER,
            "assignment_trainer_finished",
            level="INFO" if self.verbose else "DEBUG",
            fields={
                "num_samples": len(samples),
                "oracle_calls": oracle.oracle_calls,
                "cache_hits": oracle.cache_hits,
            },
        )
        return AssignmentFunction(weights, self.feature_extractor)


def describe_assignment_trainer(trainer: Any) -> dict[str, Any]:
    return {
        "c": trainer.c,
        "epsilon": trainer.epsilon,
        "max_cache_size": trainer.max_cache_size,
        "num_threads": trainer.num_threads,
        "solver": repr(trainer.solver),
    }
