"""Trainer facade that learns track association functions from labeled histories."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from structrack.config import (
    StructrackConfig,
    TrackTrainerConfig,
    validate_count,
    validate_positive,
)
from structrack.infer import (
    TrackAssociationFeatureExtractor,
    TrackAssociationFunction,
    as_feature_vector,
)
from structrack.tracking import (
    TrackFactory,
    TrackHistory,
    build_association_dataset,
    is_track_association_problem,
)
from structrack.utils import get_logger, log_event

from .assignment_trainer import (
    AssignmentTrainerProtocol,
    StructuralAssignmentTrainer,
    describe_assignment_trainer,
)
from .solver import SolverProtocol, SubgradientSolver

LOGGER = get_logger(__name__)

AssignmentTrainerFactory = Callable[[TrackAssociationFeatureExtractor], AssignmentTrainerProtocol]


class DimensionInferenceError(RuntimeError):
    """Raised when the training input holds no detection to size the feature space."""


def find_num_dims(histories: Sequence[TrackHistory], track_factory: TrackFactory) -> int:
    """Feature dimensionality measured on the first detection found in ``histories``.

    Every track/detection pair in one training run must produce features of this
    length; the feature extractor rejects any that do not.
    """
    for history in histories:
        for step in history:
            if len(step) > 0:
                detection, _ = step[0]
                features = track_factory().get_similarity_features(detection)
                return int(as_feature_vector(features).shape[0])

    raise DimensionInferenceError(
        "No detection objects were given to StructuralTrackAssociationTrainer.train(); "
        "cannot infer the feature dimensionality"
    )


class StructuralTrackAssociationTrainer:
    """Learns how to associate detections with tracks from labeled detection histories.

    Each history is a sequence of time steps, each time step a sequence of
    ``(detection, identity_label)`` pairs. Detections sharing a label across time
    belong to the same object. Tracks are built with ``track_factory`` and must
    implement :class:`structrack.tracking.TrackProtocol`.

    Configuration is validated when set. ``train`` snapshots the current
    configuration and keeps no state between calls.
    """

    def __init__(
        self,
        track_factory: TrackFactory,
        config: TrackTrainerConfig | None = None,
        *,
        solver: SolverProtocol | None = None,
        assignment_trainer_factory: AssignmentTrainerFactory | None = None,
    ) -> None:
        if not callable(track_factory):
            raise ValueError("track_factory must be callable")
        self.track_factory = track_factory
        self.config = replace(config) if config is not None else TrackTrainerConfig()
        self.config.validate()
        self.solver = solver if solver is not None else SubgradientSolver()
        self.assignment_trainer_factory = (
            assignment_trainer_factory
            if assignment_trainer_factory is not None
            else StructuralAssignmentTrainer
        )

    @classmethod
    def from_config(
        cls,
        track_factory: TrackFactory,
        config: StructrackConfig,
        *,
        assignment_trainer_factory: AssignmentTrainerFactory | None = None,
    ) -> StructuralTrackAssociationTrainer:
        return cls(
            track_factory,
            config.trainer,
            solver=SubgradientSolver.from_config(config.solver),
            assignment_trainer_factory=assignment_trainer_factory,
        )

    @property
    def c(self) -> float:
        return self.config.c

    @c.setter
    def c(self, value: float) -> None:
        self.config.c = validate_positive("c", value)

    @property
    def epsilon(self) -> float:
        return self.config.epsilon

    @epsilon.setter
    def epsilon(self, value: float) -> None:
        self.config.epsilon = validate_positive("epsilon", value)

    @property
    def max_cache_size(self) -> int:
        return self.config.max_cache_size

    @max_cache_size.setter
    def max_cache_size(self, value: int) -> None:
        self.config.max_cache_size = validate_count("max_cache_size", value)

    @property
    def num_threads(self) -> int:
        return self.config.num_threads

    @num_threads.setter
    def num_threads(self, value: int) -> None:
        self.config.num_threads = validate_count("num_threads", value)

    @property
    def learns_nonnegative_weights(self) -> bool:
        return self.config.learn_nonnegative_weights

    @learns_nonnegative_weights.setter
    def learns_nonnegative_weights(self, value: bool) -> None:
        self.config.learn_nonnegative_weights = bool(value)

    @property
    def verbose(self) -> bool:
        return self.config.verbose

    def be_verbose(self) -> None:
        self.config.verbose = True

    def be_quiet(self) -> None:
        self.config.verbose = False

    def _build_assignment_trainer(
        self,
        config: TrackTrainerConfig,
        feature_extractor: TrackAssociationFeatureExtractor,
    ) -> AssignmentTrainerProtocol:
        trainer = self.assignment_trainer_factory(feature_extractor)
        if config.verbose:
            trainer.be_verbose()
        else:
            trainer.be_quiet()
        trainer.c = config.c
        trainer.epsilon = config.epsilon
        trainer.max_cache_size = config.max_cache_size
        trainer.num_threads = config.num_threads
        trainer.solver = self.solver
        return trainer

    def train(self, samples: Sequence[TrackHistory]) -> TrackAssociationFunction:
        """Learn a TrackAssociationFunction from a collection of track histories."""
        if not is_track_association_problem(samples):
            raise ValueError(
                "invalid inputs were given to StructuralTrackAssociationTrainer.train(): "
                "samples must be a non-empty collection of histories of (detection, label) "
                "time steps with hashable labels unique per time step"
            )

        config = replace(self.config)
        num_dims = find_num_dims(samples, self.track_factory)
        feature_extractor = TrackAssociationFeatureExtractor(
            num_dims, num_dims if config.learn_nonnegative_weights else 0
        )
        trainer = self._build_assignment_trainer(config, feature_extractor)

        assignment_samples, labels = build_association_dataset(samples, self.track_factory)
        log_event(
            LOGGER,
            "track_trainer_started",
            level="INFO" if config.verbose else "DEBUG",
            fields={
                "num_histories": len(samples),
                "num_assignment_samples": len(assignment_samples),
                "num_dims": num_dims,
                "num_nonnegative_dims": feature_extractor.num_nonnegative_dims,
                **describe_assignment_trainer(trainer),
            },
        )

        assignment_function = trainer.train(assignment_samples, labels)

        log_event(
            LOGGER,
            "track_trainer_finished",
            level="INFO" if config.verbose else "DEBUG",
            fields={"num_dims": num_dims},
        )
        return TrackAssociationFunction(assignment_function)

    def train_history(self, history: TrackHistory) -> TrackAssociationFunction:
        """Train on a single track history."""
        return self.train([history])


def describe_trainer(trainer: StructuralTrackAssociationTrainer) -> dict[str, Any]:
    return {
        "c": trainer.c,
        "epsilon": trainer.epsilon,
        "max_cache_size": trainer.max_cache_size,
        "num_threads": trainer.num_threads,
        "learns_nonnegative_weights": trainer.learns_nonnegative_weights,
        "verbose": trainer.verbose,
        "solver": repr(trainer.solver),
    }
