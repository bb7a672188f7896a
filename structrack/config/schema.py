from __future__ import annotations

import numbers
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any


def validate_positive(name: str, value: float) -> float:
    """Return ``value`` as float, rejecting anything that is not strictly positive."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a number, got {type(value).__name__}")
    if not value > 0:
        raise ValueError(f"{name} must be > 0, got {value!r}")
    return float(value)


def validate_count(name: str, value: int) -> int:
    """Return ``value`` as int, rejecting non-integers and negative counts."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}")
    return int(value)


@dataclass(slots=True)
class TrackTrainerConfig:
    c: float = 100.0
    epsilon: float = 0.1
    max_cache_size: int = 5
    num_threads: int = 2
    learn_nonnegative_weights: bool = False
    verbose: bool = False

    def validate(self) -> None:
        validate_positive("trainer.c", self.c)
        validate_positive("trainer.epsilon", self.epsilon)
        validate_count("trainer.max_cache_size", self.max_cache_size)
        validate_count("trainer.num_threads", self.num_threads)
        if not isinstance(self.learn_nonnegative_weights, bool):
            raise ValueError("trainer.learn_nonnegative_weights must be a bool")
        if not isinstance(self.verbose, bool):
            raise ValueError("trainer.verbose must be a bool")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TrackTrainerConfig:
        parsed = dict(data)
        for key in ("c", "epsilon"):
            if key in parsed and isinstance(parsed[key], int) and not isinstance(
                parsed[key], bool
            ):
                parsed[key] = float(parsed[key])
        return cls(**parsed)


@dataclass(slots=True)
class SolverConfig:
    max_iterations: int = 500
    patience: int = 20

    def validate(self) -> None:
        if validate_count("solver.max_iterations", self.max_iterations) == 0:
            raise ValueError("solver.max_iterations must be > 0")
        if validate_count("solver.patience", self.patience) == 0:
            raise ValueError("solver.patience must be > 0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SolverConfig:
        return cls(**dict(data))


@dataclass(slots=True)
class StructrackConfig:
    trainer: TrackTrainerConfig = field(default_factory=TrackTrainerConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        self.trainer.validate()
        self.solver.validate()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StructrackConfig:
        unknown = set(data) - {"trainer", "solver"}
        if unknown:
            raise ValueError(f"Unknown config sections: {', '.join(sorted(unknown))}")
        return cls(
            trainer=TrackTrainerConfig.from_dict(data.get("trainer", {})),
            solver=SolverConfig.from_dict(data.get("solver", {})),
        )
