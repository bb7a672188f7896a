"""Solver strategies for the regularized structural risk minimized during training.

A solver minimizes ``0.5 * ||w||^2 + c * R(w)`` where the risk ``R`` is only
available through an oracle returning its value and a subgradient at ``w``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import torch
from torch import Tensor

from structrack.config import SolverConfig, validate_count, validate_positive
from structrack.utils import get_logger, log_event

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RiskEvaluation:
    risk: float
    subgradient: Tensor  # [K] float64
    # False when cached constraints stood in for a fresh separation oracle call.
    exact: bool = True


RiskOracle = Callable[[Tensor], RiskEvaluation]


@runtime_checkable
class SolverProtocol(Protocol):
    """Minimizes the regularized risk exposed by a risk oracle."""

    def solve(
        self,
        oracle: RiskOracle,
        num_dims: int,
        *,
        c: float,
        epsilon: float,
        num_nonnegative_dims: int = 0,
        verbose: bool = False,
    ) -> Tensor:
        ...


class SubgradientSolver(SolverProtocol):
    """Projected subgradient descent with a 1/t step size.

    Stops once an exact risk evaluation is within ``epsilon`` of zero, once the
    objective has not improved by more than ``epsilon`` for ``patience``
    iterations, or after ``max_iterations``. Returns the iterate that met the risk
    tolerance, or otherwise the iterate with the lowest objective seen.
    """

    def __init__(self, max_iterations: int = 500, patience: int = 20) -> None:
        if validate_count("max_iterations", max_iterations) == 0:
            raise ValueError("max_iterations must be > 0")
        if validate_count("patience", patience) == 0:
            raise ValueError("patience must be > 0")
        self.max_iterations = int(max_iterations)
        self.patience = int(patience)

    @classmethod
    def from_config(cls, config: SolverConfig) -> SubgradientSolver:
        config.validate()
        return cls(max_iterations=config.max_iterations, patience=config.patience)

    def __repr__(self) -> str:
        return (
            f"SubgradientSolver(max_iterations={self.max_iterations}, "
            f"patience={self.patience})"
        )

    def solve(
        self,
        oracle: RiskOracle,
        num_dims: int,
        *,
        c: float,
        epsilon: float,
        num_nonnegative_dims: int = 0,
        verbose: bool = False,
    ) -> Tensor:
        c = validate_positive("c", c)
        epsilon = validate_positive("epsilon", epsilon)
        if not 0 <= num_nonnegative_dims <= num_dims:
            raise ValueError("num_nonnegative_dims must be within [0, num_dims]")

        level = "INFO" if verbose else "DEBUG"
        weights = torch.zeros((num_dims,), dtype=torch.float64)
        best_weights = weights.clone()
        best_objective = float("inf")
        stalled = 0
        reason = "max_iterations"
        iteration = 0

        for iteration in range(1, self.max_iterations + 1):
            evaluation = oracle(weights)
            objective = 0.5 * float(weights @ weights) + c * evaluation.risk

            if objective < best_objective - epsilon:
                stalled = 0
            else:
                stalled += 1
            if objective < best_objective:
                best_objective = objective
                best_weights = weights.clone()

            log_event(
                LOGGER,
                "solver_iteration",
                level=level,
                fields={
                    "iteration": iteration,
                    "risk": evaluation.risk,
                    "objective": objective,
                    "exact": evaluation.exact,
                },
            )

            if evaluation.exact and evaluation.risk <= epsilon:
                # Current iterate meets every margin to within epsilon.
                best_objective = objective
                best_weights = weights.clone()
                reason = "risk_within_epsilon"
                break
            if stalled >= self.patience:
                reason = "objective_stalled"
                break

            step = 1.0 / iteration
            weights = weights - step * (weights + c * evaluation.subgradient)
            if num_nonnegative_dims > 0:
                weights[:num_nonnegative_dims].clamp_(min=0.0)

        log_event(
            LOGGER,
            "solver_converged",
            level=level,
            fields={"iterations": iteration, "reason": reason, "objective": best_objective},
        )
        return best_weights
