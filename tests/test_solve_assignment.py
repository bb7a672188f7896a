from __future__ import annotations

import itertools

import pytest
import torch

from structrack.infer import solve_assignment
from structrack.tracking import NOT_MATCHED


def _best_partial_assignment(scores: torch.Tensor, unmatched: torch.Tensor) -> float:
    num_dets, num_tracks = scores.shape
    best = float("-inf")
    options = [*range(num_tracks), NOT_MATCHED]
    for choice in itertools.product(options, repeat=num_dets):
        claimed = [c for c in choice if c != NOT_MATCHED]
        if len(claimed) != len(set(claimed)):
            continue
        total = sum(
            float(unmatched[d]) if c == NOT_MATCHED else float(scores[d, c])
            for d, c in enumerate(choice)
        )
        best = max(best, total)
    return best


def _total(assignment: list[int], scores: torch.Tensor, unmatched: torch.Tensor) -> float:
    return sum(
        float(unmatched[d]) if c == NOT_MATCHED else float(scores[d, c])
        for d, c in enumerate(assignment)
    )


def test_prefers_global_optimum_over_greedy_choice() -> None:
    scores = torch.tensor(
        [
            [0.90, 0.80],
            [0.89, 0.10],
        ],
        dtype=torch.float64,
    )
    assert solve_assignment(scores) == [1, 0]


@pytest.mark.parametrize("shape", [(3, 5), (5, 3), (4, 4), (2, 0)])
def test_matches_brute_force_with_unmatched_option(shape: tuple[int, int]) -> None:
    generator = torch.Generator().manual_seed(11)
    scores = torch.rand(shape, generator=generator, dtype=torch.float64) * 2.0 - 1.0
    unmatched = torch.rand((shape[0],), generator=generator, dtype=torch.float64) - 0.5

    assignment = solve_assignment(scores, unmatched)

    assert len(assignment) == shape[0]
    claimed = [c for c in assignment if c != NOT_MATCHED]
    assert len(claimed) == len(set(claimed))
    assert _total(assignment, scores, unmatched) == pytest.approx(
        _best_partial_assignment(scores, unmatched)
    )


def test_more_detections_than_tracks_leaves_the_rest_unmatched() -> None:
    scores = torch.tensor([[5.0], [3.0], [4.0]], dtype=torch.float64)
    assert solve_assignment(scores) == [0, NOT_MATCHED, NOT_MATCHED]


def test_rejects_non_finite_scores() -> None:
    with pytest.raises(ValueError, match="finite"):
        solve_assignment(torch.tensor([[float("inf"), 0.0]], dtype=torch.float64))
    with pytest.raises(ValueError, match="finite"):
        solve_assignment(
            torch.zeros((1, 1), dtype=torch.float64),
            torch.tensor([float("nan")], dtype=torch.float64),
        )
    with pytest.raises(ValueError, match=r"\[D,T\]"):
        solve_assignment(torch.zeros((3,)))
