"""
Scoring

Turns engagement metrics into integer allocations. The same snapshot
always yields the same allocations, and the allocations never sum to
more than the campaign budget.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from core.crypto.addresses import normalize_address
from core.merkle import normalize_allocations
from core.schemas.errors import ValidationError


@runtime_checkable
class ScoringFunction(Protocol):
    def allocate(self, engagement: Mapping[str, Any], budget: int) -> dict[str, int]:
        ...


class ProportionalScorer:
    """
    Split the budget in proportion to each recipient's score, rounding down.

    A recipient's score is the metric itself when it is a number, or the
    weighted sum of its numeric counters when it is a mapping (counters
    missing from weights count with weight 1). Recipients whose share
    rounds to zero are left out.

    With scores 1 and 3 and a budget of 100 the allocations are 25 and 75;
    with scores 1, 1 and 1 they are 33 each and 1 unit stays in escrow.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None) -> None:
        self.weights = dict(weights or {})

    def score(self, metrics: Any) -> Fraction:
        if isinstance(metrics, bool):
            raise ValidationError(f"Unsupported metric value: {metrics!r}")
        if isinstance(metrics, (int, float)):
            return _fraction(metrics)
        if isinstance(metrics, Mapping):
            total = Fraction(0)
            for name, value in metrics.items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    continue
                total += _fraction(self.weights.get(name, 1)) * _fraction(value)
            return total
        raise ValidationError(f"Unsupported metric value: {metrics!r}")

    def allocate(self, engagement: Mapping[str, Any], budget: int) -> dict[str, int]:
        scores: dict[str, Fraction] = {}
        for recipient, metrics in engagement.items():
            try:
                address = normalize_address(recipient)
            except ValueError as e:
                raise ValidationError(str(e), field_path=f"engagement.{recipient}") from e
            if address in scores:
                raise ValidationError(
                    f"Recipient listed more than once: {address}",
                    field_path=f"engagement.{recipient}",
                )
            scores[address] = self.score(metrics)

        eligible = {r: s for r, s in scores.items() if s > 0}
        total_score = sum(eligible.values(), Fraction(0))
        if total_score == 0:
            return {}

        allocations: dict[str, int] = {}
        for recipient in sorted(eligible):
            amount = math.floor(budget * eligible[recipient] / total_score)
            if amount > 0:
                allocations[recipient] = amount
        return allocations


def _fraction(value: float) -> Fraction:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"Metric must be finite, got {value}")
    return Fraction(value)


def validate_allocations(allocations: Mapping[str, int], budget: int) -> dict[str, int]:
    """
    Normalise recipients and check the allocation set can be committed.

    Raises:
        ValidationError: Empty set, malformed recipients or amounts,
            duplicate recipients, or a total above budget
    """
    normalized = normalize_allocations(allocations)
    if not normalized:
        raise ValidationError("No recipient earned a reward", field_path="allocations")
    total = sum(normalized.values())
    if total > budget:
        raise ValidationError(
            "Allocated amount exceeds budget",
            field_path="allocations",
            details={"budget": budget, "total_allocated": total},
        )
    return normalized
