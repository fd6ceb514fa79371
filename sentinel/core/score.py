# sentinel/core/score.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from sentinel.constants import TIER_THRESHOLDS
from sentinel.core.models import CategoryScore, SignalResult, Tier


def round_half_up(x: float) -> int:
    """Nearest integer, .5 rounds up (toward +inf)."""
    return int(math.floor(x + 0.5))


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def get_tier(score: float) -> Tier:
    """SAFE: 80-100, CAUTION: 60-79, RISKY: 40-59, DANGER: below 40."""
    if score >= TIER_THRESHOLDS["SAFE"]:
        return Tier.SAFE
    if score >= TIER_THRESHOLDS["CAUTION"]:
        return Tier.CAUTION
    if score >= TIER_THRESHOLDS["RISKY"]:
        return Tier.RISKY
    return Tier.DANGER


@dataclass(frozen=True)
class CategorySpec:
    """
    Declared shape of one scoring category.

    ``min_points`` is the sum of the penalty floors of the category's signals,
    ``max_points`` the sum of their ceilings; normalization maps that range to 0..100.
    """
    name: str
    weight: float
    max_points: float
    min_points: float = 0.0

    def percentage(self, raw_score: float) -> float:
        span = self.max_points - self.min_points
        if span <= 0:
            return 0.0
        return clamp((raw_score - self.min_points) / span * 100.0)

    def weighted(self, percentage: float) -> float:
        return percentage / 100.0 * self.weight * 100.0


def build_category(spec: CategorySpec, signals: Sequence[SignalResult]) -> CategoryScore:
    """Sum signal points, normalize against the spec's range and derive the tier."""
    raw = sum(s.points for s in signals)
    pct = spec.percentage(raw)
    return CategoryScore(
        name=spec.name,
        weight=spec.weight,
        raw_score=raw,
        max_score=spec.max_points,
        weighted_score=spec.weighted(pct),
        tier=get_tier(pct),
        signals=list(signals),
    )


def empty_category(spec: CategorySpec, signal: SignalResult) -> CategoryScore:
    """Degenerate result: zero contribution, DANGER, one explanatory signal."""
    return CategoryScore(
        name=spec.name,
        weight=spec.weight,
        raw_score=0,
        max_score=spec.max_points,
        weighted_score=0.0,
        tier=Tier.DANGER,
        signals=[signal],
    )


def error_category(spec: CategorySpec, error: BaseException) -> CategoryScore:
    cause = str(error) or type(error).__name__
    return empty_category(
        spec,
        SignalResult("Error", 0, spec.max_points, f"Failed to score: {cause}"),
    )


def compute_composite_score(categories: Iterable[CategoryScore]) -> int:
    """
    Weighted average of category percentages on a 0..100 scale.

    Each category's ``weighted_score`` already carries its weight, so dividing the
    sum by the participating weights redistributes any skipped category's share.
    Clamped to [0, 100] and rounded half-up.
    """
    cats: List[CategoryScore] = list(categories)
    total_weight = sum(c.weight for c in cats)
    if total_weight <= 0:
        return 0
    total = sum(c.weighted_score for c in cats) / total_weight
    return int(clamp(round_half_up(total)))
