"""Difficulty scoring policies for verified attempts."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional, Protocol


class DifficultyModel(Protocol):
    """Scoring policy mapping attempt metrics to a non-negative scalar."""

    def compute_score(
        self,
        distance_km: float,
        elevation_gain_m: float,
        coverage_ratio: float,
        max_deviation_m: Optional[float],
    ) -> float: ...


@dataclass(frozen=True, slots=True)
class DefaultDifficultyModel:
    """Distance plus scaled climb, rewarded for coverage, penalised for deviation.

    ``score = max(distance_km + elevation_gain_m / climb_divisor
    + coverage_ratio * coverage_weight - penalty, 0)`` where the penalty is
    ``max_deviation_m / deviation_divisor`` capped at ``max_penalty``. An
    undefined deviation takes the full penalty.
    """

    climb_divisor: float = 100.0
    coverage_weight: float = 10.0
    deviation_divisor: float = 50.0
    max_penalty: float = 10.0

    def compute_score(
        self,
        distance_km: float,
        elevation_gain_m: float,
        coverage_ratio: float,
        max_deviation_m: Optional[float],
    ) -> float:
        base = distance_km + elevation_gain_m / self.climb_divisor
        bonus = coverage_ratio * self.coverage_weight
        if max_deviation_m is None or math.isnan(max_deviation_m):
            penalty = self.max_penalty
        else:
            penalty = min(max_deviation_m / self.deviation_divisor, self.max_penalty)
        return max(base + bonus - penalty, 0.0)


__all__ = ["DefaultDifficultyModel", "DifficultyModel"]
