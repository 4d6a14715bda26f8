"""Alignment of an attempt track against the reference route.

The default calculator walks a forward-only cursor along the reference route
so that a multi-hour recording compares in near-linear time. It assumes the
attempt follows the route in the same direction without large reversals;
switchbacks that revisit earlier parts of the route can leave the cursor
ahead of the true nearest point and overstate the deviation there. The exact
calculator removes that bias at O(M*N) cost.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Optional, Protocol, Sequence

import numpy as np
from numpy.typing import NDArray

from ..config import ALIGNMENT_MAX_POINTS, ALIGNMENT_STRATEGY, COVERAGE_TOLERANCE_M
from ..errors import ConfigurationError
from ..models import GeoPoint, Metrics
from .distance import elevation_gain_m, haversine_m, haversine_m_array, track_distance_km
from .preprocessing import downsample

MetricArray = NDArray[np.float64]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AlignmentResult:
    """Coverage and deviation figures produced by a single alignment pass."""

    coverage_ratio: float
    max_deviation_m: Optional[float]
    compared_points: int
    covered_points: int
    deviations_m: MetricArray = field(
        default_factory=lambda: np.zeros(0, dtype=float)
    )

    @classmethod
    def empty(cls) -> "AlignmentResult":
        return cls(
            coverage_ratio=0.0,
            max_deviation_m=None,
            compared_points=0,
            covered_points=0,
        )


class CoverageCalculator(Protocol):
    """Strategy interface for comparing an attempt with the reference route."""

    def align(
        self,
        attempt: Sequence[GeoPoint],
        reference: Sequence[GeoPoint],
        tolerance_m: float,
    ) -> AlignmentResult: ...


def validate_tolerance(tolerance_m: float) -> float:
    """Return ``tolerance_m`` as a float or raise for a contract violation."""

    try:
        value = float(tolerance_m)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid tolerance: {tolerance_m!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ConfigurationError(f"Tolerance must be a non-negative number, got {value}")
    return value


def _summarise(deviations: MetricArray, tolerance_m: float) -> AlignmentResult:
    compared = int(deviations.size)
    covered = int(np.count_nonzero(deviations <= tolerance_m))
    return AlignmentResult(
        coverage_ratio=covered / compared,
        max_deviation_m=float(np.max(deviations)),
        compared_points=compared,
        covered_points=covered,
        deviations_m=deviations,
    )


class SlidingCoverageCalculator:
    """Forward-only nearest-neighbour scan over downsampled tracks (O(M+N))."""

    def __init__(self, max_points: int = ALIGNMENT_MAX_POINTS) -> None:
        if max_points < 1:
            raise ConfigurationError(f"max_points must be at least 1, got {max_points}")
        self.max_points = max_points

    def align(
        self,
        attempt: Sequence[GeoPoint],
        reference: Sequence[GeoPoint],
        tolerance_m: float,
    ) -> AlignmentResult:
        tolerance_m = validate_tolerance(tolerance_m)
        if not attempt or not reference:
            return AlignmentResult.empty()

        attempt_points = downsample(attempt, self.max_points)
        route_points = downsample(reference, self.max_points)
        last = len(route_points) - 1
        deviations = np.empty(len(attempt_points), dtype=float)

        cursor = 0
        for idx, point in enumerate(attempt_points):
            current = haversine_m(route_points[cursor], point)
            # Advance only while the next route point is strictly closer.
            while cursor < last:
                following = haversine_m(route_points[cursor + 1], point)
                if following >= current:
                    break
                cursor += 1
                current = following
            deviations[idx] = current

        return _summarise(deviations, tolerance_m)


class ExactCoverageCalculator:
    """Global nearest-neighbour search over downsampled tracks (O(M*N))."""

    def __init__(self, max_points: int = ALIGNMENT_MAX_POINTS) -> None:
        if max_points < 1:
            raise ConfigurationError(f"max_points must be at least 1, got {max_points}")
        self.max_points = max_points

    def align(
        self,
        attempt: Sequence[GeoPoint],
        reference: Sequence[GeoPoint],
        tolerance_m: float,
    ) -> AlignmentResult:
        tolerance_m = validate_tolerance(tolerance_m)
        if not attempt or not reference:
            return AlignmentResult.empty()

        attempt_points = downsample(attempt, self.max_points)
        route_points = downsample(reference, self.max_points)
        route_lats = np.asarray([pt.latitude for pt in route_points], dtype=float)
        route_lons = np.asarray([pt.longitude for pt in route_points], dtype=float)

        deviations = np.empty(len(attempt_points), dtype=float)
        for idx, point in enumerate(attempt_points):
            distances = haversine_m_array(
                point.latitude, point.longitude, route_lats, route_lons
            )
            deviations[idx] = float(np.min(distances))

        return _summarise(deviations, tolerance_m)


_STRATEGIES = {
    "sliding": SlidingCoverageCalculator,
    "exact": ExactCoverageCalculator,
}


def build_coverage_calculator(
    strategy: str = ALIGNMENT_STRATEGY,
    max_points: int = ALIGNMENT_MAX_POINTS,
) -> CoverageCalculator:
    """Return the calculator registered under ``strategy``."""

    key = (strategy or "").strip().lower()
    factory = _STRATEGIES.get(key)
    if factory is None:
        choices = ", ".join(sorted(_STRATEGIES))
        raise ConfigurationError(
            f"Unknown alignment strategy '{strategy}'; expected one of: {choices}"
        )
    return factory(max_points=max_points)


def compute_metrics(
    attempt: Sequence[GeoPoint],
    reference: Sequence[GeoPoint],
    tolerance_m: float = COVERAGE_TOLERANCE_M,
    calculator: Optional[CoverageCalculator] = None,
) -> Metrics:
    """Return distance, climb, coverage and deviation for an attempt.

    Coverage and deviation come from the (downsampled) alignment pass; distance
    and elevation gain are computed over the full attempt track.
    """

    if calculator is None:
        calculator = SlidingCoverageCalculator()
    alignment = calculator.align(attempt, reference, tolerance_m)
    metrics = Metrics(
        distance_km=track_distance_km(attempt),
        elevation_gain_m=elevation_gain_m(attempt),
        coverage_ratio=alignment.coverage_ratio,
        max_deviation_m=alignment.max_deviation_m,
    )
    LOGGER.debug(
        "Aligned %d/%d points within %.1f m (max deviation %s)",
        alignment.covered_points,
        alignment.compared_points,
        tolerance_m,
        alignment.max_deviation_m,
    )
    return metrics


__all__ = [
    "AlignmentResult",
    "CoverageCalculator",
    "ExactCoverageCalculator",
    "SlidingCoverageCalculator",
    "build_coverage_calculator",
    "compute_metrics",
    "validate_tolerance",
]
