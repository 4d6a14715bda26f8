"""Benchmark attempt parsing and alignment on long synthetic recordings."""

from __future__ import annotations

import argparse
import statistics
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Late imports rely on the adjusted sys.path above.
from attempt_verifier.config import (  # noqa: E402
    ALIGNMENT_MAX_POINTS,
    COVERAGE_TOLERANCE_M,
)
from attempt_verifier.geometry.alignment import (  # noqa: E402
    ExactCoverageCalculator,
    SlidingCoverageCalculator,
)
from attempt_verifier.gpx import parse_track  # noqa: E402
from attempt_verifier.models import GeoPoint  # noqa: E402


@dataclass(slots=True)
class StageDurations:
    """Timing measurements (in seconds) for one benchmark iteration."""

    parse: float
    sliding: float
    exact: float


@dataclass(slots=True)
class BenchmarkSummary:
    point_count: int
    max_points: int
    iterations: int
    mean_parse_ms: float
    mean_sliding_ms: float
    mean_exact_ms: float
    worst_sliding_ms: float


def _build_track(point_count: int) -> List[GeoPoint]:
    """Generate a northbound track sampled roughly every 1.3 m."""

    base_time = datetime(2025, 1, 1, tzinfo=timezone.utc)
    step_deg = 1.2e-5
    return [
        GeoPoint(
            latitude=37.0 + idx * step_deg,
            longitude=-122.0,
            elevation_m=100.0 + (idx % 50) * 0.2,
            time=base_time + timedelta(seconds=idx),
        )
        for idx in range(point_count)
    ]


def _render(points: List[GeoPoint]) -> bytes:
    body = "".join(
        f'<trkpt lat="{pt.latitude!r}" lon="{pt.longitude!r}">'
        f"<ele>{pt.elevation_m}</ele></trkpt>"
        for pt in points
    )
    return (
        '<gpx xmlns="http://www.topografix.com/GPX/1/1"><trk><trkseg>'
        f"{body}</trkseg></trk></gpx>"
    ).encode("utf-8")


def _run_iteration(
    payload: bytes,
    reference: List[GeoPoint],
    max_points: int,
    include_exact: bool,
) -> StageDurations:
    start = time.perf_counter()
    attempt = parse_track(payload)
    parse = time.perf_counter() - start

    start = time.perf_counter()
    result = SlidingCoverageCalculator(max_points).align(
        attempt, reference, COVERAGE_TOLERANCE_M
    )
    sliding = time.perf_counter() - start
    if result.coverage_ratio < 1.0:
        raise RuntimeError("Synthetic attempt failed to cover the reference route")

    exact = 0.0
    if include_exact:
        start = time.perf_counter()
        ExactCoverageCalculator(max_points).align(
            attempt, reference, COVERAGE_TOLERANCE_M
        )
        exact = time.perf_counter() - start

    return StageDurations(parse=parse, sliding=sliding, exact=exact)


def run_benchmark(
    point_count: int,
    iterations: int,
    max_points: int = ALIGNMENT_MAX_POINTS,
    include_exact: bool = False,
) -> BenchmarkSummary:
    """Benchmark parsing plus alignment and return aggregated timings."""

    if point_count < 1000:
        raise ValueError("point_count must be at least 1,000")
    if iterations <= 0:
        raise ValueError("iterations must be positive")

    reference = _build_track(point_count)
    payload = _render(reference)

    durations = [
        _run_iteration(payload, reference, max_points, include_exact)
        for _ in range(iterations)
    ]
    return BenchmarkSummary(
        point_count=point_count,
        max_points=max_points,
        iterations=iterations,
        mean_parse_ms=statistics.fmean(d.parse for d in durations) * 1000.0,
        mean_sliding_ms=statistics.fmean(d.sliding for d in durations) * 1000.0,
        mean_exact_ms=statistics.fmean(d.exact for d in durations) * 1000.0,
        worst_sliding_ms=max(d.sliding for d in durations) * 1000.0,
    )


def _format_summary(summary: BenchmarkSummary) -> Dict[str, float]:
    return {
        "point_count": summary.point_count,
        "max_points": summary.max_points,
        "iterations": summary.iterations,
        "mean_parse_ms": summary.mean_parse_ms,
        "mean_sliding_ms": summary.mean_sliding_ms,
        "mean_exact_ms": summary.mean_exact_ms,
        "worst_sliding_ms": summary.worst_sliding_ms,
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark GPX parsing and route alignment",
    )
    parser.add_argument(
        "--points",
        type=int,
        default=36000,
        help="Points in the synthetic attempt (10 h at 1 Hz by default)",
    )
    parser.add_argument("--iterations", type=int, default=3)
    parser.add_argument("--max-points", type=int, default=ALIGNMENT_MAX_POINTS)
    parser.add_argument(
        "--exact",
        action="store_true",
        help="Also time the O(M*N) exact calculator",
    )
    return parser.parse_args()


def main() -> None:
    """Entry point when running the module as a script."""

    args = _parse_args()
    summary = run_benchmark(args.points, args.iterations, args.max_points, args.exact)
    for key, value in _format_summary(summary).items():
        if key in {"point_count", "max_points", "iterations"}:
            print(f"{key}: {value}")
        else:
            print(f"{key}: {value:.3f}")


if __name__ == "__main__":
    main()
