"""Command-line verification of GPX attempts against the official route."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .config import (
    ALIGNMENT_MAX_POINTS,
    ALIGNMENT_STRATEGY,
    COVERAGE_TOLERANCE_M,
    OFFICIAL_ROUTE_PATH,
)
from .errors import ConfigurationError, RouteUnavailableError
from .excel_writer import write_attempts
from .geometry.visualization import create_deviation_map
from .models import AttemptRecord, Verdict
from .services import VerificationService, build_default_service

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_NOT_VERIFIED = 2


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Verify GPX attempts against the official route."
    )
    parser.add_argument("tracks", nargs="+", type=Path, help="Attempt GPX files")
    parser.add_argument("--runner", required=True, help="Runner identifier")
    parser.add_argument(
        "--route",
        type=Path,
        default=Path(OFFICIAL_ROUTE_PATH),
        help=f"Official route GPX (default: {OFFICIAL_ROUTE_PATH})",
    )
    parser.add_argument(
        "--tolerance-m",
        type=float,
        default=COVERAGE_TOLERANCE_M,
        help=f"On-route tolerance in metres (default: {COVERAGE_TOLERANCE_M:g})",
    )
    parser.add_argument(
        "--strategy",
        choices=("sliding", "exact"),
        default=ALIGNMENT_STRATEGY,
        help="Alignment strategy (default: %(default)s)",
    )
    parser.add_argument(
        "--max-points",
        type=int,
        default=ALIGNMENT_MAX_POINTS,
        help="Downsampling cap applied before alignment",
    )
    parser.add_argument(
        "--map",
        type=Path,
        help="Write a deviation map (HTML) for the first track",
    )
    parser.add_argument("--export", type=Path, help="Write attempts to an Excel file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _report(path: Path, record: AttemptRecord) -> None:
    metrics = record.metrics
    deviation = (
        "n/a" if metrics.max_deviation_m is None else f"{metrics.max_deviation_m:.1f} m"
    )
    logging.info(
        "%s: %s (%s) coverage=%.1f%% max_deviation=%s distance=%.2f km "
        "gain=%.0f m score=%.2f",
        path.name,
        record.verdict.value,
        record.message,
        metrics.coverage_ratio * 100.0,
        deviation,
        metrics.distance_km,
        metrics.elevation_gain_m,
        record.difficulty_score,
    )


def _write_map(
    service: VerificationService, track_path: Path, output: Path, max_points: int
) -> None:
    attempt = service.load_track_for_display(track_path.read_bytes())
    try:
        reference = service.route_cache.get()
    except RouteUnavailableError as exc:
        logging.error("Cannot draw deviation map: %s", exc)
        return
    if not attempt:
        logging.error("Cannot draw deviation map: %s has no track points", track_path)
        return
    create_deviation_map(
        attempt,
        reference,
        service.tolerance_m,
        calculator=service.coverage_calculator,
        max_points=max_points,
        output_html_path=output,
    )
    logging.info("Deviation map written to %s", output)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        service = build_default_service(
            str(args.route),
            strategy=args.strategy,
            tolerance_m=args.tolerance_m,
            max_points=args.max_points,
        )
    except ConfigurationError as exc:
        logging.error("Invalid configuration: %s", exc)
        return EXIT_USAGE

    records: List[AttemptRecord] = []
    for track_path in args.tracks:
        try:
            payload = track_path.read_bytes()
        except OSError as exc:
            logging.error("Failed to read %s: %s", track_path, exc)
            return EXIT_USAGE
        record = service.verify(payload, args.runner)
        _report(track_path, record)
        records.append(record)

    if args.map is not None:
        _write_map(service, args.tracks[0], args.map, args.max_points)
    if args.export is not None:
        write_attempts(args.export, records)

    if all(record.verdict == Verdict.VERIFIED for record in records):
        return EXIT_OK
    return EXIT_NOT_VERIFIED


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
