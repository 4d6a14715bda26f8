"""Attempt verification service.

Composes the pipeline PARSE -> CHECK_NONEMPTY -> LOAD_REFERENCE ->
COMPUTE_METRICS -> SCORE -> CLASSIFY -> PERSIST. Input and reference-data
failures become REJECTED records (still persisted) instead of exceptions, so
:meth:`VerificationService.verify` never raises for bad uploads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import math
from threading import RLock
from typing import Callable, List, Optional, Sequence

from cachetools import TTLCache

from ..classification import classify
from ..config import (
    ALIGNMENT_MAX_POINTS,
    ALIGNMENT_STRATEGY,
    COVERAGE_TOLERANCE_M,
    DISPLAY_TRACK_CACHE_SIZE,
    DISPLAY_TRACK_CACHE_TTL_S,
    OFFICIAL_ROUTE_PATH,
)
from ..errors import AttemptNotFoundError, ConfigurationError, RouteUnavailableError
from ..geometry.alignment import (
    CoverageCalculator,
    build_coverage_calculator,
    compute_metrics,
    validate_tolerance,
)
from ..gpx import RawTrack, parse_track
from ..models import AttemptRecord, GeoPoint, Metrics, Verdict
from ..routes import GpxFileRouteProvider, ReferenceRouteCache
from ..scoring import DefaultDifficultyModel, DifficultyModel
from ..storage import InMemoryAttemptStore, QueryableAttemptStore

MSG_INVALID_CONTENT = "Invalid GPX content."
MSG_NO_TRACK_POINTS = "No valid track points found."
MSG_ROUTE_UNAVAILABLE = "Official route not available."
MSG_METRICS_FAILED = "Could not compute attempt metrics."
MSG_SCORING_FAILED = "Could not score attempt."

TrackParser = Callable[[RawTrack], Sequence[GeoPoint]]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clamp_score(score: float) -> float:
    """Return ``score`` as a finite non-negative float (NaN/inf/negatives -> 0)."""

    value = float(score)
    if math.isfinite(value) and value > 0:
        return value
    return 0.0


@dataclass(slots=True)
class VerificationServiceConfig:
    parser: TrackParser = parse_track
    difficulty_model: DifficultyModel = field(default_factory=DefaultDifficultyModel)
    coverage_calculator: Optional[CoverageCalculator] = None
    tolerance_m: float = COVERAGE_TOLERANCE_M
    clock: Clock = _utc_now
    display_cache_size: int = DISPLAY_TRACK_CACHE_SIZE
    display_cache_ttl_s: int = DISPLAY_TRACK_CACHE_TTL_S
    logger: logging.Logger | None = None


class VerificationService:
    def __init__(
        self,
        route_cache: ReferenceRouteCache,
        attempt_store: QueryableAttemptStore,
        config: VerificationServiceConfig | None = None,
    ) -> None:
        self.config = config or VerificationServiceConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self._route_cache = route_cache
        self._store = attempt_store
        self._tolerance_m = validate_tolerance(self.config.tolerance_m)
        self._calculator = (
            self.config.coverage_calculator or build_coverage_calculator()
        )
        self._display_cache: TTLCache[int, List[GeoPoint]] = TTLCache(
            maxsize=max(1, self.config.display_cache_size),
            ttl=max(1, self.config.display_cache_ttl_s),
        )
        self._display_cache_lock = RLock()

    @property
    def tolerance_m(self) -> float:
        return self._tolerance_m

    @property
    def route_cache(self) -> ReferenceRouteCache:
        return self._route_cache

    @property
    def coverage_calculator(self) -> CoverageCalculator:
        return self._calculator

    def verify(self, raw_track: RawTrack, runner_id: str) -> AttemptRecord:
        """Verify an uploaded track and persist the resulting attempt record."""

        runner_id = (runner_id or "").strip()
        raw_bytes = self._raw_bytes(raw_track)

        try:
            attempt_track = self.config.parser(raw_bytes)
        except Exception as exc:
            self._log.warning("GPX parse error for runner=%s: %s", runner_id, exc)
            return self._reject(runner_id, raw_bytes, MSG_INVALID_CONTENT)

        if not attempt_track:
            return self._reject(runner_id, raw_bytes, MSG_NO_TRACK_POINTS)

        try:
            reference = self._route_cache.get()
        except RouteUnavailableError as exc:
            self._log.error("Reference route unavailable: %s", exc)
            return self._reject(runner_id, raw_bytes, MSG_ROUTE_UNAVAILABLE)

        try:
            metrics = compute_metrics(
                attempt_track,
                reference,
                self._tolerance_m,
                calculator=self._calculator,
            )
        except ConfigurationError:
            raise
        except Exception as exc:
            self._log.error(
                "Metric computation failed for runner=%s: %s",
                runner_id,
                exc,
                exc_info=True,
            )
            return self._reject(runner_id, raw_bytes, MSG_METRICS_FAILED)

        try:
            score = self.config.difficulty_model.compute_score(
                metrics.distance_km,
                metrics.elevation_gain_m,
                metrics.coverage_ratio,
                metrics.max_deviation_m,
            )
            outcome = classify(metrics.coverage_ratio, metrics.max_deviation_m)
            record = AttemptRecord(
                runner_id=runner_id,
                attempt_time=self._now(),
                metrics=metrics,
                difficulty_score=_clamp_score(score),
                verdict=outcome.verdict,
                message=outcome.message,
                track_bytes=raw_bytes,
            )
        except ConfigurationError:
            raise
        except Exception as exc:
            self._log.error(
                "Scoring failed for runner=%s: %s",
                runner_id,
                exc,
                exc_info=True,
            )
            return self._reject(runner_id, raw_bytes, MSG_SCORING_FAILED)
        self._log.info(
            "runner=%s result=%s coverage=%.3f max_deviation=%s distance_km=%.2f",
            runner_id,
            outcome.verdict.value,
            metrics.coverage_ratio,
            metrics.max_deviation_m,
            metrics.distance_km,
        )
        return self._persist(record)

    def load_track_for_display(self, stored_bytes: RawTrack) -> List[GeoPoint]:
        """Re-parse previously stored raw bytes with the verification parser."""

        if not stored_bytes:
            return []
        try:
            return list(self.config.parser(stored_bytes))
        except Exception as exc:
            self._log.warning("Failed to re-parse stored GPX: %s", exc)
            return []

    def load_attempt_track(self, attempt_id: int) -> List[GeoPoint]:
        """Return the parsed track of a stored attempt, or an empty list."""

        with self._display_cache_lock:
            cached = self._display_cache.get(attempt_id)
        if cached is not None:
            return list(cached)
        record = self._store.find_by_id(attempt_id)
        if record is None:
            return []
        points = self.load_track_for_display(record.track_bytes)
        with self._display_cache_lock:
            self._display_cache[attempt_id] = points
        return list(points)

    def get_attempt(self, attempt_id: int) -> AttemptRecord:
        record = self._store.find_by_id(attempt_id)
        if record is None:
            raise AttemptNotFoundError(f"Attempt ID {attempt_id} not found.")
        return record

    def list_attempts(
        self,
        runner_id: Optional[str] = None,
        verdict: Optional[str | Verdict] = None,
    ) -> List[AttemptRecord]:
        """Return stored attempts newest first, optionally filtered."""

        runner = (runner_id or "").strip()
        result: Optional[Verdict] = None
        if verdict is not None and str(verdict).strip():
            try:
                result = Verdict(str(getattr(verdict, "value", verdict)).strip().upper())
            except ValueError:
                return []
        if runner and result is not None:
            return self._store.find_by_runner_and_verdict(runner, result)
        if runner:
            return self._store.find_by_runner(runner)
        if result is not None:
            return self._store.find_by_verdict(result)
        return self._store.find_all()

    def _reject(
        self, runner_id: str, raw_bytes: Optional[bytes], message: str
    ) -> AttemptRecord:
        self._log.info("runner=%s result=REJECTED reason=%s", runner_id, message)
        record = AttemptRecord(
            runner_id=runner_id,
            attempt_time=self._now(),
            metrics=Metrics.empty(),
            difficulty_score=0.0,
            verdict=Verdict.REJECTED,
            message=message,
            track_bytes=raw_bytes,
        )
        return self._persist(record)

    def _now(self) -> datetime:
        try:
            return self.config.clock()
        except Exception as exc:
            self._log.error("Injected clock failed, using UTC now: %s", exc)
            return _utc_now()

    def _persist(self, record: AttemptRecord) -> AttemptRecord:
        try:
            return self._store.save(record)
        except Exception as exc:
            self._log.error(
                "Failed to persist attempt for runner=%s: %s",
                record.runner_id,
                exc,
                exc_info=True,
            )
            return record

    @staticmethod
    def _raw_bytes(raw_track: RawTrack) -> Optional[bytes]:
        if isinstance(raw_track, str):
            return raw_track.encode("utf-8")
        if isinstance(raw_track, (bytes, bytearray, memoryview)):
            return bytes(raw_track)
        return None


def build_default_service(
    route_path: str = OFFICIAL_ROUTE_PATH,
    *,
    strategy: str = ALIGNMENT_STRATEGY,
    tolerance_m: float = COVERAGE_TOLERANCE_M,
    max_points: int = ALIGNMENT_MAX_POINTS,
    attempt_store: QueryableAttemptStore | None = None,
) -> VerificationService:
    """Wire a service against a GPX route file and an in-memory store."""

    config = VerificationServiceConfig(
        coverage_calculator=build_coverage_calculator(strategy, max_points),
        tolerance_m=tolerance_m,
    )
    route_cache = ReferenceRouteCache(GpxFileRouteProvider(route_path))
    return VerificationService(
        route_cache,
        attempt_store if attempt_store is not None else InMemoryAttemptStore(),
        config,
    )


__all__ = [
    "MSG_INVALID_CONTENT",
    "MSG_METRICS_FAILED",
    "MSG_NO_TRACK_POINTS",
    "MSG_ROUTE_UNAVAILABLE",
    "MSG_SCORING_FAILED",
    "VerificationService",
    "VerificationServiceConfig",
    "build_default_service",
]
