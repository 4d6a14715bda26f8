"""Dataclasses describing tracks, metrics and verification outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import math
from typing import Any, Dict, Optional, Sequence


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """Single geodetic sample with optional elevation and timestamp."""

    latitude: float
    longitude: float
    elevation_m: Optional[float] = None
    time: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and -90.0 <= self.latitude <= 90.0):
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not (math.isfinite(self.longitude) and -180.0 <= self.longitude <= 180.0):
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "elevation": self.elevation_m,
            "time": self.time.isoformat() if self.time is not None else None,
        }


Track = Sequence[GeoPoint]


class Verdict(str, Enum):
    VERIFIED = "VERIFIED"
    FLAGGED = "FLAGGED"
    REJECTED = "REJECTED"


@dataclass(frozen=True, slots=True)
class Metrics:
    """Derived comparison metrics for one attempt against the reference route.

    ``max_deviation_m`` is ``None`` when either track was empty and the
    deviation is therefore undefined.
    """

    distance_km: float
    elevation_gain_m: float
    coverage_ratio: float
    max_deviation_m: Optional[float]

    def __post_init__(self) -> None:
        if self.distance_km < 0 or self.elevation_gain_m < 0:
            raise ValueError("Distance and elevation gain must be non-negative")
        if not 0.0 <= self.coverage_ratio <= 1.0:
            raise ValueError(f"Coverage ratio out of range: {self.coverage_ratio}")
        if self.max_deviation_m is not None and self.max_deviation_m < 0:
            raise ValueError("Max deviation must be non-negative")

    @classmethod
    def empty(cls) -> "Metrics":
        """Return zeroed metrics with an undefined deviation."""
        return cls(
            distance_km=0.0,
            elevation_gain_m=0.0,
            coverage_ratio=0.0,
            max_deviation_m=None,
        )


@dataclass(frozen=True, slots=True)
class Classification:
    verdict: Verdict
    message: str


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """Persisted outcome of a single verification call."""

    runner_id: str
    attempt_time: datetime
    metrics: Metrics
    difficulty_score: float
    verdict: Verdict
    message: str
    track_bytes: Optional[bytes] = None
    attempt_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly mapping (raw track bytes are omitted)."""

        return {
            "id": self.attempt_id,
            "runnerId": self.runner_id,
            "attemptTime": self.attempt_time.isoformat(),
            "distanceKm": self.metrics.distance_km,
            "elevationGainM": self.metrics.elevation_gain_m,
            "coverageRatio": self.metrics.coverage_ratio,
            "maxDeviationM": self.metrics.max_deviation_m,
            "difficultyScore": self.difficulty_score,
            "result": self.verdict.value,
            "message": self.message,
            "hasTrack": bool(self.track_bytes),
        }


__all__ = [
    "AttemptRecord",
    "Classification",
    "GeoPoint",
    "Metrics",
    "Track",
    "Verdict",
]
