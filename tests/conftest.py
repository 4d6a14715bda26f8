"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable GPX builders and synthetic
tracks so individual test modules do not repeat coordinate arithmetic.
"""
from __future__ import annotations

import math
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from attempt_verifier.geometry.distance import EARTH_RADIUS_M
from attempt_verifier.models import GeoPoint
from attempt_verifier.routes import ReferenceRouteCache, StaticRouteProvider
from attempt_verifier.services import VerificationService, VerificationServiceConfig
from attempt_verifier.storage import InMemoryAttemptStore

GPX_NS = "http://www.topografix.com/GPX/1/1"
START_TIME = datetime(2025, 5, 1, 6, 0, tzinfo=timezone.utc)


# --- Factory helpers -------------------------------------------------
def metres_to_lat_deg(metres: float) -> float:
    """Latitude delta whose haversine length is exactly ``metres``."""
    return math.degrees(metres / EARTH_RADIUS_M)


def make_line_track(
    count: int,
    *,
    lat: float = 10.0,
    lon: float = 20.0,
    step_deg: float = 0.0002,
    elevation_step: Optional[float] = None,
) -> List[GeoPoint]:
    """Eastbound straight track, ~22 m between samples at the default latitude."""
    points = []
    for idx in range(count):
        elevation = None if elevation_step is None else 100.0 + idx * elevation_step
        points.append(
            GeoPoint(
                latitude=lat,
                longitude=lon + idx * step_deg,
                elevation_m=elevation,
                time=START_TIME + timedelta(seconds=idx),
            )
        )
    return points


def offset_north(track: Iterable[GeoPoint], metres: float) -> List[GeoPoint]:
    delta = metres_to_lat_deg(metres)
    return [
        GeoPoint(pt.latitude + delta, pt.longitude, pt.elevation_m, pt.time)
        for pt in track
    ]


def render_gpx(
    points: Sequence[GeoPoint],
    *,
    namespace: Optional[str] = GPX_NS,
    tag: str = "trkpt",
) -> bytes:
    """Serialise ``points`` into a minimal GPX document."""
    ns_attr = f' xmlns="{namespace}"' if namespace else ""
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<gpx version="1.1" creator="tests"{ns_attr}>',
        "<trk><name>Test</name><trkseg>",
    ]
    for pt in points:
        children = ""
        if pt.elevation_m is not None:
            children += f"<ele>{pt.elevation_m}</ele>"
        if pt.time is not None:
            children += f"<time>{pt.time.strftime('%Y-%m-%dT%H:%M:%SZ')}</time>"
        lines.append(
            f'<{tag} lat="{pt.latitude!r}" lon="{pt.longitude!r}">{children}</{tag}>'
        )
    lines.append("</trkseg></trk></gpx>")
    return "\n".join(lines).encode("utf-8")


def build_service(
    route: Sequence[GeoPoint],
    **config_kwargs,
) -> Tuple[VerificationService, InMemoryAttemptStore]:
    store = InMemoryAttemptStore()
    cache = ReferenceRouteCache(StaticRouteProvider(route))
    service = VerificationService(cache, store, VerificationServiceConfig(**config_kwargs))
    return service, store


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def line_track() -> Callable[..., List[GeoPoint]]:
    return make_line_track


@pytest.fixture
def shift_north() -> Callable[[Iterable[GeoPoint], float], List[GeoPoint]]:
    return offset_north


@pytest.fixture
def gpx_bytes() -> Callable[..., bytes]:
    return render_gpx


@pytest.fixture
def route() -> List[GeoPoint]:
    return make_line_track(100, elevation_step=1.0)


@pytest.fixture
def service_factory() -> Callable[..., Tuple[VerificationService, InMemoryAttemptStore]]:
    return build_service
