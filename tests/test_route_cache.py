"""Tests for reference route providers and the shared route cache."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import threading
import time
from typing import List, Sequence

import pytest

from attempt_verifier.errors import RouteUnavailableError
from attempt_verifier.models import GeoPoint
from attempt_verifier.routes import (
    GpxFileRouteProvider,
    ReferenceRouteCache,
    StaticRouteProvider,
)


class CountingProvider:
    """Provider returning a fixed route and recording every call."""

    def __init__(self, points: Sequence[GeoPoint], delay: float = 0.0) -> None:
        self.points = list(points)
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def get_reference_track(self) -> Sequence[GeoPoint]:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.points


class FlakyProvider:
    """Fail (or return nothing) for the first ``failures`` calls."""

    def __init__(self, points: Sequence[GeoPoint], failures: int, exc: bool) -> None:
        self.points = list(points)
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def get_reference_track(self) -> Sequence[GeoPoint]:
        self.calls += 1
        if self.calls <= self.failures:
            if self.exc:
                raise OSError("storage offline")
            return []
        return self.points


def test_route_is_loaded_once_and_reused(route) -> None:
    provider = CountingProvider(route)
    cache = ReferenceRouteCache(provider)

    assert not cache.is_loaded
    first = cache.get()
    second = cache.get()

    assert provider.calls == 1
    assert first is second
    assert list(first) == route
    assert cache.is_loaded


def test_concurrent_first_calls_trigger_single_load(route) -> None:
    provider = CountingProvider(route, delay=0.05)
    cache = ReferenceRouteCache(provider)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _idx: cache.get(), range(16)))

    assert provider.calls == 1
    assert all(result is results[0] for result in results)


def test_empty_route_raises_and_is_retried(route) -> None:
    provider = FlakyProvider(route, failures=1, exc=False)
    cache = ReferenceRouteCache(provider)

    with pytest.raises(RouteUnavailableError):
        cache.get()
    assert not cache.is_loaded

    assert len(cache.get()) == len(route)
    assert provider.calls == 2


def test_provider_failure_is_wrapped_and_retried(route) -> None:
    provider = FlakyProvider(route, failures=2, exc=True)
    cache = ReferenceRouteCache(provider)

    for _ in range(2):
        with pytest.raises(RouteUnavailableError) as excinfo:
            cache.get()
        assert isinstance(excinfo.value.__cause__, OSError)

    assert len(cache.get()) == len(route)
    assert provider.calls == 3


def test_cached_route_cannot_be_mutated(route) -> None:
    cache = ReferenceRouteCache(StaticRouteProvider(route))

    loaded = cache.get()

    assert isinstance(loaded, tuple)
    with pytest.raises(AttributeError):
        loaded.append(route[0])  # type: ignore[attr-defined]


def test_file_provider_reads_gpx(tmp_path: Path, route, gpx_bytes) -> None:
    path = tmp_path / "official.gpx"
    path.write_bytes(gpx_bytes(route))

    points = GpxFileRouteProvider(path).get_reference_track()

    assert list(points) == route


def test_missing_file_gives_empty_route_and_cache_error(tmp_path: Path) -> None:
    provider = GpxFileRouteProvider(tmp_path / "missing.gpx")

    assert list(provider.get_reference_track()) == []
    with pytest.raises(RouteUnavailableError):
        ReferenceRouteCache(provider).get()


def test_bundled_sample_route_parses() -> None:
    sample = Path(__file__).resolve().parents[1] / "data" / "route_official.gpx"

    points: List[GeoPoint] = list(GpxFileRouteProvider(sample).get_reference_track())

    assert len(points) == 60
    assert all(point.elevation_m is not None for point in points)
