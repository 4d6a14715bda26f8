"""Reference route providers and the process-wide route cache."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Iterable, Optional, Protocol, Sequence, Tuple, Union

from .config import OFFICIAL_ROUTE_PATH
from .errors import RouteUnavailableError
from .gpx import parse_track
from .models import GeoPoint

PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


class RouteProvider(Protocol):
    """Collaborator that loads the reference route from configured storage."""

    def get_reference_track(self) -> Sequence[GeoPoint]: ...


class GpxFileRouteProvider:
    """Load the reference route from a GPX file on disk."""

    def __init__(self, path: PathLike = OFFICIAL_ROUTE_PATH) -> None:
        self.path = Path(path)

    def get_reference_track(self) -> Sequence[GeoPoint]:
        if not self.path.is_file():
            LOGGER.error("Official route GPX not found at %s", self.path)
            return []
        try:
            payload = self.path.read_bytes()
        except OSError as exc:
            LOGGER.error("Failed to read official route %s: %s", self.path, exc)
            return []
        return parse_track(payload)


class StaticRouteProvider:
    """Serve a route that is already held in memory."""

    def __init__(self, points: Iterable[GeoPoint]) -> None:
        self._points = tuple(points)

    def get_reference_track(self) -> Sequence[GeoPoint]:
        return self._points


class ReferenceRouteCache:
    """Lazily load the reference route once and share it read-only.

    The first successful load is kept for the lifetime of the cache. Loads are
    serialised by a lock so concurrent first calls trigger a single provider
    call; failed or empty loads are not cached and the next call retries.
    """

    def __init__(self, provider: RouteProvider) -> None:
        self._provider = provider
        self._lock = Lock()
        self._route: Optional[Tuple[GeoPoint, ...]] = None
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def is_loaded(self) -> bool:
        return self._route is not None

    def get(self) -> Tuple[GeoPoint, ...]:
        """Return the cached route, loading it on first use.

        Raises:
            RouteUnavailableError: If the provider fails or returns no points.
        """

        route = self._route
        if route is not None:
            return route
        with self._lock:
            if self._route is None:
                self._route = self._load()
            return self._route

    def _load(self) -> Tuple[GeoPoint, ...]:
        try:
            points = self._provider.get_reference_track()
        except Exception as exc:
            raise RouteUnavailableError(f"Failed to load reference route: {exc}") from exc
        route = tuple(points or ())
        if not route:
            raise RouteUnavailableError("Reference route is empty")
        self._log.info("Loaded reference route with %d points", len(route))
        return route


__all__ = [
    "GpxFileRouteProvider",
    "ReferenceRouteCache",
    "RouteProvider",
    "StaticRouteProvider",
]
