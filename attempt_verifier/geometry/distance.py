"""Great-circle distance helpers and whole-track aggregates."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..models import GeoPoint

MetricArray = NDArray[np.float64]

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(p1: GeoPoint, p2: GeoPoint) -> float:
    """Return the haversine distance in metres between two points."""

    lat1 = math.radians(p1.latitude)
    lat2 = math.radians(p2.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(p2.longitude) - math.radians(p1.longitude)
    a = (
        math.sin(d_lat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2.0) ** 2
    )
    a = min(max(a, 0.0), 1.0)
    return EARTH_RADIUS_M * 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def haversine_m_array(
    lat1: ArrayLike,
    lon1: ArrayLike,
    lat2: ArrayLike,
    lon2: ArrayLike,
) -> MetricArray:
    """Vectorised haversine distance (metres) over broadcastable degree arrays."""

    phi1 = np.radians(np.asarray(lat1, dtype=float))
    phi2 = np.radians(np.asarray(lat2, dtype=float))
    d_phi = phi2 - phi1
    d_lambda = np.radians(np.asarray(lon2, dtype=float)) - np.radians(
        np.asarray(lon1, dtype=float)
    )
    a = np.sin(d_phi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2.0 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))


def _lat_lon_arrays(track: Sequence[GeoPoint]) -> tuple[MetricArray, MetricArray]:
    lats = np.fromiter((pt.latitude for pt in track), dtype=float, count=len(track))
    lons = np.fromiter((pt.longitude for pt in track), dtype=float, count=len(track))
    return lats, lons


def segment_lengths_m(track: Sequence[GeoPoint]) -> MetricArray:
    """Return the haversine length of each consecutive pair in ``track``."""

    if len(track) < 2:
        return np.zeros(0, dtype=float)
    lats, lons = _lat_lon_arrays(track)
    return haversine_m_array(lats[:-1], lons[:-1], lats[1:], lons[1:])


def track_distance_km(track: Sequence[GeoPoint]) -> float:
    """Return the summed consecutive distance of ``track`` in kilometres."""

    lengths = segment_lengths_m(track)
    if lengths.size == 0:
        return 0.0
    return float(np.sum(lengths)) / 1000.0


def elevation_gain_m(track: Sequence[GeoPoint]) -> float:
    """Return the total positive climb across segments with known elevation."""

    gain = 0.0
    for previous, current in zip(track, track[1:]):
        if previous.elevation_m is None or current.elevation_m is None:
            continue
        delta = current.elevation_m - previous.elevation_m
        if delta > 0:
            gain += delta
    return gain


__all__ = [
    "EARTH_RADIUS_M",
    "elevation_gain_m",
    "haversine_m",
    "haversine_m_array",
    "segment_lengths_m",
    "track_distance_km",
]
