"""Geometry helpers: distances, downsampling, route alignment and map overlays."""

from .distance import (
    EARTH_RADIUS_M,
    elevation_gain_m,
    haversine_m,
    haversine_m_array,
    track_distance_km,
)
from .preprocessing import downsample, downsample_indices
from .alignment import (
    AlignmentResult,
    CoverageCalculator,
    ExactCoverageCalculator,
    SlidingCoverageCalculator,
    build_coverage_calculator,
    compute_metrics,
)

__all__ = [
    "EARTH_RADIUS_M",
    "elevation_gain_m",
    "haversine_m",
    "haversine_m_array",
    "track_distance_km",
    "downsample",
    "downsample_indices",
    "AlignmentResult",
    "CoverageCalculator",
    "ExactCoverageCalculator",
    "SlidingCoverageCalculator",
    "build_coverage_calculator",
    "compute_metrics",
]
