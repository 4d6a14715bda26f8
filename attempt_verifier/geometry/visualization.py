"""Utilities for visualising an attempt against the reference route on a map."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import folium  # Using folium to build an interactive Leaflet map.
import numpy as np

from ..config import ALIGNMENT_MAX_POINTS, DEVIATION_MAP_THRESHOLD_M
from ..models import GeoPoint
from .alignment import AlignmentResult, CoverageCalculator, SlidingCoverageCalculator
from .preprocessing import downsample

LatLon = Tuple[float, float]
PathLike = Union[str, Path]

_ATTEMPT_COLOR = "#2c7bb6"
_ROUTE_COLOR = "#1a9641"
_DIVERGENCE_COLOR = "#d73027"


@dataclass(slots=True)
class DeviationSummary:
    """Summary describing the worst deviation observed in an attempt."""

    index: int
    offset_m: float
    coordinate: LatLon


def _latlon(points: Sequence[GeoPoint]) -> List[LatLon]:
    return [(pt.latitude, pt.longitude) for pt in points]


def _contiguous_runs(indices: np.ndarray) -> List[Tuple[int, int]]:
    """Return inclusive index ranges representing contiguous slices."""

    if indices.size == 0:
        return []
    slices: List[Tuple[int, int]] = []
    start = int(indices[0])
    previous = start
    for value in map(int, indices[1:]):
        if value != previous + 1:
            slices.append((start, previous))
            start = value
        previous = value
    slices.append((start, previous))
    return slices


def _slice_points(
    points: Sequence[LatLon],
    slices: Iterable[Tuple[int, int]],
) -> List[List[LatLon]]:
    segments: List[List[LatLon]] = []
    for start, end in slices:
        if start < 0 or end >= len(points) or end < start:
            continue
        segments.append(list(points[start : end + 1]))
    return segments


def summarise_worst_deviation(
    deviations: Sequence[float],
    coordinates: Sequence[LatLon],
) -> Optional[DeviationSummary]:
    """Return the sample with the largest finite deviation, if any."""

    values = np.asarray(deviations, dtype=float)
    if values.size == 0 or not np.isfinite(values).any():
        return None
    masked = np.where(np.isfinite(values), values, -np.inf)
    index = int(np.argmax(masked))
    return DeviationSummary(
        index=index, offset_m=float(masked[index]), coordinate=coordinates[index]
    )


def create_deviation_map(
    attempt: Sequence[GeoPoint],
    reference: Sequence[GeoPoint],
    tolerance_m: float,
    *,
    threshold_m: Optional[float] = None,
    calculator: Optional[CoverageCalculator] = None,
    max_points: int = ALIGNMENT_MAX_POINTS,
    output_html_path: Optional[PathLike] = None,
) -> Tuple[folium.Map, AlignmentResult]:
    """Create an interactive map that highlights sections far from the route.

    Args:
        attempt: Parsed attempt track.
        reference: Reference route track.
        tolerance_m: Tolerance passed to the coverage calculator.
        threshold_m: Offset in metres treated as divergence; defaults to
            ``DEVIATION_MAP_THRESHOLD_M`` when configured, else ``tolerance_m``.
        calculator: Alignment strategy; must downsample with ``max_points`` so
            its deviations line up with the plotted samples.
        max_points: Cap used to downsample the plotted attempt samples.
        output_html_path: Optional path to persist the map as an HTML file.

    Returns:
        The :class:`folium.Map` and the alignment used to colour it.

    Raises:
        ValueError: If either track is empty or the deviations cannot be aligned
            with the attempt samples.
    """

    if not attempt or not reference:
        raise ValueError("Both attempt and reference tracks are required for a map")
    if threshold_m is None:
        threshold_m = (
            DEVIATION_MAP_THRESHOLD_M
            if DEVIATION_MAP_THRESHOLD_M is not None
            else tolerance_m
        )
    if calculator is None:
        calculator = SlidingCoverageCalculator(max_points=max_points)

    alignment = calculator.align(attempt, reference, tolerance_m)
    sampled = _latlon(downsample(attempt, max_points))
    deviations = alignment.deviations_m
    if len(deviations) != len(sampled):
        raise ValueError("Alignment deviations do not align with attempt samples")

    route_latlon = _latlon(reference)
    exceeding = np.nonzero(np.isfinite(deviations) & (deviations > threshold_m))[0]
    divergent_sections = _slice_points(sampled, _contiguous_runs(exceeding))
    worst = summarise_worst_deviation(deviations, sampled)

    map_center = route_latlon[0] if worst is None else worst.coordinate
    folium_map = folium.Map(location=map_center, zoom_start=14, control_scale=True)
    folium.PolyLine(
        route_latlon,
        color=_ROUTE_COLOR,
        weight=4,
        opacity=0.8,
        tooltip="Official route",
    ).add_to(folium_map)
    folium.PolyLine(
        sampled,
        color=_ATTEMPT_COLOR,
        weight=4,
        opacity=0.5,
        tooltip="Attempt track",
    ).add_to(folium_map)

    for section in divergent_sections:
        if len(section) < 2:
            continue
        folium.PolyLine(
            section,
            color=_DIVERGENCE_COLOR,
            weight=6,
            opacity=0.9,
            tooltip="Off-route section",
        ).add_to(folium_map)

    if worst is not None:
        popup = folium.Popup(
            html=(
                f"<strong>Max deviation:</strong> {worst.offset_m:.1f} m "
                f"(sample {worst.index})<br>"
                f"<strong>Coverage:</strong> {alignment.coverage_ratio:.1%}"
            ),
            max_width=300,
        )
        folium.CircleMarker(
            location=worst.coordinate,
            radius=7,
            color=_DIVERGENCE_COLOR,
            fill=True,
            fill_color=_DIVERGENCE_COLOR,
            tooltip="Highest deviation",
            popup=popup,
        ).add_to(folium_map)

    if output_html_path is not None:
        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        folium_map.save(str(output_path))

    return folium_map, alignment


__all__ = ["DeviationSummary", "create_deviation_map", "summarise_worst_deviation"]
