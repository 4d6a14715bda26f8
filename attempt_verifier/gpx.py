"""GPX point-stream parser.

Parsing is structure-aware: documents go through :mod:`defusedxml` so that
namespaces, prefixed tags, escaped text and entity tricks are all handled by a
real XML parser instead of text scanning. Elements are matched by local name,
which lets GPX 1.0, GPX 1.1 and un-namespaced exports share one code path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import math
from typing import List, Optional, Tuple, Union, TYPE_CHECKING

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as ET

from .models import GeoPoint

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from xml.etree.ElementTree import Element

LOGGER = logging.getLogger(__name__)

# Point elements accepted from track logs and planned routes.
POINT_TAGS = frozenset({"trkpt", "rtept"})

RawTrack = Union[bytes, bytearray, memoryview, str, None]


@dataclass(frozen=True, slots=True)
class ParseStats:
    """Diagnostic counts gathered while parsing a document."""

    found: int
    accepted: int

    @property
    def dropped(self) -> int:
        return self.found - self.accepted


def _local_name(tag: object) -> str:
    """Return ``tag`` without any ``{namespace}`` or ``prefix:`` qualifier."""

    if not isinstance(tag, str):
        # Comments and processing instructions carry callables as tags.
        return ""
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    if ":" in tag:
        tag = tag.rsplit(":", 1)[1]
    return tag.lower()


def _attribute(element: "Element", name: str) -> Optional[str]:
    value = element.get(name)
    if value is not None:
        return value
    for key, candidate in element.attrib.items():
        if _local_name(key) == name:
            return candidate
    return None


def _child_text(element: "Element", name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name:
            text = "".join(child.itertext()).strip()
            return text or None
    return None


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_iso8601(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO timestamps, normalising a trailing ``Z`` and naive values to UTC."""

    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _build_point(element: "Element") -> Optional[GeoPoint]:
    lat = _parse_float(_attribute(element, "lat"))
    lon = _parse_float(_attribute(element, "lon"))
    if lat is None or lon is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return GeoPoint(
        latitude=lat,
        longitude=lon,
        elevation_m=_parse_float(_child_text(element, "ele")),
        time=parse_iso8601(_child_text(element, "time")),
    )


def _coerce_bytes(raw: RawTrack) -> bytes:
    if isinstance(raw, str):
        return raw.encode("utf-8")
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    return b""


def parse_track_with_stats(raw: RawTrack) -> Tuple[List[GeoPoint], ParseStats]:
    """Return the parsed points together with found/accepted counts.

    Never raises for malformed input: unparsable documents yield an empty list
    and points without a usable latitude/longitude are dropped.
    """

    payload = _coerce_bytes(raw)
    if not payload.strip():
        LOGGER.debug("Empty GPX payload; returning no points")
        return [], ParseStats(found=0, accepted=0)
    try:
        root = ET.fromstring(payload)
    except (ET.ParseError, DefusedXmlException, LookupError, ValueError) as exc:
        # LookupError: unknown declared encoding.
        LOGGER.warning("Failed to parse GPX input: %s", exc)
        return [], ParseStats(found=0, accepted=0)

    points: List[GeoPoint] = []
    found = 0
    for element in root.iter():
        if _local_name(element.tag) not in POINT_TAGS:
            continue
        found += 1
        point = _build_point(element)
        if point is not None:
            points.append(point)

    stats = ParseStats(found=found, accepted=len(points))
    LOGGER.info(
        "Found %d track points, returning %d valid points",
        stats.found,
        stats.accepted,
    )
    return points, stats


def parse_track(raw: RawTrack) -> List[GeoPoint]:
    """Convert raw GPX bytes into an ordered list of :class:`GeoPoint`."""

    points, _stats = parse_track_with_stats(raw)
    return points


__all__ = [
    "POINT_TAGS",
    "ParseStats",
    "parse_iso8601",
    "parse_track",
    "parse_track_with_stats",
]
