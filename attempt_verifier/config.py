"""Central configuration for the trail attempt verifier.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Every value can be overridden through an environment
variable of the same name (optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _env_str(key: str, default: str) -> str:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Reference route
# ---------------------------------------------------------------------------
# GPX file holding the official route. Paths can be absolute or relative.
OFFICIAL_ROUTE_PATH = _env_str("OFFICIAL_ROUTE_PATH", "data/route_official.gpx")


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------
# Maximum distance (metres) for an attempt point to count as "on route".
COVERAGE_TOLERANCE_M = _env_float("COVERAGE_TOLERANCE_M", 30.0)

# Shared cap applied to both tracks before the nearest-neighbour scan.
ALIGNMENT_MAX_POINTS = _env_int("ALIGNMENT_MAX_POINTS", 5000)

# "sliding" (forward-only cursor, O(M+N)) or "exact" (global search, O(M*N)).
ALIGNMENT_STRATEGY = _env_str("ALIGNMENT_STRATEGY", "sliding").lower()


# ---------------------------------------------------------------------------
# Classification policy
# ---------------------------------------------------------------------------
# Attempts below this coverage ratio are rejected outright.
REJECT_BELOW_COVERAGE = _env_float("REJECT_BELOW_COVERAGE", 0.50)

# Attempts at or above this coverage ratio are verified; the band between the
# two thresholds is flagged for manual review.
VERIFY_AT_COVERAGE = _env_float("VERIFY_AT_COVERAGE", 0.90)


# ---------------------------------------------------------------------------
# Display / re-parse cache
# ---------------------------------------------------------------------------
# Maximum number of re-parsed attempt tracks kept in memory for map display.
DISPLAY_TRACK_CACHE_SIZE = _env_int("DISPLAY_TRACK_CACHE_SIZE", 64)

# Seconds before a cached display track is parsed again.
DISPLAY_TRACK_CACHE_TTL_S = _env_int("DISPLAY_TRACK_CACHE_TTL_S", 3600)


# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------
API_HOST = _env_str("API_HOST", "127.0.0.1")
API_PORT = _env_int("API_PORT", 8080)

# Uploads larger than this are refused with HTTP 413. Multi-hour recordings at
# 1 Hz stay well below 20 MB of GPX.
MAX_UPLOAD_BYTES = _env_int("MAX_UPLOAD_BYTES", 20 * 1024 * 1024)


# ---------------------------------------------------------------------------
# Excel export
# ---------------------------------------------------------------------------
# Automatically size columns after writing each sheet (openpyxl only).
EXCEL_AUTOSIZE_COLUMNS = _env_bool("EXCEL_AUTOSIZE_COLUMNS", True)
EXCEL_AUTOSIZE_MAX_WIDTH = 50  # characters
EXCEL_AUTOSIZE_MIN_WIDTH = 6  # characters
EXCEL_AUTOSIZE_PADDING = 2  # extra characters added to the detected max
EXCEL_AUTOSIZE_MAX_ROWS = (
    5000  # skip autosize for very large sheets (performance guard)
)

# Column order used for the attempts sheet. Missing columns are ignored.
ATTEMPT_COLUMN_ORDER = [
    "Attempt ID",
    "Runner",
    "Attempt Time",
    "Result",
    "Distance (km)",
    "Elevation Gain (m)",
    "Coverage Ratio",
    "Max Deviation (m)",
    "Difficulty Score",
    "Message",
]


# ---------------------------------------------------------------------------
# Deviation map
# ---------------------------------------------------------------------------
# Offset (metres) above which attempt samples are highlighted as divergent.
# Unset means "use the tolerance the map is drawn with" so the map matches
# the verdict.
_deviation_map_threshold = os.getenv("DEVIATION_MAP_THRESHOLD_M")
DEVIATION_MAP_THRESHOLD_M: float | None = (
    _env_float("DEVIATION_MAP_THRESHOLD_M", COVERAGE_TOLERANCE_M)
    if _deviation_map_threshold and _deviation_map_threshold.strip()
    else None
)
