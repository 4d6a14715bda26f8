"""Trail attempt verifier package."""

from .main import main
from .models import AttemptRecord, GeoPoint, Metrics, Verdict
from .errors import AttemptNotFoundError, ConfigurationError, RouteUnavailableError
from .gpx import parse_track
from .services import VerificationService, VerificationServiceConfig

__all__ = [
    "main",
    "AttemptRecord",
    "GeoPoint",
    "Metrics",
    "Verdict",
    "AttemptNotFoundError",
    "ConfigurationError",
    "RouteUnavailableError",
    "parse_track",
    "VerificationService",
    "VerificationServiceConfig",
]
