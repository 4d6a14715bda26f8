"""Central error types used across the application."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised for contract violations such as a negative tolerance.

    These signal misconfiguration rather than bad input data, so they are the
    only errors allowed to abort a verification call.
    """


class RouteUnavailableError(RuntimeError):
    """Raised when the reference route cannot be loaded or is empty."""


class AttemptNotFoundError(LookupError):
    """Raised when an attempt identifier does not exist in the store."""


__all__ = [
    "ConfigurationError",
    "RouteUnavailableError",
    "AttemptNotFoundError",
]
