"""Service layer package.

Exports high-level services consumed by orchestration / presentation layers.
"""

from .verification_service import (
    VerificationService,
    VerificationServiceConfig,
    build_default_service,
)

__all__ = ["VerificationService", "VerificationServiceConfig", "build_default_service"]
