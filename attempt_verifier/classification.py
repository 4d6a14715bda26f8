"""Pure mapping from alignment metrics to a verification verdict."""

from __future__ import annotations

import math
from typing import Dict, Optional

from .config import REJECT_BELOW_COVERAGE, VERIFY_AT_COVERAGE
from .models import Classification, Verdict

VERDICT_MESSAGES: Dict[Verdict, str] = {
    Verdict.VERIFIED: "Attempt follows the official route.",
    Verdict.FLAGGED: "Attempt partially follows the official route; manual review required.",
    Verdict.REJECTED: "Attempt does not cover enough of the official route.",
}


def classify(
    coverage_ratio: float,
    max_deviation_m: Optional[float],
    *,
    reject_below: float = REJECT_BELOW_COVERAGE,
    verify_at: float = VERIFY_AT_COVERAGE,
) -> Classification:
    """Return the verdict and its fixed message for the given metrics."""

    undefined = max_deviation_m is None or math.isnan(max_deviation_m)
    if undefined or coverage_ratio < reject_below:
        verdict = Verdict.REJECTED
    elif coverage_ratio < verify_at:
        verdict = Verdict.FLAGGED
    else:
        verdict = Verdict.VERIFIED
    return Classification(verdict=verdict, message=VERDICT_MESSAGES[verdict])


__all__ = ["VERDICT_MESSAGES", "classify"]
