"""Tests for verdict classification thresholds."""

from __future__ import annotations

import math

import pytest

from attempt_verifier.classification import VERDICT_MESSAGES, classify
from attempt_verifier.models import Verdict


@pytest.mark.parametrize(
    "coverage,expected",
    [
        (1.0, Verdict.VERIFIED),
        (0.90, Verdict.VERIFIED),
        (0.8999, Verdict.FLAGGED),
        (0.70, Verdict.FLAGGED),
        (0.50, Verdict.FLAGGED),
        (0.4999, Verdict.REJECTED),
        (0.0, Verdict.REJECTED),
    ],
)
def test_coverage_thresholds(coverage: float, expected: Verdict) -> None:
    result = classify(coverage, 10.0)

    assert result.verdict is expected
    assert result.message == VERDICT_MESSAGES[expected]


@pytest.mark.parametrize("deviation", [None, math.nan])
def test_undefined_deviation_is_rejected_even_with_full_coverage(deviation) -> None:
    result = classify(1.0, deviation)

    assert result.verdict is Verdict.REJECTED


def test_large_deviation_alone_does_not_reject() -> None:
    assert classify(0.95, 5_000.0).verdict is Verdict.VERIFIED


def test_thresholds_can_be_overridden() -> None:
    assert classify(0.6, 1.0, reject_below=0.7, verify_at=0.95).verdict is Verdict.REJECTED
    assert classify(0.6, 1.0, reject_below=0.2, verify_at=0.6).verdict is Verdict.VERIFIED


def test_each_verdict_has_distinct_message() -> None:
    assert set(VERDICT_MESSAGES) == set(Verdict)
    assert len(set(VERDICT_MESSAGES.values())) == len(Verdict)
