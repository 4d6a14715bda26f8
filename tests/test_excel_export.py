"""Excel export tests for persisted attempts."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

from attempt_verifier.config import ATTEMPT_COLUMN_ORDER
from attempt_verifier.excel_writer import (
    ATTEMPTS_SHEET,
    SUMMARY_SHEET,
    build_attempts_frame,
    build_summary_frame,
    write_attempts,
)
from attempt_verifier.models import AttemptRecord, Metrics, Verdict


def _record(attempt_id: int, runner: str, verdict: Verdict, score: float) -> AttemptRecord:
    metrics = (
        Metrics.empty()
        if verdict is Verdict.REJECTED
        else Metrics(12.3456, 845.26, 0.93751, 18.44)
    )
    return AttemptRecord(
        runner_id=runner,
        attempt_time=datetime(2025, 5, 1, 7, 30, tzinfo=timezone.utc),
        metrics=metrics,
        difficulty_score=score,
        verdict=verdict,
        message="m",
        attempt_id=attempt_id,
    )


RECORDS = [
    _record(1, "alice", Verdict.VERIFIED, 30.123),
    _record(2, "bob", Verdict.VERIFIED, 28.0),
    _record(3, "alice", Verdict.REJECTED, 0.0),
]


def test_attempts_frame_columns_and_rounding() -> None:
    df = build_attempts_frame(RECORDS)

    assert list(df.columns) == ATTEMPT_COLUMN_ORDER
    first = df.iloc[0]
    assert first["Distance (km)"] == 12.346
    assert first["Elevation Gain (m)"] == 845.3
    assert first["Coverage Ratio"] == 0.9375
    assert first["Difficulty Score"] == 30.12
    assert first["Attempt Time"] == datetime(2025, 5, 1, 7, 30)
    assert pd.isna(df.iloc[2]["Max Deviation (m)"])


def test_empty_frame_keeps_headers() -> None:
    df = build_attempts_frame([])

    assert df.empty
    assert list(df.columns) == ATTEMPT_COLUMN_ORDER


def test_summary_counts_per_verdict() -> None:
    summary = build_summary_frame(RECORDS).set_index("Result")

    assert summary.loc["VERIFIED", "Attempts"] == 2
    assert summary.loc["VERIFIED", "Runners"] == 2
    assert summary.loc["VERIFIED", "Best Score"] == 30.12
    assert summary.loc["FLAGGED", "Attempts"] == 0
    assert pd.isna(summary.loc["FLAGGED", "Best Score"])
    assert summary.loc["REJECTED", "Runners"] == 1


def test_write_attempts_creates_styled_workbook(tmp_path: Path) -> None:
    out_path = tmp_path / "nested" / "attempts.xlsx"

    write_attempts(out_path, RECORDS)

    assert out_path.exists()
    with pd.ExcelFile(out_path) as xf:
        assert xf.sheet_names == [ATTEMPTS_SHEET, SUMMARY_SHEET]
        attempts = pd.read_excel(xf, sheet_name=ATTEMPTS_SHEET)
    assert attempts["Attempt ID"].tolist() == [1, 2, 3]

    wb = load_workbook(out_path)
    header = wb[ATTEMPTS_SHEET]["A1"]
    assert header.value == "Attempt ID"
    assert header.font.bold
    assert wb[ATTEMPTS_SHEET].column_dimensions["B"].width >= 8


def test_write_attempts_with_no_records(tmp_path: Path) -> None:
    out_path = tmp_path / "empty.xlsx"

    write_attempts(out_path, [])

    with pd.ExcelFile(out_path) as xf:
        assert SUMMARY_SHEET in xf.sheet_names
