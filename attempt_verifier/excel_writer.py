"""Excel export of persisted attempts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .config import (
    ATTEMPT_COLUMN_ORDER,
    EXCEL_AUTOSIZE_COLUMNS,
    EXCEL_AUTOSIZE_MAX_ROWS,
    EXCEL_AUTOSIZE_MAX_WIDTH,
    EXCEL_AUTOSIZE_MIN_WIDTH,
    EXCEL_AUTOSIZE_PADDING,
)
from .models import AttemptRecord, Verdict

ATTEMPTS_SHEET = "Attempts"
SUMMARY_SHEET = "Summary"
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFFF40FF")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)

LOGGER = logging.getLogger(__name__)

PathInput = str | Path | PathLike[str]


def _excel_time(value: datetime) -> datetime:
    # openpyxl rejects timezone-aware datetimes; store UTC wall-clock time.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _attempt_row(record: AttemptRecord) -> Dict[str, Any]:
    metrics = record.metrics
    return {
        "Attempt ID": record.attempt_id,
        "Runner": record.runner_id,
        "Attempt Time": _excel_time(record.attempt_time),
        "Result": record.verdict.value,
        "Distance (km)": round(metrics.distance_km, 3),
        "Elevation Gain (m)": round(metrics.elevation_gain_m, 1),
        "Coverage Ratio": round(metrics.coverage_ratio, 4),
        "Max Deviation (m)": (
            None if metrics.max_deviation_m is None else round(metrics.max_deviation_m, 1)
        ),
        "Difficulty Score": round(record.difficulty_score, 2),
        "Message": record.message,
    }


def build_attempts_frame(records: Sequence[AttemptRecord]) -> pd.DataFrame:
    """Return one row per attempt in the configured column order."""

    df = pd.DataFrame([_attempt_row(record) for record in records])
    if df.empty:
        return pd.DataFrame(columns=ATTEMPT_COLUMN_ORDER)
    ordered = [c for c in ATTEMPT_COLUMN_ORDER if c in df.columns]
    remaining = [c for c in df.columns if c not in ordered]
    return df[ordered + remaining]


def build_summary_frame(records: Sequence[AttemptRecord]) -> pd.DataFrame:
    """Return attempt counts per verdict plus the best score per verdict."""

    rows: List[Dict[str, Any]] = []
    for verdict in Verdict:
        matching = [r for r in records if r.verdict == verdict]
        rows.append(
            {
                "Result": verdict.value,
                "Attempts": len(matching),
                "Runners": len({r.runner_id for r in matching}),
                "Best Score": (
                    round(max(r.difficulty_score for r in matching), 2)
                    if matching
                    else None
                ),
            }
        )
    return pd.DataFrame(rows)


def write_attempts(filepath: PathInput, records: Sequence[AttemptRecord]) -> None:
    """Write the attempts and a per-verdict summary to an Excel workbook."""

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    attempts_df = build_attempts_frame(records)
    summary_df = build_summary_frame(records)
    with pd.ExcelWriter(
        str(path), engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
    ) as writer:
        for sheet_name, df in ((ATTEMPTS_SHEET, attempts_df), (SUMMARY_SHEET, summary_df)):
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            ws = _get_worksheet(writer, sheet_name)
            if ws is None:
                continue
            _style_header_row(ws, 1, len(df.columns))
            _autosize(ws)
    LOGGER.info("Wrote %d attempts to %s", len(records), path)


def _get_worksheet(writer: pd.ExcelWriter, sheet_name: str) -> Worksheet | None:
    try:
        return writer.book[sheet_name]
    except KeyError:
        return writer.sheets.get(sheet_name)


def _style_header_row(ws: Worksheet, row_idx: int, max_col: int | None = None) -> None:
    if row_idx <= 0:
        return
    max_col = max_col or ws.max_column
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=row_idx, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _autosize(ws: Worksheet) -> None:
    if not EXCEL_AUTOSIZE_COLUMNS:
        return
    if ws.max_row > EXCEL_AUTOSIZE_MAX_ROWS:
        return
    for col_cells in ws.columns:
        max_len = 0
        col_letter = getattr(col_cells[0], "column_letter", None)
        for cell in col_cells:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        width = min(
            EXCEL_AUTOSIZE_MAX_WIDTH,
            max(EXCEL_AUTOSIZE_MIN_WIDTH, max_len + EXCEL_AUTOSIZE_PADDING),
        )
        if col_letter:
            ws.column_dimensions[col_letter].width = width


__all__ = ["build_attempts_frame", "build_summary_frame", "write_attempts"]
