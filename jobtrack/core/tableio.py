from __future__ import annotations

import csv
import logging
from pathlib import Path

import pandas as pd

from jobtrack.core.validation import ReportError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xls", ".xlsm"}


def _read_csv(path: Path) -> list[list[str]]:
    # csv keeps each row at its true width so short rows can be flagged later
    with path.open("r", encoding="utf-8-sig", newline="") as fp:
        return [list(row) for row in csv.reader(fp)]


def _read_excel(path: Path, sheet_name: str | int | None) -> list[list[str]]:
    frame = pd.read_excel(path, sheet_name=sheet_name or 0, header=None, dtype=str)
    frame = frame.fillna("")
    return [[str(cell) for cell in row] for row in frame.itertuples(index=False, name=None)]


def read_table(path: Path | str, sheet_name: str | int | None = None) -> list[list[str]]:
    """Read an export into a list of string rows, preamble included."""

    source = Path(path)
    suffix = source.suffix.lower()
    if suffix == ".csv":
        rows = _read_csv(source)
    elif suffix in EXCEL_SUFFIXES:
        rows = _read_excel(source, sheet_name)
    else:
        raise ReportError(f"Unsupported file type: {source.name}")
    logger.debug("Read %d rows from %s", len(rows), source.name)
    return rows
