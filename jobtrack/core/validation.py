from __future__ import annotations

from typing import Sequence


class ReportError(ValueError):
    """Raised when a whole table cannot be processed."""


class SchemaDetectionError(ReportError):
    """Raised when no known header row is found near the top of a table."""


class EmptyReportError(ReportError):
    """Raised when a table has a header but nothing to analyse."""


class MissingColumnError(ReportError):
    """Raised when a column required by an analysis is absent from every input."""


class ConfigurationError(RuntimeError):
    """Raised when the report type configuration cannot be loaded."""


MISSING_DATES = "Completed job has missing/invalid dates"
MISMATCHED_COLUMNS = "Mismatched column count"


def missing_assignee(label: str) -> str:
    return f"Missing {label}"


def ensure_data_rows(rows: Sequence[Sequence[str]], header_index: int) -> None:
    if len(rows) < header_index + 2:
        raise EmptyReportError(
            "Report is too short. It must contain a header row and at least one data row."
        )


def is_blank_row(row: Sequence[str]) -> bool:
    return all(not (cell or "").strip() for cell in row)
