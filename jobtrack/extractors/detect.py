"""Report type detection for job-tracking exports.

Exports frequently start with a few lines of preamble (report title, run
date, filter description) before the real header. The detector scans the
leading rows of the table and treats the first row that contains every
required header of a known report family as the header row:

* ICT service-desk exports → ``ICT``
* D+ field-engineering job exports → ``DPlus``

Matching is case-insensitive on trimmed cells and only needs the required
headers to be a subset of the row. Detection is all or nothing: if none of
the leading rows match, the table is rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from jobtrack.core.normalize import cell, key
from jobtrack.core.report_types import REPORT_TYPES, ReportConfiguration
from jobtrack.core.validation import SchemaDetectionError, ensure_data_rows

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 15


@dataclass(frozen=True)
class DetectedReport:
    configuration: ReportConfiguration
    header_index: int
    header: tuple[str, ...]


def _row_tokens(row: Sequence[str]) -> set[str]:
    return {key(value) for value in row}


def _matches(tokens: set[str], configuration: ReportConfiguration) -> bool:
    return all(key(required) in tokens for required in configuration.required_headers)


def _describe(configurations: Iterable[ReportConfiguration]) -> str:
    return "; ".join(
        f"{configuration.label}: {', '.join(configuration.required_headers)}"
        for configuration in configurations
    )


def find_header(
    rows: Sequence[Sequence[str]],
    configurations: Sequence[ReportConfiguration] | None = None,
) -> DetectedReport | None:
    candidates = list(configurations or REPORT_TYPES)
    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        tokens = _row_tokens(row)
        for configuration in candidates:
            if _matches(tokens, configuration):
                return DetectedReport(
                    configuration=configuration,
                    header_index=index,
                    header=tuple(cell(value) for value in row),
                )
    return None


def detect_report(
    rows: Sequence[Sequence[str]],
    configurations: Sequence[ReportConfiguration] | None = None,
) -> DetectedReport:
    """Locate the header row and report family, or raise."""

    candidates = list(configurations or REPORT_TYPES)
    detected = find_header(rows, candidates)
    if detected is None:
        logger.warning("No header row found in the first %d rows", HEADER_SCAN_ROWS)
        raise SchemaDetectionError(
            "Could not find a valid data header row (no valid header row found). "
            f"Expected one of: {_describe(candidates)}."
        )
    ensure_data_rows(rows, detected.header_index)
    logger.info(
        "Detected %s report with header at row %d",
        detected.configuration.label,
        detected.header_index,
    )
    return detected
