"""Most common fault / cause / solution combinations in D+ fault reports.

Detailed fault exports carry the header in their first row. Rows of the
fault-repair department are counted per (fault, cause, solution) triplet
across every supplied table, and the ten most frequent scenarios are
returned with their share of all counted faults.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from jobtrack.core.normalize import key, text_or
from jobtrack.core.report_types import ReportConfiguration, get_report_type
from jobtrack.core.schema import FaultScenario
from jobtrack.core.validation import EmptyReportError, MissingColumnError, is_blank_row

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["DepartmentName", "FaultDescription2", "CauseDescription2", "SolutionDescription2"]
TOP_SCENARIOS = 10
NOT_AVAILABLE = "N/A"


def _header_positions(header: Sequence[str]) -> dict[str, int]:
    lowered = [key(value) for value in header]
    return {column: lowered.index(key(column)) for column in REQUIRED_COLUMNS if key(column) in lowered}


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) and row[index] else ""


def analyse_fault_scenarios(
    tables: Sequence[Sequence[Sequence[str]]],
    configuration: ReportConfiguration | None = None,
    limit: int = TOP_SCENARIOS,
) -> list[FaultScenario]:
    configuration = configuration or get_report_type("DPlus")
    department_label = configuration.departments.faults if configuration.departments else "fault"
    fault_department = key(department_label)

    populated = [table for table in tables if len(table) > 1]
    if not populated:
        raise EmptyReportError("No data found in the selected files.")

    layouts = [(table, _header_positions(table[0])) for table in populated]
    for column in REQUIRED_COLUMNS:
        if not any(column in positions for _, positions in layouts):
            raise MissingColumnError(
                f'Required column "{column}" not found in the uploaded file(s). '
                "Please ensure all files have the correct headers."
            )

    counts: Counter[tuple[str, str, str]] = Counter()
    for table_number, (table, positions) in enumerate(layouts, start=1):
        missing = [column for column in REQUIRED_COLUMNS if column not in positions]
        if missing:
            logger.warning("Skipping table %d: missing columns %s", table_number, ", ".join(missing))
            continue
        for row in table[1:]:
            if is_blank_row(row):
                continue
            if fault_department not in key(_cell(row, positions["DepartmentName"])):
                continue
            fault = text_or(_cell(row, positions["FaultDescription2"]), NOT_AVAILABLE)
            if not fault or fault == NOT_AVAILABLE:
                continue
            cause = text_or(_cell(row, positions["CauseDescription2"]), NOT_AVAILABLE)
            solution = text_or(_cell(row, positions["SolutionDescription2"]), NOT_AVAILABLE)
            counts[(fault, cause, solution)] += 1

    if not counts:
        raise EmptyReportError(
            f"No '{department_label}' data"
            " or valid fault descriptions were found to analyze across all files."
        )

    total = sum(counts.values())
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    logger.info("Counted %d faults across %d distinct scenarios", total, len(counts))
    return [
        FaultScenario(
            fault=fault,
            cause=cause,
            solution=solution,
            count=count,
            percentage=count / total * 100,
        )
        for (fault, cause, solution), count in ranked
    ]
