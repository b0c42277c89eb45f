"""Reduce every job to one canonical row.

Exports routinely contain several rows for the same job identifier, often a
later row carrying a stale intermediate status. The rules are:

1. If any row of the job has a success status, only those rows compete and
   the one with the latest created time wins.
2. Otherwise the latest created time wins, and ties (including jobs where no
   created time parses) go to the higher status priority.

Rows whose created time does not parse always rank below rows whose created
time does. Remaining ties keep the first row encountered.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from jobtrack.core.dates import parse_date
from jobtrack.core.normalize import key
from jobtrack.core.report_types import ReportConfiguration
from jobtrack.extractors.columns import ColumnIndex

logger = logging.getLogger(__name__)

Row = Sequence[str]


def group_jobs(rows: Sequence[Row], columns: ColumnIndex) -> dict[str, list[Row]]:
    groups: dict[str, list[Row]] = {}
    for row in rows:
        identifier = columns.value(row, "identifier")
        if not identifier:
            continue
        groups.setdefault(identifier, []).append(row)
    return groups


def _recency(row: Row, columns: ColumnIndex) -> tuple[int, datetime]:
    created = parse_date(columns.raw(row, "created"))
    if created is None:
        return (0, datetime.min)
    return (1, created)


def select_canonical(rows: Sequence[Row], columns: ColumnIndex, configuration: ReportConfiguration) -> Row:
    if not rows:
        raise ValueError("a job needs at least one row")

    ranked = [(row, key(columns.raw(row, "status")), _recency(row, columns)) for row in rows]

    successes = [entry for entry in ranked if configuration.is_success(entry[1])]
    if successes:
        return max(successes, key=lambda entry: entry[2])[0]

    return max(ranked, key=lambda entry: (*entry[2], configuration.priority(entry[1])))[0]


def deduplicate(rows: Sequence[Row], columns: ColumnIndex, configuration: ReportConfiguration) -> list[Row]:
    groups = group_jobs(rows, columns)
    canonical = [select_canonical(group, columns, configuration) for group in groups.values()]
    logger.debug("Deduplicated %d rows into %d jobs", len(rows), len(canonical))
    return canonical
