"""Split canonical rows into pending jobs, invalid rows and valid terminal rows.

The classifier also takes the tallies that describe operational state rather
than historical performance (pending, failed and cancelled counts per
department, relocation and reassociation job types). Those are computed once
over the whole deduplicated set and are never narrowed by dashboard filters.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from jobtrack.core.dates import hours_between, parse_date
from jobtrack.core.normalize import key, text_or
from jobtrack.core.report_types import ReportConfiguration
from jobtrack.core.schema import InvalidRow, PendingJob
from jobtrack.core.validation import (
    MISMATCHED_COLUMNS,
    MISSING_DATES,
    is_blank_row,
    missing_assignee,
)
from jobtrack.domain import CanonicalJobRecord, Classification, DirectCounters
from jobtrack.extractors.columns import ColumnIndex

logger = logging.getLogger(__name__)

NOT_ASSIGNED = "Not Assigned"
NOT_AVAILABLE = "N/A"


def build_record(row: Sequence[str], columns: ColumnIndex, configuration: ReportConfiguration) -> CanonicalJobRecord:
    departments = configuration.departments
    if departments is not None:
        category = departments.normalise(columns.raw(row, "department"))
    else:
        category = columns.value(row, "category")
    return CanonicalJobRecord(
        row=tuple(row),
        identifier=columns.value(row, "identifier"),
        status=key(columns.raw(row, "status")),
        assignee=columns.value(row, "assignee"),
        category=category,
        sub_category=columns.value(row, "sub_category"),
        job_type=key(columns.raw(row, "job_type")),
        created=parse_date(columns.raw(row, "created")),
        assigned=parse_date(columns.raw(row, "assigned")),
        finished=parse_date(columns.raw(row, "finished")),
    )


def rejection_reason(
    record: CanonicalJobRecord,
    configuration: ReportConfiguration,
    header_width: int,
) -> str | None:
    """Why a terminal-success row cannot be used, or ``None`` if it can."""

    if configuration.require_dates and (record.created is None or record.finished is None):
        return MISSING_DATES
    if not record.assignee:
        return missing_assignee(configuration.assignee_label)
    if len(record.row) < header_width:
        return MISMATCHED_COLUMNS
    return None


def _is_fault(record: CanonicalJobRecord, configuration: ReportConfiguration) -> bool:
    departments = configuration.departments
    return departments is not None and record.category == departments.faults


def _bump(counters: DirectCounters, installations: str, faults: str, is_fault: bool) -> None:
    name = faults if is_fault else installations
    setattr(counters, name, getattr(counters, name) + 1)


def _count_job_types(record: CanonicalJobRecord, configuration: ReportConfiguration, counters: DirectCounters) -> None:
    for name, fragment in configuration.job_type_counters.items():
        if fragment and fragment in record.job_type and hasattr(counters, name):
            setattr(counters, name, getattr(counters, name) + 1)


def _pending_job(record: CanonicalJobRecord, columns: ColumnIndex, now: datetime) -> PendingJob:
    return PendingJob(
        req_id=text_or(columns.raw(record.row, "identifier"), NOT_AVAILABLE),
        technician=text_or(columns.raw(record.row, "assignee"), NOT_ASSIGNED),
        category=record.category or NOT_AVAILABLE,
        created_time=record.created,
        pending_duration_hours=hours_between(record.created, now),
        row_data=list(record.row),
    )


def classify(
    rows: Sequence[Sequence[str]],
    columns: ColumnIndex,
    configuration: ReportConfiguration,
    *,
    now: datetime,
) -> Classification:
    result = Classification()
    counters = result.counters
    tracks_departments = configuration.departments is not None

    for row in rows:
        if is_blank_row(row):
            continue

        record = build_record(row, columns, configuration)
        is_fault = _is_fault(record, configuration)
        _count_job_types(record, configuration, counters)

        if configuration.is_pending(record.status):
            if tracks_departments:
                _bump(counters, "installation_pending", "fault_pending", is_fault)
            if record.created is None:
                logger.debug("Dropping pending job %s: created time unparseable", record.identifier)
                continue
            result.pending.append(_pending_job(record, columns, now))
        elif configuration.is_success(record.status):
            reason = rejection_reason(record, configuration, columns.width)
            if reason:
                result.invalid.append(InvalidRow(row_data=list(row), reason=reason))
                continue
            result.valid.append(record)
            if tracks_departments:
                _bump(counters, "completed_installations", "completed_faults", is_fault)
        elif configuration.is_failure(record.status):
            _bump(counters, "failed_installations", "failed_faults", is_fault)
        elif configuration.is_cancelled(record.status):
            _bump(counters, "cancelled_installations", "cancelled_faults", is_fault)
            result.cancelled.append(record)

    logger.info(
        "Classified %d jobs: %d valid, %d pending, %d invalid",
        len(rows),
        len(result.valid),
        len(result.pending),
        len(result.invalid),
    )
    return result
