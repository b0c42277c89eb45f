"""Per-load entities produced by the ingestion stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from jobtrack.core.report_types import ReportConfiguration
from jobtrack.core.schema import FilterOptions, InvalidRow, PendingJob

if TYPE_CHECKING:
    from jobtrack.extractors.columns import ColumnIndex


@dataclass(frozen=True, slots=True)
class CanonicalJobRecord:
    """The single row chosen to represent a job, with its parsed fields."""

    row: tuple[str, ...]
    identifier: str
    status: str
    assignee: str
    category: str
    sub_category: str = ""
    job_type: str = ""
    created: datetime | None = None
    assigned: datetime | None = None
    finished: datetime | None = None


@dataclass(slots=True)
class DirectCounters:
    """Tallies taken over the full deduplicated set, never filtered."""

    installation_pending: int = 0
    fault_pending: int = 0
    completed_installations: int = 0
    completed_faults: int = 0
    failed_installations: int = 0
    failed_faults: int = 0
    cancelled_installations: int = 0
    cancelled_faults: int = 0
    relocations: int = 0
    reassociations: int = 0


@dataclass(slots=True)
class Classification:
    valid: list[CanonicalJobRecord] = field(default_factory=list)
    pending: list[PendingJob] = field(default_factory=list)
    invalid: list[InvalidRow] = field(default_factory=list)
    cancelled: list[CanonicalJobRecord] = field(default_factory=list)
    counters: DirectCounters = field(default_factory=DirectCounters)


@dataclass(frozen=True, slots=True)
class PreparedReport:
    """Everything a load computes once; filter changes only re-aggregate this."""

    configuration: ReportConfiguration
    header: tuple[str, ...]
    header_index: int
    columns: "ColumnIndex"
    records: tuple[CanonicalJobRecord, ...]
    pending_jobs: tuple[PendingJob, ...]
    invalid_rows: tuple[InvalidRow, ...]
    cancelled: tuple[CanonicalJobRecord, ...]
    counters: DirectCounters
    filter_options: FilterOptions
    now: datetime
