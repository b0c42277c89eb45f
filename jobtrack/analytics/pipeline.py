"""Load-time preparation and per-filter aggregation of job-tracking exports.

``prepare_report`` runs once per load: it locates the header, drops rows the
report family excludes, collects the filter options, reduces each job to one
canonical row and classifies the result. ``build_dashboard`` then filters and
aggregates that prepared state and can be called again for every filter
change without touching the raw table.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping, Sequence

from jobtrack.analytics.cancellations import tally_cancellations
from jobtrack.analytics.classify import NOT_ASSIGNED, classify
from jobtrack.analytics.dedup import deduplicate
from jobtrack.analytics.filters import FilterSet, apply_filters
from jobtrack.analytics.metrics import aggregate
from jobtrack.core.dates import month_label, month_sort_key, parse_date
from jobtrack.core.normalize import key, text_or
from jobtrack.core.report_types import ReportConfiguration
from jobtrack.core.schema import DashboardResult, DepartmentSplit, DplusKpis, FilterOptions
from jobtrack.core.validation import SchemaDetectionError, is_blank_row
from jobtrack.domain import PreparedReport
from jobtrack.extractors.columns import ColumnIndex
from jobtrack.extractors.detect import detect_report

logger = logging.getLogger(__name__)

Row = Sequence[str]


def _resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now()
    if now.tzinfo is not None:
        return now.astimezone(timezone.utc).replace(tzinfo=None)
    return now


def _excluded(row: Row, columns: ColumnIndex, configuration: ReportConfiguration) -> bool:
    for role, values in configuration.exclusions.items():
        if key(columns.raw(row, role)) in values:
            return True
    departments = configuration.departments
    if departments is not None and not departments.in_scope(columns.raw(row, "department")):
        return True
    return False


def prefilter(rows: Sequence[Row], columns: ColumnIndex, configuration: ReportConfiguration) -> list[Row]:
    kept = [row for row in rows if not _excluded(row, columns, configuration)]
    if len(kept) != len(rows):
        logger.debug("Excluded %d rows outside the %s scope", len(rows) - len(kept), configuration.label)
    return kept


def collect_filter_options(
    rows: Sequence[Row],
    columns: ColumnIndex,
    configuration: ReportConfiguration,
) -> FilterOptions:
    technicians: set[str] = set()
    categories: set[str] = set()
    months: set[str] = set()
    for row in rows:
        if is_blank_row(row):
            continue
        technician = text_or(columns.raw(row, "assignee"), NOT_ASSIGNED)
        if technician:
            technicians.add(technician)
        category = columns.value(row, "category")
        if category:
            categories.add(category)
        if configuration.is_success(key(columns.raw(row, "status"))):
            finished = parse_date(columns.raw(row, "finished"))
            if finished is not None:
                months.add(month_label(finished))

    if configuration.departments is not None:
        category_options = configuration.departments.labels
    else:
        category_options = sorted(categories)
    return FilterOptions(
        technicians=sorted(technicians),
        categories=category_options,
        months=sorted(months, key=month_sort_key),
    )


def prepare_report(
    rows: Sequence[Row],
    *,
    now: datetime | None = None,
    configurations: Sequence[ReportConfiguration] | None = None,
) -> PreparedReport:
    detected = detect_report(rows, configurations)
    configuration = detected.configuration
    columns = ColumnIndex.from_header(detected.header, configuration)
    moment = _resolve_now(now)

    data_rows = prefilter(rows[detected.header_index + 1 :], columns, configuration)
    options = collect_filter_options(data_rows, columns, configuration)
    canonical = deduplicate(data_rows, columns, configuration)
    classification = classify(canonical, columns, configuration, now=moment)

    return PreparedReport(
        configuration=configuration,
        header=detected.header,
        header_index=detected.header_index,
        columns=columns,
        records=tuple(classification.valid),
        pending_jobs=tuple(classification.pending),
        invalid_rows=tuple(classification.invalid),
        cancelled=tuple(classification.cancelled),
        counters=classification.counters,
        filter_options=options,
        now=moment,
    )


def _coerce_filters(filters: FilterSet | Mapping[str, object] | None) -> FilterSet:
    if filters is None:
        return FilterSet()
    if isinstance(filters, FilterSet):
        return filters
    return FilterSet(**filters)


def build_dashboard(
    prepared: PreparedReport,
    filters: FilterSet | Mapping[str, object] | None = None,
) -> DashboardResult:
    configuration = prepared.configuration
    active = _coerce_filters(filters)
    records = apply_filters(prepared.records, active)
    metrics = aggregate(records, prepared.columns, configuration)

    pending = len(prepared.pending_jobs)
    if configuration.departments is not None:
        # the department counters include jobs whose created time does not parse
        pending = prepared.counters.installation_pending + prepared.counters.fault_pending
    kpis = metrics.kpis.model_copy(update={"pending": pending})
    result = DashboardResult(
        report_type=configuration.name,
        technician_label=configuration.assignee_label,
        category_label=configuration.category_label,
        headers=list(prepared.header),
        kpis=kpis,
        monthly_data=metrics.monthly_data,
        breakdowns=metrics.breakdowns,
        invalid_rows=list(prepared.invalid_rows),
        pending_jobs=list(prepared.pending_jobs),
        rows=[list(record.row) for record in records],
        filter_options=prepared.filter_options,
        filters=active.active(),
    )

    departments = configuration.departments
    if departments is not None:
        counters = prepared.counters
        result.dplus_kpis = DplusKpis(
            overall_mtti=metrics.overall_mtti,
            overall_mttr=metrics.overall_mttr,
            installation_pending=counters.installation_pending,
            fault_pending=counters.fault_pending,
            completed_installations=counters.completed_installations,
            completed_faults=counters.completed_faults,
            failed_installations=counters.failed_installations,
            failed_faults=counters.failed_faults,
            cancelled_installations=counters.cancelled_installations,
            cancelled_faults=counters.cancelled_faults,
            relocations=counters.relocations,
            reassociations=counters.reassociations,
        )
        result.dplus_pending_jobs = DepartmentSplit(
            installations=[job for job in prepared.pending_jobs if job.category != departments.faults],
            faults=[job for job in prepared.pending_jobs if job.category == departments.faults],
        )
        result.cancellation_reasons = tally_cancellations(prepared.cancelled, prepared.columns, configuration)
        result.hardware_usage = metrics.hardware_usage

    logger.info(
        "Built %s dashboard: %d tickets, %d pending, filters=%s",
        configuration.label,
        kpis.total_tickets,
        kpis.pending,
        result.filters or "none",
    )
    return result


def process_report(
    rows: Sequence[Row],
    filters: FilterSet | Mapping[str, object] | None = None,
    *,
    now: datetime | None = None,
    configurations: Sequence[ReportConfiguration] | None = None,
) -> DashboardResult:
    prepared = prepare_report(rows, now=now, configurations=configurations)
    return build_dashboard(prepared, filters)


def combine_exports(
    tables: Sequence[Sequence[Row]],
    configurations: Sequence[ReportConfiguration] | None = None,
) -> list[list[str]]:
    """Merge several exports of one family under the first table's header."""

    if not tables:
        raise SchemaDetectionError("No tables supplied")

    combined: list[list[str]] = []
    family: str | None = None
    for number, table in enumerate(tables, start=1):
        detected = detect_report(table, configurations)
        name = detected.configuration.name
        if family is None:
            family = name
            combined.append(list(table[detected.header_index]))
        elif name != family:
            raise SchemaDetectionError(
                f"File {number} is a {detected.configuration.label} export; "
                f"expected {family} like the first file"
            )
        combined.extend(list(row) for row in table[detected.header_index + 1 :])
    logger.debug("Combined %d tables into %d rows", len(tables), len(combined))
    return combined
