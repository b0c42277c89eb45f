"""Duration KPIs, monthly series and categorical breakdowns.

Two duration models exist:

``lifecycle``
    Exports with an assign stage (ICT). MTTA is created → assigned, MTTI is
    created → completed and MTTR is assigned → completed. FTR and SLA
    percentages come from the overdue flag columns when the export has them.

``department``
    Exports without an assign stage (D+). Each job contributes one
    created → finished duration, counted as MTTI for installation jobs and as
    MTTR for fault jobs. Stock usage is gathered from the same pass.

A duration sample is only taken when both ends parse and the difference is
not negative; anything else is left out of both the sum and the count.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from jobtrack.analytics.classify import NOT_ASSIGNED, NOT_AVAILABLE
from jobtrack.core.dates import hours_between, month_label, month_sort_key
from jobtrack.core.normalize import key
from jobtrack.core.report_types import ReportConfiguration
from jobtrack.core.schema import (
    BreakdownData,
    BreakdownItem,
    DurationKpi,
    HardwareUsage,
    KpiMetrics,
    MonthlyBucket,
)
from jobtrack.domain import CanonicalJobRecord
from jobtrack.extractors.columns import ColumnIndex
from jobtrack.extractors.stock_usage import StockUsageAccumulator

logger = logging.getLogger(__name__)

NOT_APPLICABLE = -1.0


@dataclass
class _Mean:
    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.total += value
        self.count += 1

    @property
    def value(self) -> float:
        return self.total / self.count if self.count else 0.0


@dataclass
class _MonthAccumulator:
    volume: int = 0
    mtti: list[float] = field(default_factory=list)
    mttr: list[float] = field(default_factory=list)


@dataclass
class MetricsResult:
    kpis: KpiMetrics
    monthly_data: list[MonthlyBucket]
    breakdowns: BreakdownData
    overall_mtti: DurationKpi | None = None
    overall_mttr: DurationKpi | None = None
    hardware_usage: HardwareUsage | None = None


def elapsed_hours(start: datetime | None, end: datetime | None) -> float | None:
    """Non-negative duration in hours, or ``None`` when it cannot be used."""

    if start is None or end is None:
        return None
    hours = hours_between(start, end)
    return hours if hours >= 0 else None


def to_breakdown(counts: Counter[str]) -> list[BreakdownItem]:
    # sorted() is stable, so equal counts keep encounter order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [BreakdownItem(name=name, count=count) for name, count in ranked]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def monthly_series(months: dict[str, _MonthAccumulator]) -> list[MonthlyBucket]:
    buckets = [
        MonthlyBucket(month=label, mtti=_mean(acc.mtti), mttr=_mean(acc.mttr), volume=acc.volume)
        for label, acc in months.items()
    ]
    buckets.sort(key=lambda bucket: month_sort_key(bucket.month))
    return buckets


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100


def aggregate_lifecycle(records: Iterable[CanonicalJobRecord], columns: ColumnIndex) -> MetricsResult:
    mtta, mtti, mttr = _Mean(), _Mean(), _Mean()
    ftr_met = 0
    sla_met = sla_applicable = 0
    total = 0
    months: dict[str, _MonthAccumulator] = {}
    technicians: Counter[str] = Counter()
    categories: Counter[str] = Counter()
    sub_categories: Counter[str] = Counter()

    ftr_calculable = columns.has("ftr_status")
    sla_calculable = columns.has("sla_status")

    for record in records:
        total += 1
        technicians[record.assignee] += 1
        categories[record.category or NOT_AVAILABLE] += 1
        sub_categories[record.sub_category or NOT_AVAILABLE] += 1

        to_assign = elapsed_hours(record.created, record.assigned)
        to_install = elapsed_hours(record.created, record.finished)
        to_resolve = elapsed_hours(record.assigned, record.finished)
        if to_assign is not None:
            mtta.add(to_assign)
        if to_install is not None:
            mtti.add(to_install)
        if to_resolve is not None:
            mttr.add(to_resolve)

        if ftr_calculable and key(columns.raw(record.row, "ftr_status")) == "false":
            ftr_met += 1

        if sla_calculable:
            overdue = columns.raw(record.row, "sla_status")
            if overdue.strip():
                sla_applicable += 1
                if key(overdue) == "false":
                    sla_met += 1

        if record.finished is not None:
            bucket = months.setdefault(month_label(record.finished), _MonthAccumulator())
            bucket.volume += 1
            if to_install is not None:
                bucket.mtti.append(to_install)
            if to_resolve is not None:
                bucket.mttr.append(to_resolve)

    if not ftr_calculable:
        ftr = NOT_APPLICABLE
    else:
        ftr = _percentage(ftr_met, total) if total else 0.0
    sla = _percentage(sla_met, sla_applicable) if sla_calculable and sla_applicable else NOT_APPLICABLE

    kpis = KpiMetrics(
        total_tickets=total,
        mtta=mtta.value,
        mtti=mtti.value,
        mttr=mttr.value,
        ftr=ftr,
        sla=sla,
    )
    breakdowns = BreakdownData(
        technician=to_breakdown(technicians),
        category=to_breakdown(categories),
        sub_category=to_breakdown(sub_categories),
    )
    return MetricsResult(kpis=kpis, monthly_data=monthly_series(months), breakdowns=breakdowns)


def _stock_applies(configuration: ReportConfiguration, department_key: str, job_type: str) -> bool:
    required = configuration.stock_job_types.get(department_key)
    return required is None or job_type == required


def aggregate_departments(
    records: Iterable[CanonicalJobRecord],
    columns: ColumnIndex,
    configuration: ReportConfiguration,
) -> MetricsResult:
    departments = configuration.departments
    if departments is None:
        raise ValueError(f"{configuration.label} has no department rules")

    installs, faults = _Mean(), _Mean()
    months: dict[str, _MonthAccumulator] = {}
    technicians: Counter[str] = Counter()
    department_counts: Counter[str] = Counter()
    install_stock, fault_stock = StockUsageAccumulator(), StockUsageAccumulator()

    for record in records:
        is_fault = record.category == departments.faults
        technicians[record.assignee or NOT_ASSIGNED] += 1
        department_counts[record.category] += 1

        hours = elapsed_hours(record.created, record.finished)
        if hours is None:
            continue

        stock_text = columns.value(record.row, "stock")
        if is_fault:
            faults.add(hours)
            if _stock_applies(configuration, "faults", record.job_type):
                fault_stock.add_job(stock_text)
        else:
            installs.add(hours)
            if _stock_applies(configuration, "installations", record.job_type):
                install_stock.add_job(stock_text)

        bucket = months.setdefault(month_label(record.finished), _MonthAccumulator())
        bucket.volume += 1
        (bucket.mttr if is_fault else bucket.mtti).append(hours)

    kpis = KpiMetrics(total_tickets=installs.count + faults.count)
    breakdowns = BreakdownData(
        technician=to_breakdown(technicians),
        category=to_breakdown(department_counts),
    )
    return MetricsResult(
        kpis=kpis,
        monthly_data=monthly_series(months),
        breakdowns=breakdowns,
        overall_mtti=DurationKpi(value=installs.value, count=installs.count),
        overall_mttr=DurationKpi(value=faults.value, count=faults.count),
        hardware_usage=HardwareUsage(
            installations=install_stock.usage_items(),
            faults=fault_stock.usage_items(),
        ),
    )


def aggregate(
    records: Sequence[CanonicalJobRecord],
    columns: ColumnIndex,
    configuration: ReportConfiguration,
) -> MetricsResult:
    if configuration.duration_model == "department":
        result = aggregate_departments(records, columns, configuration)
    else:
        result = aggregate_lifecycle(records, columns)
    logger.debug(
        "Aggregated %d %s records into %d monthly buckets",
        len(records),
        configuration.label,
        len(result.monthly_data),
    )
    return result
