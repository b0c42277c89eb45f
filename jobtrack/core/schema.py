from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class BreakdownItem(BaseModel):
    name: str
    count: int


class MonthlyBucket(BaseModel):
    month: str
    mtti: float
    mttr: float
    volume: int


class InvalidRow(BaseModel):
    row_data: list[str]
    reason: str


class PendingJob(BaseModel):
    req_id: str
    technician: str
    category: str
    created_time: datetime
    pending_duration_hours: float
    row_data: list[str]


class HardwareUsageItem(BaseModel):
    name: str
    total_used: float
    percentage: float


class DurationKpi(BaseModel):
    value: float = 0.0
    count: int = 0


class KpiMetrics(BaseModel):
    total_tickets: int = 0
    pending: int = 0
    # lifecycle (ICT) KPIs; ``None`` for report types without an assign stage
    mtta: float | None = None
    mtti: float | None = None
    mttr: float | None = None
    ftr: float | None = None
    sla: float | None = None


class DplusKpis(BaseModel):
    overall_mtti: DurationKpi = Field(default_factory=DurationKpi)
    overall_mttr: DurationKpi = Field(default_factory=DurationKpi)
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


class BreakdownData(BaseModel):
    technician: list[BreakdownItem] = Field(default_factory=list)
    category: list[BreakdownItem] = Field(default_factory=list)
    sub_category: list[BreakdownItem] = Field(default_factory=list)


class DepartmentSplit(BaseModel):
    installations: list[PendingJob] = Field(default_factory=list)
    faults: list[PendingJob] = Field(default_factory=list)


class CancellationReasons(BaseModel):
    installations: list[BreakdownItem] = Field(default_factory=list)
    faults: list[BreakdownItem] = Field(default_factory=list)


class HardwareUsage(BaseModel):
    installations: list[HardwareUsageItem] = Field(default_factory=list)
    faults: list[HardwareUsageItem] = Field(default_factory=list)


class FilterOptions(BaseModel):
    technicians: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    months: list[str] = Field(default_factory=list)


class FaultScenario(BaseModel):
    fault: str
    cause: str
    solution: str
    count: int
    percentage: float


class DashboardResult(BaseModel):
    report_type: Literal["ICT", "DPlus"]
    technician_label: str
    category_label: str
    headers: list[str]
    kpis: KpiMetrics
    monthly_data: list[MonthlyBucket] = Field(default_factory=list)
    breakdowns: BreakdownData = Field(default_factory=BreakdownData)
    invalid_rows: list[InvalidRow] = Field(default_factory=list)
    pending_jobs: list[PendingJob] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    filter_options: FilterOptions = Field(default_factory=FilterOptions)
    filters: dict[str, str] = Field(default_factory=dict)
    # D+ only; left as ``None`` for other report types
    dplus_kpis: DplusKpis | None = None
    dplus_pending_jobs: DepartmentSplit | None = None
    cancellation_reasons: CancellationReasons | None = None
    hardware_usage: HardwareUsage | None = None

    def is_empty(self) -> bool:
        """True when the load produced nothing worth showing."""

        if self.kpis.total_tickets or self.pending_jobs:
            return False
        if self.dplus_kpis is None:
            return True
        counters = self.dplus_kpis.model_dump(exclude={"overall_mtti", "overall_mttr"})
        return not any(counters.values())
