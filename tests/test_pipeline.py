import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from jobtrack.analytics.filters import FilterSet
from jobtrack.analytics.pipeline import build_dashboard, combine_exports, prepare_report, process_report
from jobtrack.core.validation import SchemaDetectionError

ICT_HEADER = [
    "RequestID",
    "Technician",
    "Request Status",
    "Created Time",
    "Assigned Time",
    "Completed Time",
    "Category",
    "Sub Category",
    "overdue status",
    "First Response Overdue status",
]
DPLUS_HEADER = [
    "JobNumber",
    "JobStatusFull",
    "DepartmentName",
    "JobTypes",
    "Engineers",
    "DateCreated",
    "DateFinished",
    "FailureReason",
    "StockSelected",
]
INSTALLS = "St. Lucia Installations"
FAULTS = "St. Lucia Fault Repair External"
NOW = datetime(2025, 1, 2, 12, 0)


def _ict_table():
    return [
        ICT_HEADER,
        ["1001", "Alice", "Closed", "01/01/2025 10:00", "01/01/2025 11:00", "01/01/2025 14:00", "Network", "WAN", "false", "false"],
        ["1002", "Bob", "Open", "02/01/2025 09:00", "", "", "Network", "LAN", "", ""],
        ["1001", "Carol", "Closed", "01/01/2025 08:00", "01/01/2025 08:30", "01/01/2025 09:00", "Network", "WAN", "true", "true"],
    ]


def _dplus_table():
    return [
        ["D+ Job Export"],
        DPLUS_HEADER,
        ["5001", "Completed", INSTALLS, "Standalone BB", "Jean", "01/02/2025 08:00", "01/02/2025 14:00", "", "ONT (2), Drop Cable x 3"],
        ["5001", "Confirmed", INSTALLS, "Standalone BB", "Jean", "02/02/2025 08:00", "", "", ""],
        ["5002", "Completed", "St. Lucia Fault Repair", "Fibre Break", "Marc", "03/02/2025 09:00", "03/02/2025 13:30", "", "WEDGE CLAMPS - 12"],
        ["5003", "Cancelled", FAULTS, "Reactivation", "", "04/02/2025 10:00", "", "", ""],
        ["5004", "Confirmed", INSTALLS, "Relocation", "", "05/02/2025 11:00", "", "", ""],
        ["5005", "Completed", INSTALLS, "New Install", "", "06/02/2025 08:00", "06/02/2025 09:00", "", ""],
        ["5006", "Completed", INSTALLS, "RemoteMigrationStLucia", "Jean", "07/02/2025 08:00", "07/02/2025 09:00", "", ""],
        ["5007", "Completed", "St. Kitts Installation", "New Install", "Jean", "07/02/2025 08:00", "07/02/2025 09:00", "", ""],
        ["5008", "Failed", INSTALLS, "New Install", "Jean", "08/02/2025 08:00", "", "Customer absent", ""],
        ["5009", "Completed", INSTALLS, "New Install", "Jean", "10/02/2025 12:00", "10/02/2025 08:00", "", ""],
        ["5010", "Cancelled", INSTALLS, "New Install", "", "11/02/2025 08:00", "", "CU20 - Raised in Error", ""],
    ]


def test_ict_end_to_end():
    result = process_report(_ict_table(), now=NOW)

    assert result.report_type == "ICT"
    assert result.technician_label == "Technician"
    assert result.kpis.total_tickets == 1
    assert result.kpis.pending == 1
    assert result.kpis.mtta == pytest.approx(1.0)
    assert result.kpis.mtti == pytest.approx(4.0)
    assert result.kpis.mttr == pytest.approx(3.0)
    assert result.kpis.ftr == pytest.approx(100.0)
    assert result.kpis.sla == pytest.approx(100.0)
    assert result.rows == [_ict_table()[1]]
    assert [job.req_id for job in result.pending_jobs] == ["1002"]
    assert result.pending_jobs[0].pending_duration_hours == pytest.approx(3.0)
    assert result.invalid_rows == []
    assert result.dplus_kpis is None

    options = result.filter_options
    assert options.technicians == ["Alice", "Bob", "Carol"]
    assert options.categories == ["Network"]
    assert options.months == ["Jan'25"]


def test_ict_excluded_category_is_dropped_before_dedup():
    table = _ict_table() + [
        ["1003", "Dan", "Closed", "01/01/2025 08:00", "01/01/2025 09:00", "01/01/2025 10:00", "RemoteMigrationStLucia", "", "", ""],
    ]
    result = process_report(table, now=NOW)
    assert result.kpis.total_tickets == 1
    assert "Dan" not in result.filter_options.technicians


def test_monthly_data_orders_december_before_january():
    table = [
        ["Report"],
        ICT_HEADER,
        ["1", "Alice", "Closed", "02/01/2025 08:00", "02/01/2025 09:00", "02/01/2025 10:00", "Net", "", "", ""],
        ["2", "Alice", "Closed", "30/12/2024 08:00", "30/12/2024 09:00", "30/12/2024 12:00", "Net", "", "", ""],
    ]
    result = process_report(table, now=NOW)
    assert [bucket.month for bucket in result.monthly_data] == ["Dec'24", "Jan'25"]
    assert result.filter_options.months == ["Dec'24", "Jan'25"]


def test_dplus_end_to_end():
    result = process_report(_dplus_table(), now=datetime(2025, 2, 6, 11, 0))

    assert result.report_type == "DPlus"
    assert result.technician_label == "Engineer"
    assert result.category_label == "Department"
    assert result.kpis.total_tickets == 2
    assert result.kpis.pending == 1
    assert result.kpis.mtta is None

    kpis = result.dplus_kpis
    assert kpis.overall_mtti.value == pytest.approx(6.0)
    assert kpis.overall_mtti.count == 1
    assert kpis.overall_mttr.value == pytest.approx(4.5)
    assert kpis.completed_installations == 2
    assert kpis.completed_faults == 1
    assert kpis.failed_installations == 1
    assert kpis.cancelled_faults == 1
    assert kpis.cancelled_installations == 1
    assert kpis.installation_pending == 1
    assert kpis.fault_pending == 0
    assert kpis.relocations == 1

    assert [job.req_id for job in result.dplus_pending_jobs.installations] == ["5004"]
    assert result.dplus_pending_jobs.faults == []
    assert result.pending_jobs[0].pending_duration_hours == pytest.approx(24.0)

    assert [row.reason for row in result.invalid_rows] == ["Missing Engineer"]

    reasons = result.cancellation_reasons
    assert [(item.name, item.count) for item in reasons.faults] == [("No Reason Given", 1)]
    assert [(item.name, item.count) for item in reasons.installations] == [("CU20 - Raised in Error", 1)]

    hardware = result.hardware_usage
    assert [(item.name, item.total_used) for item in hardware.installations] == [("Drop Cable", 3.0), ("ONT", 2.0)]
    assert [(item.name, item.percentage) for item in hardware.faults] == [("WEDGE CLAMPS", 100.0)]

    assert [(item.name, item.count) for item in result.breakdowns.category] == [(INSTALLS, 2), (FAULTS, 1)]
    assert [bucket.month for bucket in result.monthly_data] == ["Feb'25"]
    assert result.monthly_data[0].volume == 2
    assert result.filter_options.categories == [INSTALLS, FAULTS]
    assert result.filter_options.months == ["Feb'25"]


def test_refiltering_keeps_operational_counters():
    prepared = prepare_report(_dplus_table(), now=NOW)
    everything = build_dashboard(prepared)
    faults_only = build_dashboard(prepared, {"category": FAULTS})

    assert faults_only.kpis.total_tickets == 1
    assert faults_only.filters == {"category": FAULTS}
    assert faults_only.dplus_kpis.overall_mtti.count == 0
    assert faults_only.dplus_kpis.completed_installations == everything.dplus_kpis.completed_installations
    assert faults_only.pending_jobs == everything.pending_jobs
    assert faults_only.invalid_rows == everything.invalid_rows

    again = build_dashboard(prepared, FilterSet(category=FAULTS))
    assert again.model_dump() == faults_only.model_dump()


def test_all_filter_matches_everything():
    prepared = prepare_report(_ict_table(), now=NOW)
    assert build_dashboard(prepared, {"technician": "All", "month": ""}).kpis.total_tickets == 1
    assert build_dashboard(prepared, {"technician": "Bob"}).kpis.total_tickets == 0


def test_timezone_aware_now_is_normalised():
    aware = datetime(2025, 1, 2, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    prepared = prepare_report(_ict_table(), now=aware)
    assert prepared.now == NOW
    assert prepared.pending_jobs[0].pending_duration_hours == pytest.approx(3.0)


def test_combine_exports_keeps_first_header():
    first = [["preamble"], ICT_HEADER, ["1", "Alice", "Closed"]]
    second = [["other"], ["title"], ICT_HEADER, ["2", "Bob", "Open"]]
    combined = combine_exports([first, second])
    assert combined == [ICT_HEADER, ["1", "Alice", "Closed"], ["2", "Bob", "Open"]]


def test_combine_exports_rejects_mixed_families():
    with pytest.raises(SchemaDetectionError):
        combine_exports([_ict_table(), _dplus_table()])


def test_dplus_pending_kpi_counts_undated_pending_jobs():
    table = _dplus_table() + [["5011", "Created", FAULTS, "Fibre Break", "", "", "", "", ""]]
    result = process_report(table, now=datetime(2025, 2, 6, 11, 0))

    assert result.kpis.pending == 2
    assert result.dplus_kpis.fault_pending == 1
    assert [job.req_id for job in result.pending_jobs] == ["5004"]
