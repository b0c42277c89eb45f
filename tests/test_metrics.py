import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from jobtrack.analytics.classify import build_record
from jobtrack.analytics.metrics import aggregate, aggregate_lifecycle
from jobtrack.core.report_types import get_report_type
from jobtrack.extractors.columns import ColumnIndex

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
    "StockSelected",
]


def _records(header, rows, name):
    configuration = get_report_type(name)
    columns = ColumnIndex.from_header(header, configuration)
    return [build_record(row, columns, configuration) for row in rows], columns, configuration


def test_lifecycle_durations_skip_negative_samples():
    rows = [
        ["1", "Alice", "Closed", "01/01/2025 08:00", "01/01/2025 09:00", "01/01/2025 12:00", "Net", "WAN", "false", "false"],
        ["2", "Bob", "Closed", "01/01/2025 08:00", "01/01/2025 10:00", "01/01/2025 09:00", "Net", "LAN", "true", "true"],
    ]
    records, columns, _ = _records(ICT_HEADER, rows, "ICT")
    kpis = aggregate_lifecycle(records, columns).kpis

    assert kpis.total_tickets == 2
    assert kpis.mtta == pytest.approx(1.5)
    assert kpis.mtti == pytest.approx(2.5)
    # row 2 finishes before it is assigned, so it adds no MTTR sample
    assert kpis.mttr == pytest.approx(3.0)
    assert kpis.ftr == pytest.approx(50.0)
    assert kpis.sla == pytest.approx(50.0)


def test_sla_uses_only_rows_with_the_flag():
    rows = [
        ["1", "Alice", "Closed", "", "", "", "", "", "false", "true"],
        ["2", "Alice", "Closed", "", "", "", "", "", "", "true"],
    ]
    records, columns, _ = _records(ICT_HEADER, rows, "ICT")
    kpis = aggregate_lifecycle(records, columns).kpis
    assert kpis.sla == pytest.approx(100.0)
    assert kpis.ftr == pytest.approx(0.0)


def test_sentinels_for_absent_flag_columns():
    header = ICT_HEADER[:8]
    rows = [["1", "Alice", "Closed", "", "", "", "", ""]]
    records, columns, _ = _records(header, rows, "ICT")
    kpis = aggregate_lifecycle(records, columns).kpis
    assert kpis.ftr == -1
    assert kpis.sla == -1


def test_sla_sentinel_when_no_row_has_the_flag():
    rows = [["1", "Alice", "Closed", "", "", "", "", "", "", "false"]]
    records, columns, _ = _records(ICT_HEADER, rows, "ICT")
    kpis = aggregate_lifecycle(records, columns).kpis
    assert kpis.sla == -1
    assert kpis.ftr == pytest.approx(100.0)


def test_empty_set_has_zero_ftr():
    _, columns, _ = _records(ICT_HEADER, [], "ICT")
    kpis = aggregate_lifecycle([], columns).kpis
    assert kpis.total_tickets == 0
    assert kpis.ftr == 0
    assert kpis.sla == -1
    assert kpis.mtti == 0


def test_monthly_buckets_are_chronological():
    rows = [
        ["1", "Alice", "Closed", "02/01/2025 08:00", "02/01/2025 09:00", "02/01/2025 10:00", "", "", "", ""],
        ["2", "Alice", "Closed", "30/12/2024 08:00", "30/12/2024 09:00", "30/12/2024 12:00", "", "", "", ""],
        ["3", "Bob", "Closed", "", "", "31/12/2024 12:00", "", "", "", ""],
    ]
    records, columns, _ = _records(ICT_HEADER, rows, "ICT")
    monthly = aggregate_lifecycle(records, columns).monthly_data

    assert [bucket.month for bucket in monthly] == ["Dec'24", "Jan'25"]
    december, january = monthly
    assert december.volume == 2
    assert december.mtti == pytest.approx(4.0)
    assert december.mttr == pytest.approx(3.0)
    assert january.volume == 1
    assert january.mtti == pytest.approx(2.0)


def test_breakdowns_sort_by_count_and_keep_ties_in_order():
    rows = [
        ["1", "Carol", "Closed", "", "", "", "Net", "", "", ""],
        ["2", "Alice", "Closed", "", "", "", "Hardware", "Laptop", "", ""],
        ["3", "Alice", "Closed", "", "", "", "Net", "", "", ""],
        ["4", "Bob", "Closed", "", "", "", "", "", "", ""],
    ]
    records, columns, _ = _records(ICT_HEADER, rows, "ICT")
    breakdowns = aggregate_lifecycle(records, columns).breakdowns

    assert [(item.name, item.count) for item in breakdowns.technician] == [("Alice", 2), ("Carol", 1), ("Bob", 1)]
    assert [(item.name, item.count) for item in breakdowns.category] == [("Net", 2), ("Hardware", 1), ("N/A", 1)]
    assert [(item.name, item.count) for item in breakdowns.sub_category] == [("N/A", 3), ("Laptop", 1)]


def test_department_model_routes_durations_and_stock():
    rows = [
        ["1", "Completed", "St. Lucia Installations", "Standalone BB", "Jean", "01/02/2025 08:00", "01/02/2025 14:00", "ONT (2)"],
        ["2", "Completed", "St. Lucia Installations", "New Install", "Jean", "02/02/2025 08:00", "02/02/2025 10:00", "Cable - 9"],
        ["3", "Completed", "St. Lucia Fault Repair", "Fibre Break", "Marc", "03/02/2025 09:00", "03/02/2025 13:30", ""],
        ["4", "Completed", "St. Lucia Fault Repair", "Fibre Break", "Marc", "04/02/2025 09:00", "04/02/2025 08:00", "Clamp - 3"],
    ]
    records, columns, configuration = _records(DPLUS_HEADER, rows, "DPlus")
    result = aggregate(records, columns, configuration)

    assert result.overall_mtti.count == 2
    assert result.overall_mtti.value == pytest.approx(4.0)
    assert result.overall_mttr.count == 1
    assert result.overall_mttr.value == pytest.approx(4.5)
    assert result.kpis.total_tickets == 3
    assert result.kpis.mtta is None
    assert result.kpis.ftr is None

    hardware = result.hardware_usage
    # only standalone installs feed installation stock
    assert [(item.name, item.total_used, item.percentage) for item in hardware.installations] == [("ONT", 2.0, 100.0)]
    # the fault with an empty stock field still counts as an applicable job
    assert hardware.faults == []

    assert [(item.name, item.count) for item in result.breakdowns.technician] == [("Jean", 2), ("Marc", 2)]
    assert result.breakdowns.sub_category == []
    assert [bucket.volume for bucket in result.monthly_data] == [3]
