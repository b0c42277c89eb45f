import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from jobtrack.core.validation import EmptyReportError, SchemaDetectionError
from jobtrack.extractors.detect import HEADER_SCAN_ROWS, detect_report, find_header

ICT_HEADER = ["RequestID", "Technician", "Request Status", "Created Time", "Assigned Time", "Completed Time"]
DPLUS_HEADER = ["JobNumber", "JobStatusFull", "DepartmentName", "Engineers", "DateCreated", "DateFinished"]


def test_ict_header_found_after_preamble():
    rows = [
        ["Request Summary"],
        ["Run on 01/02/2025", ""],
        ICT_HEADER,
        ["1001", "Alice", "Closed", "", "", ""],
    ]
    detected = detect_report(rows)
    assert detected.configuration.name == "ICT"
    assert detected.header_index == 2
    assert detected.header[0] == "RequestID"


def test_header_match_ignores_case_and_whitespace():
    rows = [["  requestid ", "TECHNICIAN", " request status", "assigned time"], ["1", "a", "open", ""]]
    assert detect_report(rows).configuration.name == "ICT"


def test_dplus_header_is_recognised():
    rows = [DPLUS_HEADER, ["5001", "Completed", "St. Lucia Installations", "Jean", "", ""]]
    detected = detect_report(rows)
    assert detected.configuration.name == "DPlus"
    assert detected.header_index == 0


def test_header_beyond_scan_window_is_rejected():
    rows = [["preamble"]] * HEADER_SCAN_ROWS + [ICT_HEADER, ["1001", "Alice", "Closed", "", "", ""]]
    assert find_header(rows) is None
    with pytest.raises(SchemaDetectionError, match="no valid header row found"):
        detect_report(rows)


def test_partial_header_is_not_a_match():
    rows = [["RequestID", "Technician"], ["1001", "Alice"]]
    with pytest.raises(SchemaDetectionError):
        detect_report(rows)


def test_header_without_data_rows_is_empty():
    with pytest.raises(EmptyReportError):
        detect_report([["title"], ICT_HEADER])
