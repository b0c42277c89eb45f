#!/usr/bin/env python
from __future__ import annotations

import argparse
from pathlib import Path

from openpyxl import Workbook

HEADER = [
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


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a small D+ field-engineering export")
    parser.add_argument("--output", required=True, help="output path (.xlsx)")
    parser.add_argument("--engineer", default="Jean Pierre", help="engineer on the completed jobs")
    args = parser.parse_args()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Jobs"
    sheet.append(["D+ Job Export"])
    sheet.append(HEADER)
    sheet.append([
        "5001", "Completed", "St. Lucia Installations", "Standalone BB", args.engineer,
        "01/02/2025 08:00", "01/02/2025 14:00", "", "ONT (2), Outdoor Fiber - 150M - 1",
    ])
    sheet.append([
        "5002", "Completed", "St. Lucia Fault Repair External", "Suspected Fibre Break", args.engineer,
        "03/02/2025 09:00", "03/02/2025 13:30", "", "WEDGE CLAMPS - 12",
    ])
    sheet.append([
        "5003", "Cancelled", "St. Lucia Fault Repair External", "Reactivation", "",
        "04/02/2025 10:00", "", "CU20 - Raised in Error", "",
    ])
    sheet.append([
        "5004", "Confirmed", "St. Lucia Installations", "Relocation", "",
        "05/02/2025 11:00", "", "", "",
    ])

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    print(f"D+ sample written: {output}")


if __name__ == "__main__":
    main()
