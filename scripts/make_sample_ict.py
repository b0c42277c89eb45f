#!/usr/bin/env python
from __future__ import annotations

import argparse
from pathlib import Path

from openpyxl import Workbook

HEADER = [
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


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a small ICT service-desk export")
    parser.add_argument("--output", required=True, help="output path (.xlsx)")
    parser.add_argument("--technician", default="Alice", help="technician on the closed tickets")
    args = parser.parse_args()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Requests"
    sheet.append(["Request Summary Report"])
    sheet.append(["Generated for manual runs"])
    sheet.append(HEADER)
    sheet.append(["1001", args.technician, "Open", "01/01/2025 08:00", "01/01/2025 09:00", "", "Network", "WAN", "", ""])
    sheet.append([
        "1001", args.technician, "Closed", "01/01/2025 08:00", "01/01/2025 09:00", "01/01/2025 12:00",
        "Network", "WAN", "false", "false",
    ])
    sheet.append([
        "1002", "Bob", "Resolved", "15/12/2024 10:00", "15/12/2024 10:30", "16/12/2024 10:00",
        "Hardware", "Laptop", "true", "false",
    ])
    sheet.append(["1003", "", "In Progress", "02/01/2025 07:00", "", "", "Network", "LAN", "", ""])

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    print(f"ICT sample written: {output}")


if __name__ == "__main__":
    main()
