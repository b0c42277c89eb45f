"""Command line entry point: ``jobtrack-report EXPORT [EXPORT ...]``."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from jobtrack.analytics.filters import FilterSet
from jobtrack.application import get_session_service
from jobtrack.core.tableio import read_table
from jobtrack.core.validation import ReportError
from jobtrack.extractors.fault_scenarios import analyse_fault_scenarios

logger = logging.getLogger("jobtrack")


def _parse_now(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO timestamp: {value}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobtrack-report",
        description="Summarise ICT or D+ job-tracking exports as dashboard JSON",
    )
    parser.add_argument("paths", nargs="+", type=Path, help="CSV or Excel export(s) of one report family")
    parser.add_argument("--technician", help="only count jobs closed by this technician / engineer")
    parser.add_argument("--category", help="only count jobs in this category / department")
    parser.add_argument("--month", help="only count jobs finished in this month, e.g. Jan'25")
    parser.add_argument("--now", type=_parse_now, help="reference time for pending durations (ISO 8601)")
    parser.add_argument("--faults", action="store_true", help="print the top fault scenarios instead")
    parser.add_argument("--output", type=Path, help="write the JSON here instead of stdout")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity (default: WARNING)",
    )
    return parser


def _render(args: argparse.Namespace) -> str:
    if args.faults:
        tables = [read_table(path) for path in args.paths]
        scenarios = analyse_fault_scenarios(tables)
        return json.dumps([scenario.model_dump(mode="json") for scenario in scenarios], indent=2)

    service = get_session_service()
    dashboard = service.load_files(args.paths, now=args.now)
    filters = FilterSet(technician=args.technician, category=args.category, month=args.month)
    if filters.active():
        dashboard = service.apply_filters(filters)
    return dashboard.model_dump_json(indent=2, exclude_none=True)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        payload = _render(args)
    except ReportError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload + "\n", encoding="utf-8")
        print(f"Report written to {args.output}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
