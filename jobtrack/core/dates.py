"""Tolerant date handling for job-tracking exports.

Exports mix ``DD/MM/YYYY HH:mm[:ss]`` stamps with ISO-8601-like strings, so
``parse_date`` tries the day-first pattern strictly and only then hands the
text to pandas' free-form parser. Every helper here returns ``None`` instead
of raising; callers skip whatever depends on a missing instant.

Timezone-aware values are converted to UTC and stored naive so that instants
coming from either path can be subtracted from each other.
"""

from __future__ import annotations

import re
import warnings
from datetime import date, datetime
from typing import Any

import pandas as pd


DAY_FIRST_PATTERN = re.compile(r"(\d{2})/(\d{2})/(\d{4})\s(\d{2}):(\d{2})(?::(\d{2}))?")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MONTH_LABEL_PATTERN = re.compile(r"^01\s+([A-Za-z]{3})[A-Za-z]*\.?\s*'?\s*(\d{2}|\d{4})$")
# pandas reads these as the current clock time
RELATIVE_KEYWORDS = frozenset({"now", "today"})


def _from_day_first(match: re.Match[str]) -> datetime | None:
    day, month, year, hour, minute, second = match.groups()
    try:
        return datetime(int(year), int(month), int(day), int(hour), int(minute), int(second or 0))
    except ValueError:
        return None


def _free_form(text: str) -> datetime | None:
    if text.lower() in RELATIVE_KEYWORDS:
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            stamp = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if stamp is None or pd.isna(stamp):
        return None
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert("UTC").tz_localize(None)
    return stamp.to_pydatetime()


def parse_date(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    match = DAY_FIRST_PATTERN.search(text)
    if match:
        return _from_day_first(match)
    return _free_form(text)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def month_label(moment: datetime | date) -> str:
    """Short month plus two-digit year, e.g. ``Jan'25``."""

    return f"{MONTH_NAMES[moment.month - 1]}'{moment.year % 100:02d}"


def parse_month_label(label: str) -> date | None:
    match = MONTH_LABEL_PATTERN.match(f"01 {label.strip()}")
    if not match:
        return None
    name, year = match.groups()
    lookup = {month.lower(): index for index, month in enumerate(MONTH_NAMES, start=1)}
    month = lookup.get(name.lower())
    if month is None:
        return None
    year_value = int(year)
    if year_value < 100:
        year_value += 2000
    return date(year_value, month, 1)


def month_sort_key(label: str) -> tuple[int, date, str]:
    # unparseable labels go last, in label order
    parsed = parse_month_label(label)
    if parsed is None:
        return (1, date.min, label)
    return (0, parsed, label)
