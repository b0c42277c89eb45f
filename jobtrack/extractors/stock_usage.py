"""Parser for the free-text stock field of completed D+ jobs.

Engineers record consumed hardware as a comma separated list such as::

    ONT HG8245 (S/N 48575443A1B2C3D4), Drop Cable (x2), 15m Patch Lead

Each token is reduced to an item name and a quantity. The quantity patterns
live in :data:`QUANTITY_RULES` and are tried in order; the first match wins
and a token matching none of them counts as one unit. Serial numbers are then
stripped from the name so the same model of device aggregates under one name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import NamedTuple

from jobtrack.core.schema import HardwareUsageItem

logger = logging.getLogger(__name__)


class QuantityRule(NamedTuple):
    label: str
    pattern: re.Pattern[str]
    name_group: int
    quantity_group: int


QUANTITY_RULES: tuple[QuantityRule, ...] = (
    # "Cable (x3)", "Cable (15m)", "Cable (2m)"
    QuantityRule(
        "parenthesised",
        re.compile(r"^(.*?)\s*\((?:x)?(\d+(?:\.\d+)?)(?:m|ft|meters?)?\s*\)$", re.IGNORECASE),
        name_group=1,
        quantity_group=2,
    ),
    # "2m Cable", "3 Connectors"
    QuantityRule(
        "leading",
        re.compile(r"^(\d+(?:\.\d+)?)\s*(?:m|ft|meters?)?\s+(.*)$", re.IGNORECASE),
        name_group=2,
        quantity_group=1,
    ),
    # "Cable x 4"
    QuantityRule(
        "times",
        re.compile(r"^(.*?)\s*x\s*(\d+(?:\.\d+)?)$", re.IGNORECASE),
        name_group=1,
        quantity_group=2,
    ),
    # "Cable - 5"
    QuantityRule(
        "hyphen",
        re.compile(r"^(.*?)\s*-\s*(\d+(?:\.\d+)?)$", re.IGNORECASE),
        name_group=1,
        quantity_group=2,
    ),
)

SERIAL_ANNOTATION = re.compile(r"\s*\((s/n|sn)[^)]+\)", re.IGNORECASE)
LONG_DIGIT_RUN = re.compile(r"^\d{10,}$")


@dataclass(frozen=True)
class StockItem:
    name: str
    quantity: float


def _looks_like_serial(word: str) -> bool:
    mixed = len(word) > 8 and re.search(r"[a-z]", word, re.IGNORECASE) and re.search(r"\d", word)
    return bool(mixed) or bool(LONG_DIGIT_RUN.match(word))


def _strip_serials(name: str) -> str:
    name = SERIAL_ANNOTATION.sub("", name).strip()
    words = name.split()
    if len(words) > 1 and _looks_like_serial(words[-1]):
        name = " ".join(words[:-1]).strip()
    return name


def parse_stock_item(token: str) -> StockItem | None:
    """Reduce one comma separated token to a named quantity."""

    text = token.strip()
    if not text:
        return None

    name, quantity = text, 1.0
    for rule in QUANTITY_RULES:
        match = rule.pattern.match(text)
        if match:
            name = match.group(rule.name_group).strip()
            quantity = float(match.group(rule.quantity_group))
            break

    name = _strip_serials(name)
    if not name:
        return None
    return StockItem(name=name, quantity=quantity)


def parse_stock_field(text: str) -> dict[str, float]:
    """Parse a whole stock field, summing repeated items within the job."""

    items: dict[str, float] = {}
    for token in (text or "").split(","):
        item = parse_stock_item(token)
        if item is None:
            continue
        items[item.name] = items.get(item.name, 0.0) + item.quantity
    return items


@dataclass
class _ItemStats:
    job_count: int = 0
    total_quantity: float = 0.0


@dataclass
class StockUsageAccumulator:
    """Cross-job usage for one department."""

    jobs: int = 0
    items: dict[str, _ItemStats] = field(default_factory=dict)

    def add_job(self, stock_text: str) -> None:
        self.jobs += 1
        for name, quantity in parse_stock_field(stock_text).items():
            stats = self.items.setdefault(name, _ItemStats())
            stats.job_count += 1
            stats.total_quantity += quantity

    def usage_items(self) -> list[HardwareUsageItem]:
        if self.jobs == 0:
            return []
        usage = [
            HardwareUsageItem(
                name=name,
                total_used=stats.total_quantity,
                percentage=stats.job_count / self.jobs * 100,
            )
            for name, stats in self.items.items()
        ]
        usage.sort(key=lambda item: item.total_used, reverse=True)
        logger.debug("Stock usage over %d jobs: %d distinct items", self.jobs, len(usage))
        return usage
