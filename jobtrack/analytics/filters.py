from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, field_validator

from jobtrack.core.dates import month_label
from jobtrack.domain import CanonicalJobRecord

ALL = "all"


class FilterSet(BaseModel):
    """Optional equality filters; ``None``, blank or ``"All"`` match everything."""

    technician: str | None = None
    category: str | None = None
    month: str | None = None

    model_config = {"frozen": True}

    @field_validator("technician", "category", "month", mode="before")
    @classmethod
    def _normalise(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text or text.lower() == ALL:
            return None
        return text

    def active(self) -> dict[str, str]:
        return {name: value for name, value in self.model_dump().items() if value is not None}


def record_month(record: CanonicalJobRecord) -> str | None:
    return month_label(record.finished) if record.finished is not None else None


def matches(record: CanonicalJobRecord, filters: FilterSet) -> bool:
    if filters.technician is not None and record.assignee != filters.technician:
        return False
    if filters.category is not None and record.category != filters.category:
        return False
    if filters.month is not None and record_month(record) != filters.month:
        return False
    return True


def apply_filters(records: Iterable[CanonicalJobRecord], filters: FilterSet | None = None) -> list[CanonicalJobRecord]:
    if filters is None:
        return list(records)
    return [record for record in records if matches(record, filters)]
