from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from jobtrack.core.normalize import key
from jobtrack.core.report_types import ReportConfiguration

ABSENT = -1


@dataclass(frozen=True)
class ColumnIndex:
    """Positions of the logical fields of one report family in a header row.

    Roles that are not configured, or whose header is missing from the export,
    resolve to :data:`ABSENT`. Downstream code must read that as "not
    applicable" rather than as an empty or zero value.
    """

    positions: dict[str, int]
    width: int

    @classmethod
    def from_header(cls, header: Sequence[str], configuration: ReportConfiguration) -> "ColumnIndex":
        lowered = [key(value) for value in header]
        positions: dict[str, int] = {}
        for role, name in configuration.columns.roles().items():
            target = key(name)
            positions[role] = lowered.index(target) if target in lowered else ABSENT
        return cls(positions=positions, width=len(header))

    def position(self, role: str) -> int:
        return self.positions.get(role, ABSENT)

    def has(self, role: str) -> bool:
        return self.position(role) != ABSENT

    def raw(self, row: Sequence[str], role: str) -> str:
        """Cell for ``role`` exactly as exported; ``""`` when absent or short."""

        index = self.position(role)
        if index == ABSENT or index >= len(row):
            return ""
        return row[index] or ""

    def value(self, row: Sequence[str], role: str) -> str:
        return self.raw(row, role).strip()
