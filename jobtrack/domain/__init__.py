"""Domain layer definitions."""

from .records import CanonicalJobRecord, Classification, DirectCounters, PreparedReport

__all__ = [
    "CanonicalJobRecord",
    "Classification",
    "DirectCounters",
    "PreparedReport",
]
