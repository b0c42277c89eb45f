from __future__ import annotations

import unicodedata


def cell(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def key(value: object) -> str:
    """Comparison key for headers and statuses: NFKC, trimmed, lower-cased."""

    text = unicodedata.normalize("NFKC", cell(value)).lstrip("\ufeff")
    return text.strip().lower()


def text_or(value: object, default: str) -> str:
    """Return ``value`` trimmed, falling back to ``default`` when it is empty."""

    raw = value if isinstance(value, str) and value else default
    return raw.strip()
