"""Application service holding the dashboard state of one loaded export."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from jobtrack.analytics.filters import FilterSet
from jobtrack.analytics.pipeline import build_dashboard, combine_exports, prepare_report
from jobtrack.core.schema import DashboardResult
from jobtrack.core.tableio import read_table
from jobtrack.core.validation import EmptyReportError
from jobtrack.domain import PreparedReport

logger = logging.getLogger(__name__)


class DashboardSessionService:
    """Coordinates loading exports and re-filtering the loaded dashboard."""

    def __init__(self) -> None:
        self._prepared: PreparedReport | None = None
        self._dashboard: DashboardResult | None = None
        self._filters = FilterSet()
        self._sources: list[str] = []

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------
    def load_tables(
        self,
        tables: Sequence[Sequence[Sequence[str]]],
        *,
        now: datetime | None = None,
        sources: Iterable[str] = (),
    ) -> DashboardResult:
        """Replace the session with a fresh load of ``tables``."""

        rows = tables[0] if len(tables) == 1 else combine_exports(tables)
        prepared = prepare_report(rows, now=now)
        dashboard = build_dashboard(prepared)
        if dashboard.is_empty():
            raise EmptyReportError("No valid tickets found in the uploaded file(s).")

        self._prepared = prepared
        self._dashboard = dashboard
        self._filters = FilterSet()
        self._sources = list(sources)
        logger.info(
            "Loaded %s session from %d table(s)",
            prepared.configuration.label,
            len(tables),
        )
        return dashboard

    def load_files(self, paths: Sequence[Path | str], *, now: datetime | None = None) -> DashboardResult:
        if not paths:
            raise EmptyReportError("No files selected.")
        tables = [read_table(path) for path in paths]
        return self.load_tables(tables, now=now, sources=[Path(path).name for path in paths])

    # ------------------------------------------------------------------
    # filtering
    # ------------------------------------------------------------------
    def apply_filters(self, filters: FilterSet | Mapping[str, object] | None = None) -> DashboardResult:
        if self._prepared is None:
            raise RuntimeError("no report loaded")
        active = filters if isinstance(filters, FilterSet) else FilterSet(**(filters or {}))
        self._dashboard = build_dashboard(self._prepared, active)
        self._filters = active
        return self._dashboard

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    @property
    def dashboard(self) -> DashboardResult | None:
        return self._dashboard

    @property
    def prepared(self) -> PreparedReport | None:
        return self._prepared

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    def reset(self) -> None:
        self._prepared = None
        self._dashboard = None
        self._filters = FilterSet()
        self._sources = []


_service = DashboardSessionService()


def get_session_service() -> DashboardSessionService:
    """Return the singleton session service for the process."""

    return _service


def reset_session_state() -> None:
    """Drop the loaded report (used in tests)."""

    _service.reset()
