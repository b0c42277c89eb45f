from __future__ import annotations

from collections import Counter
from typing import Iterable

from jobtrack.analytics.metrics import to_breakdown
from jobtrack.core.normalize import text_or
from jobtrack.core.report_types import ReportConfiguration
from jobtrack.core.schema import CancellationReasons
from jobtrack.domain import CanonicalJobRecord
from jobtrack.extractors.columns import ColumnIndex

NO_REASON = "No Reason Given"


def tally_cancellations(
    records: Iterable[CanonicalJobRecord],
    columns: ColumnIndex,
    configuration: ReportConfiguration,
) -> CancellationReasons:
    """Count cancellation reasons per department over cancelled jobs."""

    faults_label = configuration.departments.faults if configuration.departments else None
    installations: Counter[str] = Counter()
    faults: Counter[str] = Counter()
    for record in records:
        reason = text_or(columns.raw(record.row, "cancellation_reason"), NO_REASON) or NO_REASON
        target = faults if record.category == faults_label else installations
        target[reason] += 1
    return CancellationReasons(
        installations=to_breakdown(installations),
        faults=to_breakdown(faults),
    )
