"""
quality_engines.deadline -- on-time / late closure classification.

Responsibility:
    Compare the day a record was closed with its planned close date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quality_kernel/domain/ types.

Invariants enforced:
    - Comparison is by calendar date, never time of day: closing at 23:59
      on the planned date is on time.
    - No planned date means no deadline, which is always on time.
    - Purity: the closure moment is passed in; this module never reads a
      clock.
"""

from __future__ import annotations

from datetime import date, datetime

from quality_engines.tracer import traced_engine
from quality_kernel.domain.records import ClosureOutcome


def _as_date(value: date | datetime) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


@traced_engine("deadline", "1.0", fingerprint_fields=("planned_close_date", "closed_at"))
def classify_closure(
    planned_close_date: date | datetime | None,
    closed_at: date | datetime,
) -> ClosureOutcome:
    """Return ON_TIME iff there is no deadline or the closure day is not after it.

    >>> classify_closure(date(2024, 1, 10), date(2024, 1, 9))
    <ClosureOutcome.ON_TIME: 'on_time'>
    """
    if planned_close_date is None:
        return ClosureOutcome.ON_TIME
    if _as_date(closed_at) <= _as_date(planned_close_date):
        return ClosureOutcome.ON_TIME
    return ClosureOutcome.LATE
