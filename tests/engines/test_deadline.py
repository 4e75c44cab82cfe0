"""
Closure classification tests.

The deadline day itself counts as on time; time of day is ignored.
"""

import logging
from datetime import UTC, date, datetime, timedelta

from hypothesis import given
from hypothesis import strategies as st

from quality_engines.deadline import classify_closure
from quality_kernel.domain.records import ClosureOutcome


class TestClassifyClosure:

    def test_boundary_day_is_on_time(self):
        assert classify_closure(date(2024, 3, 1), date(2024, 3, 1)) == ClosureOutcome.ON_TIME

    def test_late_evening_of_deadline_is_on_time(self):
        closed = datetime(2024, 3, 1, 23, 59, 59, tzinfo=UTC)
        assert classify_closure(date(2024, 3, 1), closed) == ClosureOutcome.ON_TIME

    def test_day_after_is_late(self):
        assert classify_closure(date(2024, 3, 1), date(2024, 3, 2)) == ClosureOutcome.LATE

    def test_no_deadline_is_on_time(self):
        assert classify_closure(None, date(2030, 1, 1)) == ClosureOutcome.ON_TIME

    def test_datetime_deadline_compared_by_day(self):
        planned = datetime(2024, 3, 1, 0, 0, tzinfo=UTC)
        closed = datetime(2024, 3, 1, 18, 0, tzinfo=UTC)
        assert classify_closure(planned, closed) == ClosureOutcome.ON_TIME

    def test_emits_engine_trace(self, captured_logs):
        tracer_logger = logging.getLogger("quality_kernel.engines.tracer")
        previous = tracer_logger.level
        tracer_logger.setLevel(logging.DEBUG)
        try:
            classify_closure(planned_close_date=date(2024, 3, 1), closed_at=date(2024, 3, 1))
        finally:
            tracer_logger.setLevel(previous)

        traces = [r for r in captured_logs() if r["message"] == "ENGINE_TRACE"]
        assert traces[0]["engine_name"] == "deadline"
        assert len(traces[0]["input_fingerprint"]) == 16


_days = st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 1, 1))


@given(planned=_days, offset=st.integers(min_value=-400, max_value=400))
def test_late_iff_closed_after_planned_day(planned, offset):
    closed = planned + timedelta(days=offset)
    expected = ClosureOutcome.LATE if offset > 0 else ClosureOutcome.ON_TIME
    assert classify_closure(planned, closed) == expected


@given(planned=_days, seconds=st.integers(min_value=0, max_value=86399))
def test_time_of_day_never_matters(planned, seconds):
    closed = datetime(planned.year, planned.month, planned.day, tzinfo=UTC) + timedelta(seconds=seconds)
    assert classify_closure(planned, closed) == ClosureOutcome.ON_TIME
