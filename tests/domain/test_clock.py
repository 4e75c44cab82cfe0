"""DeterministicClock behaviour used throughout the suite."""

from datetime import UTC, date, datetime

from quality_kernel.domain.clock import DeterministicClock, SystemClock


def test_fixed_time_and_advance():
    clock = DeterministicClock(datetime(2024, 3, 1, 23, 59, 30, tzinfo=UTC))

    clock.advance(45)

    assert clock.now() == datetime(2024, 3, 2, 0, 0, 15, tzinfo=UTC)
    assert clock.today() == date(2024, 3, 2)


def test_set_time_assumes_utc_for_naive_values():
    clock = DeterministicClock()
    clock.advance_days(2)

    clock.set_time(datetime(2024, 6, 1, 8, 0))

    assert clock.now() == datetime(2024, 6, 1, 8, 0, tzinfo=UTC)


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None
