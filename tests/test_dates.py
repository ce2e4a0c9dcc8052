from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from wds_toolkit.runtime import DateRange, date_range_batches
from wds_toolkit.runtime.dates import advance, batch_step


def test_month_splits_into_two_fifteen_day_windows() -> None:
    ranges = date_range_batches("2024-01-01T00:00:00Z", "2024-01-31T00:00:00Z", 15, "days")

    assert ranges == [
        DateRange(datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 16, tzinfo=UTC)),
        DateRange(datetime(2024, 1, 16, tzinfo=UTC), datetime(2024, 1, 31, tzinfo=UTC)),
    ]


def test_final_window_is_clamped() -> None:
    start = datetime(2024, 1, 1, tzinfo=UTC)
    end = start + timedelta(hours=5)

    ranges = date_range_batches(start, end, 2, "hours")

    assert [r.end - r.start for r in ranges] == [
        timedelta(hours=2),
        timedelta(hours=2),
        timedelta(hours=1),
    ]
    assert ranges[-1].end == end
    assert all(a.end == b.start for a, b in zip(ranges, ranges[1:]))


def test_empty_when_start_not_before_end() -> None:
    moment = datetime(2024, 1, 1, tzinfo=UTC)

    assert date_range_batches(moment, moment, 1, "days") == []
    assert date_range_batches(moment + timedelta(days=1), moment, 1, "days") == []


def test_filter_uses_half_open_bounds() -> None:
    window = DateRange(datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 2, tzinfo=UTC))

    assert window.to_filter() == (
        "created_timestamp>=2024-01-01T00:00:00Z,created_timestamp<2024-01-02T00:00:00Z"
    )


@pytest.mark.parametrize(
    ("unit", "expected"),
    [("day", timedelta(days=3)), ("Weeks", timedelta(weeks=3)), ("minutes", timedelta(minutes=3))],
)
def test_unit_aliases(unit: str, expected: timedelta) -> None:
    assert batch_step(3, unit) == expected


@pytest.mark.parametrize(("size", "unit"), [(0, "days"), (1, "fortnights")])
def test_invalid_batches_rejected(size: int, unit: str) -> None:
    with pytest.raises(ValueError):
        date_range_batches("2024-01-01T00:00:00Z", "2024-02-01T00:00:00Z", size, unit)


def test_calendar_units_have_no_fixed_step() -> None:
    with pytest.raises(ValueError):
        batch_step(1, "months")


def test_month_windows_follow_the_calendar() -> None:
    ranges = date_range_batches("2024-01-01T00:00:00Z", "2024-04-01T00:00:00Z", 1, "month")

    assert [r.start.month for r in ranges] == [1, 2, 3]
    assert ranges[1] == DateRange(
        datetime(2024, 2, 1, tzinfo=UTC), datetime(2024, 3, 1, tzinfo=UTC)
    )


def test_month_end_is_clamped_to_shorter_month() -> None:
    assert advance(datetime(2024, 1, 31, tzinfo=UTC), 1, "months") == datetime(2024, 2, 29, tzinfo=UTC)
    assert advance(datetime(2023, 11, 30, tzinfo=UTC), 2, "months") == datetime(2024, 1, 30, tzinfo=UTC)
    assert advance(datetime(2024, 2, 29, tzinfo=UTC), 1, "year") == datetime(2025, 2, 28, tzinfo=UTC)
