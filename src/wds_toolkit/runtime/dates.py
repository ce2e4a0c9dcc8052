"""Split a time window into consecutive batches."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta

from wds_toolkit.utils.time import format_timestamp, parse_timestamp

# Remote log queries return at most this many rows.
LOG_RESULT_CEILING = 10_000

_UNITS = {
    "second": "seconds",
    "minute": "minutes",
    "hour": "hours",
    "day": "days",
    "week": "weeks",
}

# Calendar units, in months.
_CALENDAR_UNITS = {
    "month": 1,
    "year": 12,
}


@dataclass(frozen=True, slots=True)
class DateRange:
    """Half-open ``[start, end)`` window."""

    start: datetime
    end: datetime

    def to_filter(self, field: str = "created_timestamp") -> str:
        return f"{field}>={format_timestamp(self.start)},{field}<{format_timestamp(self.end)}"


def _unit_key(size: int, unit: str) -> str:
    if size < 1:
        msg = "batch size must be at least 1"
        raise ValueError(msg)
    key = unit.strip().lower().rstrip("s")
    if key not in _UNITS and key not in _CALENDAR_UNITS:
        msg = f"unsupported batch unit: {unit}"
        raise ValueError(msg)
    return key


def batch_step(size: int, unit: str) -> timedelta:
    """Fixed-length step; calendar units have none and are rejected."""

    key = _unit_key(size, unit)
    if key in _CALENDAR_UNITS:
        msg = f"{unit} has no fixed length"
        raise ValueError(msg)
    return timedelta(**{_UNITS[key]: size})


def _add_months(moment: datetime, months: int) -> datetime:
    index = moment.month - 1 + months
    year, month = moment.year + index // 12, index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def advance(moment: datetime, size: int, unit: str) -> datetime:
    """``moment`` moved forward by ``size`` ``unit``.

    Months and years keep the day of month, clamped to the target month's
    length (Jan 31 + 1 month is the last day of February).
    """

    key = _unit_key(size, unit)
    if key in _CALENDAR_UNITS:
        return _add_months(moment, size * _CALENDAR_UNITS[key])
    return moment + timedelta(**{_UNITS[key]: size})


def date_range_batches(
    start: datetime | str,
    end: datetime | str,
    size: int,
    unit: str = "days",
) -> list[DateRange]:
    """Cover ``[start, end)`` with consecutive windows of ``size`` ``unit``.

    The last window is clamped to ``end``; ``start >= end`` yields nothing.
    Keeping each window under the remote result ceiling is up to the caller.
    """

    _unit_key(size, unit)
    lower = parse_timestamp(start)
    upper = parse_timestamp(end)

    ranges: list[DateRange] = []
    cursor = lower
    while cursor < upper:
        nxt = min(advance(cursor, size, unit), upper)
        ranges.append(DateRange(start=cursor, end=nxt))
        cursor = nxt
    return ranges


__all__ = ["LOG_RESULT_CEILING", "DateRange", "advance", "batch_step", "date_range_batches"]
