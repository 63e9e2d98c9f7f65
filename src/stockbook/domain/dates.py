from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from stockbook.domain.errors import InvalidDateRangeError

DateInput = Union[str, date, datetime]

END_OF_DAY = time(23, 59, 59, 999999)


def parse_datetime(value: DateInput) -> datetime:
    """Parse a date input into a naive local datetime.

    Aware datetimes (including ISO strings with ``Z`` or an offset) are
    converted to local time first so day grouping matches the stored text.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError as e:
            raise InvalidDateRangeError(f"Invalid date format: {value!r}") from e
    else:
        raise InvalidDateRangeError(f"Invalid date format: {value!r}")

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def to_store(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat(sep=" ")


def bound_to_store(dt: datetime) -> str:
    # midnight renders without a fraction; 23:59:59.999999 keeps it and sorts after every stored second
    return dt.isoformat(sep=" ")


def now_iso() -> str:
    return to_store(datetime.now())


def month_bounds(today: Optional[date] = None) -> tuple[datetime, datetime]:
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    start = datetime.combine(today.replace(day=1), time.min)
    end = datetime.combine(today.replace(day=last_day), END_OF_DAY)
    return start, end


def resolve_window(
    start: Optional[DateInput],
    end: Optional[DateInput],
    today: Optional[date] = None,
) -> tuple[datetime, datetime]:
    """Return ``(start-of-day, end-of-day)`` for the inclusive window.

    Missing bounds fall back to the current calendar month.
    """
    default_start, default_end = month_bounds(today)
    start_dt = parse_datetime(start) if start is not None and start != "" else default_start
    end_dt = parse_datetime(end) if end is not None and end != "" else default_end

    start_dt = datetime.combine(start_dt.date(), time.min)
    end_dt = datetime.combine(end_dt.date(), END_OF_DAY)
    if start_dt > end_dt:
        raise InvalidDateRangeError("Start date cannot be later than end date.")
    return start_dt, end_dt


def day_range(start: datetime, end: datetime) -> list[str]:
    days: list[str] = []
    current = start.date()
    last = end.date()
    while current <= last:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days
