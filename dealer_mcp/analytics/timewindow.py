"""Month-to-date windows, cumulative pacing series and trailing-month buckets.

The comparable prior-month window covers the same elapsed calendar days as
the current month-to-date window: days ``1..cutoff_day`` of last month, where
``cutoff_day = min(day_of(reference), days_in(last month))``.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, TypeVar

from dealer_mcp.config import CLOCK_POLICY, DATA_MAX_POLICY

T = TypeVar("T")

CURRENT = "current"
LAST = "last"


def month_start(day: date) -> date:
    return day.replace(day=1)


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def add_months(day: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the target month's length."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def months_between(earlier: date, later: date) -> int:
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


@dataclass(frozen=True)
class MTDWindow:
    """Current month-to-date and comparable prior-month boundaries."""

    reference: date
    current_start: date
    last_start: date
    last_end: date
    cutoff_day: int
    days_elapsed: int
    days_in_current_month: int
    days_in_last_month: int

    def bucket(self, day: date | None) -> str | None:
        if day is None:
            return None
        if self.current_start <= day <= self.reference:
            return CURRENT
        if self.last_start <= day <= self.last_end and day.day <= self.cutoff_day:
            return LAST
        return None


def mtd_window(reference: date) -> MTDWindow:
    current_start = month_start(reference)
    last_start = month_start(add_months(reference, -1))
    last_len = days_in_month(last_start)
    return MTDWindow(
        reference=reference,
        current_start=current_start,
        last_start=last_start,
        last_end=last_start.replace(day=last_len),
        cutoff_day=min(reference.day, last_len),
        days_elapsed=max(1, reference.day),
        days_in_current_month=days_in_month(reference),
        days_in_last_month=last_len,
    )


def mtd_split(
    records: Iterable[T],
    date_fn: Callable[[T], date | None],
    reference: date,
) -> tuple[list[T], list[T]]:
    """Partition records into (current MTD, comparable last-month) lists."""
    window = mtd_window(reference)
    current: list[T] = []
    last: list[T] = []
    for record in records or ():
        bucket = window.bucket(date_fn(record))
        if bucket == CURRENT:
            current.append(record)
        elif bucket == LAST:
            last.append(record)
    return current, last


def pacing_series(
    records: Iterable[T],
    date_fn: Callable[[T], date | None],
    value_fn: Callable[[T], float],
    reference: date,
    *,
    scale: float = 1.0,
    ndigits: int | None = None,
) -> list[dict[str, Any]]:
    """Cumulative day-by-day sums for the current and comparable windows.

    Days past a window's valid range carry ``None`` rather than a flat total.
    """
    window = mtd_window(reference)
    daily_current: dict[int, float] = {}
    daily_last: dict[int, float] = {}
    for record in records or ():
        day = date_fn(record)
        bucket = window.bucket(day)
        if bucket == CURRENT:
            daily_current[day.day] = daily_current.get(day.day, 0.0) + value_fn(record)
        elif bucket == LAST:
            daily_last[day.day] = daily_last.get(day.day, 0.0) + value_fn(record)

    def _scaled(value: float) -> float:
        scaled = value / scale if scale else value
        return round(scaled, ndigits) if ndigits is not None else scaled

    series: list[dict[str, Any]] = []
    running_current = 0.0
    running_last = 0.0
    for day_index in range(1, max(window.days_elapsed, window.days_in_last_month) + 1):
        running_current += daily_current.get(day_index, 0.0)
        running_last += daily_last.get(day_index, 0.0)
        series.append(
            {
                "day": day_index,
                "current": (
                    _scaled(running_current) if day_index <= window.days_elapsed else None
                ),
                "last": (
                    _scaled(running_last) if day_index <= window.days_in_last_month else None
                ),
            }
        )
    return series


def trailing_month_index(day: date | None, reference: date, months: int) -> int | None:
    """Chronological bucket ``0..months-1`` (last = reference month), else ``None``."""
    if day is None or months <= 0:
        return None
    back = months_between(day, reference)
    if 0 <= back < months:
        return months - 1 - back
    return None


def trailing_month_labels(reference: date, months: int, fmt: str = "%b %Y") -> list[str]:
    start = month_start(reference)
    return [add_months(start, -back).strftime(fmt) for back in range(months - 1, -1, -1)]


def percent_change(current: float, last: float) -> float:
    if not last:
        return 0.0
    return (current - last) / last * 100


def linear_pace(value: float, window: MTDWindow) -> float:
    """Project a month-to-date value to the full month at the current daily rate."""
    return value / window.days_elapsed * window.days_in_current_month


def resolve_reference_date(
    policy: str,
    dates: Iterable[date | None] = (),
    *,
    today: date | None = None,
) -> date:
    """Pick "today" for window math.

    ``clock`` uses the calendar date; ``data_max`` uses the latest observed
    record date, which suits historical or lagging uploads.  Falls back to the
    calendar date when no dates are observed.
    """
    clock_today = today or datetime.now().date()
    if policy == CLOCK_POLICY:
        return clock_today
    if policy == DATA_MAX_POLICY:
        observed = [d for d in dates if d is not None]
        return max(observed) if observed else clock_today
    raise ValueError(f"Unknown reference date policy: {policy!r}")
