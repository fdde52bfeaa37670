from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Iterator, Union

from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]

# 100 years; anything slower than this is reported as unreachable
UNREACHABLE_HORIZON_MONTHS = 1200


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_in_month(day: DateLike) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def add_months(day: DateLike, months: int) -> date:
    """Calendar month arithmetic; Jan 31 + 1 month is the last day of February."""
    return to_date(day) + relativedelta(months=months)


def first_of_month(day: DateLike) -> date:
    return date(day.year, day.month, 1)


def contribution_start_date(created_at: DateLike) -> date:
    """
    Contributions are modelled as starting on the 1st of the month after the
    goal was created, whatever day of the month that was.
    """
    return add_months(first_of_month(created_at), 1)


def whole_months_between(start: DateLike, end: DateLike) -> int:
    """Calendar month difference (ignores the day of month), floored at 0."""
    return max(0, (end.year - start.year) * 12 + (end.month - start.month))


def contribution_periods(start_date: DateLike, target_date: DateLike) -> int:
    """
    Number of monthly contribution slots from ``start_date`` through the month
    of ``target_date``. The target month itself counts, and there is always
    at least one slot.
    """
    diff = (target_date.year - start_date.year) * 12 + (target_date.month - start_date.month)
    return max(1, diff + 1)


def months_between(start: DateLike, end: DateLike) -> float:
    """
    Continuous month duration for compounding: whole months plus the
    day-of-month difference as a fraction of the end month's length.
    """
    whole = (end.year - start.year) * 12 + (end.month - start.month)
    fraction = (end.day - start.day) / days_in_month(end)
    return max(0.0, whole + fraction)


def month_starts(first: DateLike, last: DateLike) -> Iterator[date]:
    """Yield the 1st of every month from ``first``'s month through ``last``'s month."""
    current = first_of_month(first)
    stop = first_of_month(last)
    while current <= stop:
        yield current
        current = add_months(current, 1)


def far_future(today: DateLike) -> date:
    """Sentinel completion date for goals that will never be reached."""
    return add_months(today, UNREACHABLE_HORIZON_MONTHS)


__all__ = [
    "UNREACHABLE_HORIZON_MONTHS",
    "to_date",
    "days_in_month",
    "add_months",
    "first_of_month",
    "contribution_start_date",
    "whole_months_between",
    "contribution_periods",
    "months_between",
    "month_starts",
    "far_future",
]
