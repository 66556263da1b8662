"""
Date helpers for the Trainer Ledger Engine

Weeks always run Monday -> Sunday. Versioned records (price history,
income-rate tables) are resolved with `latest_effective`.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def parse_date(value) -> date:
    """Parse a YYYY-MM-DD string (timestamps are truncated to the date part)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()


def parse_optional_date(value) -> date | None:
    if value in (None, ""):
        return None
    return parse_date(value)


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def shift_days(day: date, delta: int) -> date:
    return day + timedelta(days=delta)


def is_within(day: date, start: date, end: date) -> bool:
    return start <= day <= end


@dataclass(frozen=True)
class WeekRange:
    """A Monday -> Sunday week."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return is_within(day, self.start, self.end)

    @classmethod
    def from_dict(cls, data: dict) -> "WeekRange":
        start = parse_date(data["start"])
        end = data.get("end")
        return cls(start=start, end=parse_date(end) if end else shift_days(start, 6))


def week_range(day: date) -> WeekRange:
    """Compute the Monday -> Sunday range containing `day`."""
    start = monday_of(day)
    return WeekRange(start=start, end=shift_days(start, 6))


def latest_effective(
    records: Iterable[T],
    target: date,
    key: Callable[[T], date | None],
) -> T | None:
    """
    Return the record with the greatest effective date on or before `target`.

    Records whose key is None count as effective since forever. On ties the
    record seen last wins, so later inserts supersede earlier ones.
    """
    best = None
    best_date = None
    for record in records:
        effective = key(record) or date.min
        if effective > target:
            continue
        if best is None or effective >= best_date:
            best = record
            best_date = effective
    return best
