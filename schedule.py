"""
Premium payment schedules for single-name CDS.

Dates roll forward from the start date in whole months. Weekend dates are
moved to the following Monday; holiday calendars are not modelled.
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from .errors import InvalidParameterError


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clipping the day to the month end."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def adjust_following(d: date) -> date:
    """Roll weekend dates forward to the next business day."""
    while d.weekday() >= 5:
        d += timedelta(days=1)
    return d


@dataclass
class Schedule:
    """Ordered accrual boundary dates; consecutive pairs are coupon periods."""
    dates: list[date]

    def __post_init__(self):
        if len(self.dates) < 2:
            raise InvalidParameterError("a schedule needs at least two dates")
        if any(d2 <= d1 for d1, d2 in zip(self.dates, self.dates[1:])):
            raise InvalidParameterError("schedule dates must be strictly increasing")

    @property
    def start_date(self) -> date:
        return self.dates[0]

    @property
    def end_date(self) -> date:
        return self.dates[-1]

    def periods(self) -> list[tuple[date, date]]:
        return list(zip(self.dates[:-1], self.dates[1:]))

    def __len__(self):
        return len(self.dates)


def make_schedule(start: date, end: date, tenor_months: int = 3,
                  adjust: bool = True) -> Schedule:
    """
    Build a forward-generated schedule from `start` to `end`.

    The start date is kept unadjusted so that protection starts exactly on
    it; later dates are rolled with the Following convention when `adjust`
    is set. A short final stub is produced when the tenor does not divide
    the period evenly.
    """
    if end <= start:
        raise InvalidParameterError(f"schedule end {end} must follow start {start}")
    if tenor_months < 1:
        raise InvalidParameterError(f"tenor must be at least one month, got {tenor_months}")

    roll = adjust_following if adjust else (lambda d: d)
    end_adj = roll(end)
    dates = [start]
    n = 1
    while True:
        d = roll(add_months(start, n * tenor_months))
        if d >= end_adj:
            break
        dates.append(d)
        n += 1
    dates.append(end_adj)
    return Schedule(dates=dates)
