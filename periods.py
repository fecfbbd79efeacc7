from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings


@dataclass(frozen=True)
class Period:
    """Inclusive range of calendar days."""

    start: Optional[date]
    end: Optional[date]

    def lower_bound(self) -> Optional[datetime]:
        if self.start is None:
            return None
        return start_of_day(self.start)

    def upper_bound(self) -> Optional[datetime]:
        # exclusive: the first instant after the last covered day
        if self.end is None:
            return None
        return start_of_day(self.end + timedelta(days=1))


def local_now() -> datetime:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).replace(tzinfo=None)


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    tz = ZoneInfo(get_settings().timezone)
    return value.astimezone(tz).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def month_start(day: date) -> date:
    return day.replace(day=1)


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def add_months(base: date, months: int) -> date:
    """Shift by whole months, snapping to the last day of short months."""
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    day = min(base.day, days_in_month(year, month))
    return date(year, month, day)
