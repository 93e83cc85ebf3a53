"""Billing calendar helpers

Timestamps are stored as naive UTC. Month and day boundaries are drawn in
the billing timezone, a fixed UTC offset (Asia/Kuala_Lumpur has no DST).
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple


def to_local(moment: datetime, utc_offset_hours: int) -> datetime:
    return moment + timedelta(hours=utc_offset_hours)


def local_midnight_utc(day: date, utc_offset_hours: int) -> datetime:
    """UTC instant at which ``day`` starts in the billing timezone"""
    return datetime.combine(day, time.min) - timedelta(hours=utc_offset_hours)


def local_day_end_utc(day: date, utc_offset_hours: int) -> datetime:
    """UTC instant of the last microsecond of ``day`` in the billing timezone"""
    return local_midnight_utc(day + timedelta(days=1), utc_offset_hours) - timedelta(microseconds=1)


def month_window(now: datetime, utc_offset_hours: int) -> Tuple[datetime, datetime]:
    """
    UTC bounds of the billing-timezone calendar month containing ``now``

    Args:
        now: Current UTC time
        utc_offset_hours: Billing timezone offset

    Returns:
        Tuple of (start inclusive, end exclusive) in UTC
    """
    local = to_local(now, utc_offset_hours)
    first = local.date().replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return (
        local_midnight_utc(first, utc_offset_hours),
        local_midnight_utc(next_first, utc_offset_hours),
    )


def local_today(utc_offset_hours: int, now: Optional[datetime] = None) -> date:
    return to_local(now or datetime.utcnow(), utc_offset_hours).date()


def last_day_of_previous_month(utc_offset_hours: int, now: Optional[datetime] = None) -> date:
    return local_today(utc_offset_hours, now).replace(day=1) - timedelta(days=1)
