"""Calendar window arithmetic for velocity limits"""

from datetime import datetime, timedelta

from velocity_limits.domain.models import TimeWindow

# Smallest step datetime can represent; window ends are inclusive
TIME_UNIT = timedelta(microseconds=1)


def start_of_day(instant: datetime) -> datetime:
    """Midnight of the instant's calendar day, in the instant's own offset"""
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(instant: datetime) -> datetime:
    """Midnight of the most recent Monday (or the same day if it is Monday)"""
    return start_of_day(instant) - timedelta(days=instant.weekday())


def day_window(instant: datetime) -> TimeWindow:
    """Calendar day containing the instant"""
    start = start_of_day(instant)
    return TimeWindow(start=start, end=start + timedelta(days=1) - TIME_UNIT)


def week_window(instant: datetime) -> TimeWindow:
    """Monday-start calendar week containing the instant"""
    start = start_of_week(instant)
    return TimeWindow(start=start, end=start + timedelta(days=7) - TIME_UNIT)
