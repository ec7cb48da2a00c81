"""Timezone-aware date/time helpers for the cabana reservation engine."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from flask import current_app

DATE_FORMAT = '%Y-%m-%d'
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'Europe/Istanbul')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())


def now_timestamp() -> str:
    """Current local time formatted for TIMESTAMP columns."""
    return get_now().strftime(TIMESTAMP_FORMAT)


def parse_date(value: str) -> date:
    """
    Parse an ISO calendar date.

    Raises:
        ValueError: If the value is not a YYYY-MM-DD string
    """
    return datetime.strptime(value, DATE_FORMAT).date()


def iter_days(start: date, end: date):
    """Yield each day in the half-open range [start, end)."""
    day = start
    while day < end:
        yield day
        day += timedelta(days=1)
