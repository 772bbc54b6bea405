"""
Date/time helpers

- Timestamps (completed_at, opened_at) are stored as timezone-aware UTC
- Calendar dates (streaks, quest assignment) are taken in APP_TIMEZONE
"""

import logging
from datetime import datetime, date
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from learnquest.config import APP_TIMEZONE

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


def get_app_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    ZoneInfo for the configured calendar timezone

    Falls back to UTC when the name is unknown.
    """
    tz_name = tz_name or APP_TIMEZONE
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}, using {DEFAULT_TIMEZONE}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_utc() -> datetime:
    """Current datetime in UTC (timezone-aware)"""
    return datetime.now(ZoneInfo("UTC"))


def today_app_timezone(now: Optional[datetime] = None) -> date:
    """
    Calendar date of `now` (default: current time) in APP_TIMEZONE

    Example:
        APP_TIMEZONE=Asia/Bangkok, now=2024-03-01 18:30 UTC -> 2024-03-02
    """
    now = now or now_utc()
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(get_app_timezone()).date()


def start_of_day(day: date) -> datetime:
    """Midnight of `day` in APP_TIMEZONE (timezone-aware)"""
    return datetime(day.year, day.month, day.day, tzinfo=get_app_timezone())
