"""
Date helpers for Bee Maps reward periods.

A reward period is identified by the ISO date (YYYY-MM-DD) of the Monday
that starts the week. These helpers compute periods relative to a date and
parse loose date strings from query parameters.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def utc_now() -> datetime:
    """
    Get current UTC time with timezone info.

    Example:
        >>> now = utc_now()
        >>> print(now.tzinfo)
        UTC
    """
    return datetime.now(timezone.utc)


def week_start(day: DateLike) -> date:
    """Monday of the week containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def reward_period_for(day: DateLike) -> str:
    """
    Reward period key for the week containing ``day``.

    Example:
        >>> reward_period_for(date(2024, 1, 17))
        '2024-01-15'
    """
    return week_start(day).isoformat()


def current_reward_period(now: Optional[datetime] = None) -> str:
    """Reward period of the current UTC week."""
    return reward_period_for(now or utc_now())


def recent_reward_periods(count: int, now: Optional[datetime] = None) -> List[str]:
    """The current reward period and the ``count - 1`` before it, newest first."""
    monday = week_start(now or utc_now())
    return [(monday - timedelta(weeks=i)).isoformat() for i in range(count)]


def parse_date(date_string: Optional[str]) -> Optional[date]:
    """
    Parse a loosely formatted date string.

    Returns:
        date, or None if the string is empty or unparseable

    Example:
        >>> parse_date("2024-01-17")
        datetime.date(2024, 1, 17)
        >>> parse_date("not a date") is None
        True
    """
    if not date_string or not date_string.strip():
        return None

    try:
        return date_parser.parse(date_string.strip()).date()
    except (ValueError, OverflowError, TypeError):
        logger.warning(f"Failed to parse date string: {date_string}")
        return None
