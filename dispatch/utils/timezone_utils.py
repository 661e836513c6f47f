"""
Timezone Utilities

Normalizes ticket and slot instants to timezone-aware UTC so they can be
compared with the injected clock.
"""

from datetime import datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo
import logging

logger = logging.getLogger(__name__)

UTC = ZoneInfo('UTC')

Instant = Union[datetime, str]


def ensure_utc(dt: Instant) -> datetime:
    """
    Convert a datetime or ISO-8601 string to an aware UTC datetime.

    Naive values are assumed to already be in UTC.

    Args:
        dt: Datetime or ISO string (a trailing 'Z' is accepted)

    Returns:
        Timezone-aware datetime in UTC
    """
    if isinstance(dt, str):
        dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def minutes_between(start: Instant, end: Instant) -> float:
    """Signed number of minutes from start to end."""
    return (ensure_utc(end) - ensure_utc(start)) / timedelta(minutes=1)


def optional_utc(dt: Optional[Instant]) -> Optional[datetime]:
    return ensure_utc(dt) if dt is not None else None
