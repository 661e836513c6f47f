"""
Availability Service

Computes free time within a window from a doctor's booked intervals, and
cuts those gaps into fixed-length bookable slots.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Union

from dispatch.models import Interval
from dispatch.utils.timezone_utils import Instant, ensure_utc

logger = logging.getLogger(__name__)

BookedSlot = Union[Interval, Mapping[str, Instant]]


def _as_interval(slot: BookedSlot) -> Interval:
    if isinstance(slot, Interval):
        return slot
    return Interval(start=slot['start'], end=slot['end'])


def find_available_slots(
    booked_slots: Iterable[BookedSlot],
    start_time: Instant,
    end_time: Instant
) -> List[Interval]:
    """
    Find the gaps in [start_time, end_time) not covered by any booked interval.

    Booked intervals may overlap and arrive in any order.

    Args:
        booked_slots: Intervals or {'start': ..., 'end': ...} mappings
            (datetimes or ISO strings)
        start_time: Window start
        end_time: Window end

    Returns:
        Disjoint gaps in ascending order; empty for zero-length or
        inverted windows
    """
    window_start = ensure_utc(start_time)
    window_end = ensure_utc(end_time)
    if window_start >= window_end:
        return []

    booked = sorted((_as_interval(slot) for slot in booked_slots), key=lambda s: s.start)

    available: List[Interval] = []
    cursor = window_start

    for slot in booked:
        if cursor >= window_end:
            break
        if cursor < slot.start:
            available.append(Interval(start=cursor, end=min(slot.start, window_end)))
        cursor = max(cursor, slot.end)

    if cursor < window_end:
        available.append(Interval(start=cursor, end=window_end))

    logger.debug(
        f"Found {len(available)} gaps between {window_start.isoformat()} "
        f"and {window_end.isoformat()} ({len(booked)} booked)"
    )
    return available


def split_into_slots(gaps: Iterable[Interval], slot_minutes: int = 30) -> List[Interval]:
    """
    Cut free gaps into consecutive slots of slot_minutes.

    A remainder shorter than one slot at the end of a gap is dropped.

    Args:
        gaps: Free intervals, e.g. from find_available_slots
        slot_minutes: Slot length in minutes

    Returns:
        Bookable slots in gap order
    """
    if slot_minutes <= 0:
        raise ValueError("slot_minutes must be positive")

    step = timedelta(minutes=slot_minutes)
    slots: List[Interval] = []
    for gap in gaps:
        current: datetime = gap.start
        while current + step <= gap.end:
            slots.append(Interval(start=current, end=current + step))
            current += step
    return slots
