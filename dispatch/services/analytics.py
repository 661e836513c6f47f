"""
Queue analytics: rolling averages, wait-time statistics, active-ticket
windows and fuzzy name lookup.
"""

import logging
import math
from datetime import timedelta
from typing import Any, Iterable, List, Mapping, Sequence, TypeVar, Union

from dispatch.cache import LRUCache, memoize
from dispatch.clock import Clock, system_clock
from dispatch.models import Ticket, TicketStatus, WaitTimeStats
from dispatch.utils.timezone_utils import minutes_between

logger = logging.getLogger(__name__)

T = TypeVar('T')

Tickets = Union[Mapping[str, Ticket], Iterable[Ticket]]

ACTIVE_STATUSES = (TicketStatus.OPEN, TicketStatus.BOOKED)

_distance_cache = LRUCache(capacity=1024, cache_type="levenshtein")


def _ticket_values(tickets: Tickets) -> Iterable[Ticket]:
    if isinstance(tickets, Mapping):
        return tickets.values()
    return tickets


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_moving_average(values: Sequence[float], window_size: int = 10) -> float:
    """Mean of the last window_size values (all of them if fewer); 0 when empty."""
    if not values:
        return 0.0
    recent = values[-window_size:]
    return sum(recent) / len(recent)


def calculate_wait_time_stats(tickets: Tickets) -> WaitTimeStats:
    """
    Wait-time statistics over completed tickets, in minutes.

    Only tickets with status Completed and both created_at and completed_at
    count. The median is the element at index n // 2 of the sorted waits
    (upper median for even n, not interpolated). Each value is rounded
    half-up to a whole minute.

    Returns:
        WaitTimeStats, all zeros when no ticket qualifies
    """
    wait_times = sorted(
        minutes_between(ticket.created_at, ticket.completed_at)
        for ticket in _ticket_values(tickets)
        if ticket.status == TicketStatus.COMPLETED
        and ticket.created_at is not None
        and ticket.completed_at is not None
    )

    if not wait_times:
        return WaitTimeStats()

    return WaitTimeStats(
        avg_wait_time=_round_half_up(sum(wait_times) / len(wait_times)),
        median_wait_time=_round_half_up(wait_times[len(wait_times) // 2]),
        max_wait_time=_round_half_up(wait_times[-1]),
    )


def get_active_tickets_in_window(
    tickets: Tickets,
    window_minutes: float = 30,
    clock: Clock = system_clock
) -> List[Ticket]:
    """
    Open or booked tickets created within the last window_minutes.

    Creation time falls back to the legacy timestamp field; tickets with
    neither are skipped.
    """
    now = clock.now()
    window = timedelta(minutes=window_minutes)

    active = []
    for ticket in _ticket_values(tickets):
        created = ticket.effective_created_at
        if created is None or ticket.status not in ACTIVE_STATUSES:
            continue
        if now - created <= window:
            active.append(ticket)
    return active


@memoize(cache=_distance_cache)
def levenshtein_distance(source: str, target: str) -> int:
    """Edit distance with unit insertion, deletion and substitution costs."""
    rows = len(target) + 1
    cols = len(source) + 1
    matrix = [[0] * cols for _ in range(rows)]

    for i in range(cols):
        matrix[0][i] = i
    for j in range(rows):
        matrix[j][0] = j

    for j in range(1, rows):
        for i in range(1, cols):
            cost = 0 if source[i - 1] == target[j - 1] else 1
            matrix[j][i] = min(
                matrix[j][i - 1] + 1,         # insertion
                matrix[j - 1][i] + 1,         # deletion
                matrix[j - 1][i - 1] + cost,  # substitution
            )

    return matrix[-1][-1]


def _field_value(item: Any, search_field: str) -> str:
    if isinstance(item, Mapping):
        value = item.get(search_field)
    else:
        value = getattr(item, search_field, None)
    return str(value) if value else ""


def fuzzy_search(
    query: str,
    items: Iterable[T],
    search_field: str,
    threshold: int = 3
) -> List[T]:
    """
    Items whose search_field is within threshold edits of query.

    Comparison is case-insensitive. Results are ordered by distance; equal
    distances keep input order.

    Args:
        query: Text to look for
        items: Mappings or objects carrying search_field
        search_field: Key or attribute to compare against
        threshold: Maximum edit distance to keep

    Returns:
        Matching items, closest first
    """
    needle = query.lower()
    scored = [
        (levenshtein_distance(needle, _field_value(item, search_field).lower()), item)
        for item in items
    ]
    matches = [(distance, item) for distance, item in scored if distance <= threshold]
    matches.sort(key=lambda pair: pair[0])
    return [item for _, item in matches]
