"""Dispatch services: queueing, assignment, availability, analytics and batching."""

from .priority_queue import HeapEntry, TicketPriorityQueue
from .assignment import (
    apply_assignment,
    knn_recommendation,
    least_load_assignment,
    optimize_doctor_schedule,
    round_robin_assignment,
)
from .availability_service import find_available_slots, split_into_slots
from .analytics import (
    calculate_moving_average,
    calculate_wait_time_stats,
    fuzzy_search,
    get_active_tickets_in_window,
    levenshtein_distance,
)
from .notification_batcher import BatcherState, NotificationBatcher
from .dispatcher import IntakeDispatcher

__all__ = [
    "HeapEntry",
    "TicketPriorityQueue",
    "apply_assignment",
    "knn_recommendation",
    "least_load_assignment",
    "optimize_doctor_schedule",
    "round_robin_assignment",
    "find_available_slots",
    "split_into_slots",
    "calculate_moving_average",
    "calculate_wait_time_stats",
    "fuzzy_search",
    "get_active_tickets_in_window",
    "levenshtein_distance",
    "BatcherState",
    "NotificationBatcher",
    "IntakeDispatcher",
]
