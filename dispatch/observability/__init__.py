"""
Observability Module

Prometheus metrics for the dispatch core.
"""

from .metrics import (
    observe_cache_hit,
    observe_cache_miss,
    observe_cache_eviction,
    observe_admission,
    observe_retry_attempt,
    observe_notification_flush,
    observe_queue_depth,
    observe_assignment,
    observe_error,
    get_metrics,
    get_metrics_summary,
)

__all__ = [
    "observe_cache_hit",
    "observe_cache_miss",
    "observe_cache_eviction",
    "observe_admission",
    "observe_retry_attempt",
    "observe_notification_flush",
    "observe_queue_depth",
    "observe_assignment",
    "observe_error",
    "get_metrics",
    "get_metrics_summary",
]
