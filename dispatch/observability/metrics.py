"""
Prometheus Metrics for the dispatch core

Tracks:
- Cache hit/miss/eviction counts
- Admission decisions per outcome
- Retry attempts
- Notification flushes and batch sizes
- Queue depth and assignments per strategy
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST
)
import logging

logger = logging.getLogger(__name__)

# Create registry
registry = CollectorRegistry()

# ==============================================================================
# CACHE METRICS
# ==============================================================================

CACHE_HITS = Counter(
    'dispatch_cache_hits_total',
    'Total cache hits',
    ['cache_type'],
    registry=registry
)

CACHE_MISSES = Counter(
    'dispatch_cache_misses_total',
    'Total cache misses',
    ['cache_type'],
    registry=registry
)

CACHE_EVICTIONS = Counter(
    'dispatch_cache_evictions_total',
    'Total LRU evictions',
    ['cache_type'],
    registry=registry
)

# ==============================================================================
# ADMISSION METRICS
# ==============================================================================

ADMISSION_DECISIONS = Counter(
    'dispatch_admission_decisions_total',
    'Token bucket admission decisions',
    ['decision'],  # allowed, denied
    registry=registry
)

# ==============================================================================
# RETRY METRICS
# ==============================================================================

RETRY_ATTEMPTS = Counter(
    'dispatch_retry_attempts_total',
    'Attempts made by the retry helper',
    ['outcome'],  # success, retry, exhausted
    registry=registry
)

# ==============================================================================
# NOTIFICATION METRICS
# ==============================================================================

NOTIFICATION_FLUSHES = Counter(
    'dispatch_notification_flushes_total',
    'Notification batch flushes',
    ['trigger'],  # size, timer, manual
    registry=registry
)

NOTIFICATION_BATCH_SIZE = Histogram(
    'dispatch_notification_batch_size',
    'Number of notifications per flushed batch',
    buckets=(1, 2, 5, 10, 20, 50, 100),
    registry=registry
)

# ==============================================================================
# QUEUE / ASSIGNMENT METRICS
# ==============================================================================

QUEUE_DEPTH = Gauge(
    'dispatch_queue_depth',
    'Tickets waiting in the priority queue',
    registry=registry
)

ASSIGNMENTS = Counter(
    'dispatch_assignments_total',
    'Assignment decisions produced',
    ['strategy'],  # round_robin, least_load, knn
    registry=registry
)

# ==============================================================================
# ERROR METRICS
# ==============================================================================

ERRORS = Counter(
    'dispatch_errors_total',
    'Total errors',
    ['error_type', 'component'],
    registry=registry
)

# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================

def observe_cache_hit(cache_type: str):
    """Record cache hit"""
    CACHE_HITS.labels(cache_type=cache_type).inc()


def observe_cache_miss(cache_type: str):
    """Record cache miss"""
    CACHE_MISSES.labels(cache_type=cache_type).inc()


def observe_cache_eviction(cache_type: str):
    CACHE_EVICTIONS.labels(cache_type=cache_type).inc()


def observe_admission(allowed: bool):
    """Record an admission decision"""
    ADMISSION_DECISIONS.labels(decision='allowed' if allowed else 'denied').inc()


def observe_retry_attempt(outcome: str):
    RETRY_ATTEMPTS.labels(outcome=outcome).inc()


def observe_notification_flush(trigger: str, batch_size: int):
    """Record a flushed notification batch"""
    NOTIFICATION_FLUSHES.labels(trigger=trigger).inc()
    NOTIFICATION_BATCH_SIZE.observe(batch_size)


def observe_queue_depth(depth: int):
    QUEUE_DEPTH.set(depth)


def observe_assignment(strategy: str, count: int = 1):
    ASSIGNMENTS.labels(strategy=strategy).inc(count)


def observe_error(error_type: str, component: str):
    """Record error"""
    ERRORS.labels(error_type=error_type, component=component).inc()


# ==============================================================================
# METRICS ENDPOINT
# ==============================================================================

def get_metrics() -> tuple:
    """Generate Prometheus metrics output"""
    return generate_latest(registry), CONTENT_TYPE_LATEST


def get_metrics_summary() -> dict:
    """Get human-readable metrics summary"""
    return {
        'cache': {
            'hits': _total(CACHE_HITS),
            'misses': _total(CACHE_MISSES),
            'evictions': _total(CACHE_EVICTIONS),
        },
        'admission': {
            'allowed': ADMISSION_DECISIONS.labels(decision='allowed')._value.get(),
            'denied': ADMISSION_DECISIONS.labels(decision='denied')._value.get(),
        },
        'queue_depth': QUEUE_DEPTH._value.get(),
        'errors': {
            'total': _total(ERRORS),
        },
    }


def _total(counter) -> float:
    """Sum a counter across all of its label combinations."""
    return sum(
        sample.value
        for family in counter.collect()
        for sample in family.samples
        if sample.name.endswith('_total')
    )
