"""
Notification Batcher

Accumulates outbound notifications and hands them to the transport in
batches: immediately when the batch is full, otherwise when a one-shot
timer armed by the first queued item fires.
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Optional

from dispatch.clock import AsyncioScheduler, Scheduler, TimerHandle
from dispatch.observability.metrics import observe_error, observe_notification_flush

logger = logging.getLogger(__name__)

Transport = Callable[[List[Any]], Any]


class BatcherState(str, Enum):
    IDLE = "idle"                  # empty, no timer
    ACCUMULATING = "accumulating"  # items queued, timer armed


class NotificationBatcher:
    """
    Size/time triggered notification batching.

    The pending timer is a handle owned by this instance and is cancelled
    by every flush. Not thread-safe.
    """

    def __init__(
        self,
        batch_size: int = 10,
        flush_interval: float = 5.0,
        scheduler: Optional[Scheduler] = None,
        transport: Optional[Transport] = None
    ):
        """
        Initialize notification batcher.

        Args:
            batch_size: Item count that triggers an immediate flush
            flush_interval: Seconds after the first queued item before a timed flush
            scheduler: Timer source (defaults to the running asyncio loop)
            transport: Receives every flushed batch; owns delivery and its failures
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.scheduler = scheduler or AsyncioScheduler()
        self.transport = transport

        self._batch: List[Any] = []
        self._timer: Optional[TimerHandle] = None

    @property
    def state(self) -> BatcherState:
        return BatcherState.ACCUMULATING if self._batch else BatcherState.IDLE

    def get_batch_size(self) -> int:
        """Number of notifications waiting to be flushed."""
        return len(self._batch)

    def add(self, notification: Any) -> Optional[List[Any]]:
        """
        Queue a notification.

        Returns:
            The flushed batch if this item filled it, otherwise None
        """
        # Scheduler errors must leave the batch unchanged
        if self._timer is None and len(self._batch) + 1 < self.batch_size:
            self._timer = self.scheduler.call_later(self.flush_interval, self._on_timer)

        self._batch.append(notification)
        if len(self._batch) >= self.batch_size:
            return self._flush('size')
        return None

    def flush(self) -> Optional[List[Any]]:
        """
        Send everything queued so far.

        Returns:
            The batch in insertion order, or None when there was nothing to send
        """
        return self._flush('manual')

    def _flush(self, trigger: str) -> Optional[List[Any]]:
        if not self._batch:
            return None

        to_send = self._batch
        self._batch = []
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        observe_notification_flush(trigger, len(to_send))
        logger.debug(f"Flushing {len(to_send)} notifications (trigger={trigger})")

        if self.transport is not None:
            self.transport(list(to_send))
        return to_send

    def _on_timer(self) -> None:
        self._timer = None  # already fired
        try:
            self._flush('timer')
        except Exception as e:
            observe_error(type(e).__name__, 'notification_batcher')
            logger.error(f"Timed notification flush failed: {e}", exc_info=True)
