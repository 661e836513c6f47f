"""
Injectable time sources.

Every time-dependent component takes a Clock (current instant) and, where it
defers work, a Scheduler (one-shot timers with cancellable handles). Tests
replace both with manual implementations.
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Protocol


class Clock(Protocol):
    def time(self) -> float:
        """Current instant as epoch seconds."""
        ...

    def now(self) -> datetime:
        """Current instant as a timezone-aware UTC datetime."""
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        ...


class SystemClock:
    """Wall clock backed by time.time()."""

    def time(self) -> float:
        return time.time()

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.time(), tz=timezone.utc)


class AsyncioScheduler:
    """
    Schedules callbacks on the running asyncio event loop.

    The returned asyncio.TimerHandle already satisfies TimerHandle.
    """

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, callback)


system_clock = SystemClock()
