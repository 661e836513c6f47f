"""
Pytest configuration for dispatch core tests
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from dispatch.cache import reset_cache_for_tests
from dispatch.config import reset_settings_for_tests
from dispatch.models import Doctor, Ticket, TicketStatus

BASE_TIME = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = BASE_TIME):
        self._now = start.timestamp()

    def time(self) -> float:
        return self._now

    def now(self) -> datetime:
        return datetime.fromtimestamp(self._now, tz=timezone.utc)

    def advance(self, seconds: float) -> None:
        self._now += seconds

    def set(self, epoch_seconds: float) -> None:
        self._now = epoch_seconds


class FakeTimer:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Records timers; advance() fires the ones that come due."""

    def __init__(self):
        self.elapsed = 0.0
        self.timers: List[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.elapsed + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and t.due > self.elapsed]

    def advance(self, seconds: float) -> None:
        target = self.elapsed + seconds
        for timer in sorted(self.pending, key=lambda t: t.due):
            if timer.due <= target and not timer.cancelled:
                self.elapsed = timer.due
                timer.cancelled = True  # spent
                timer.callback()
        self.elapsed = target


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def roster():
    return [
        Doctor(id="doc-1", name="Dr. Adams", specialties="cardiology, chest pain"),
        Doctor(id="doc-2", name="Dr. Baker", specialties=["pediatrics", "fever"]),
        Doctor(id="doc-3", name="Dr. Chen", specialties="dermatology rash"),
    ]


@pytest.fixture
def make_ticket():
    """Factory for tickets with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(**kwargs) -> Ticket:
        kwargs.setdefault('id', f"T-{next(counter)}")
        kwargs.setdefault('priority', 1)
        kwargs.setdefault('status', TicketStatus.OPEN)
        kwargs.setdefault('created_at', BASE_TIME)
        return Ticket(**kwargs)

    return _make


@pytest.fixture
def completed_ticket(make_ticket):
    def _make(wait_minutes: float, **kwargs) -> Ticket:
        return make_ticket(
            status=TicketStatus.COMPLETED,
            created_at=BASE_TIME,
            completed_at=BASE_TIME + timedelta(minutes=wait_minutes),
            **kwargs
        )

    return _make


@pytest.fixture(autouse=True)
def reset_singletons():
    """Keep shared cache and settings isolated between tests."""
    reset_settings_for_tests()
    reset_cache_for_tests()
    yield
    reset_settings_for_tests()
    reset_cache_for_tests()
