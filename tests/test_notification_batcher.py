"""
Tests for NotificationBatcher

Tests cover:
- Size-triggered flush
- Timer arming (first item only) and timed flush
- Manual flush cancelling the pending timer
- Transport hand-off and failure isolation on timed flushes
"""

import asyncio

import pytest

from dispatch.services.notification_batcher import BatcherState, NotificationBatcher


class RecordingTransport:
    def __init__(self, fail: bool = False):
        self.batches = []
        self.fail = fail

    def __call__(self, batch):
        if self.fail:
            raise ConnectionError("push gateway down")
        self.batches.append(batch)


class TestNotificationBatcher:
    """Test suite for NotificationBatcher"""

    @pytest.fixture
    def transport(self):
        return RecordingTransport()

    @pytest.fixture
    def batcher(self, scheduler, transport):
        return NotificationBatcher(
            batch_size=3, flush_interval=5.0, scheduler=scheduler, transport=transport
        )

    # ==================== Size Trigger ====================

    def test_reaching_batch_size_flushes_immediately(self, batcher, transport):
        assert batcher.add("n1") is None
        assert batcher.add("n2") is None
        flushed = batcher.add("n3")

        assert flushed == ["n1", "n2", "n3"]
        assert transport.batches == [["n1", "n2", "n3"]]
        assert batcher.get_batch_size() == 0
        assert batcher.state == BatcherState.IDLE

    def test_size_flush_cancels_timer(self, batcher, scheduler):
        for n in range(3):
            batcher.add(n)

        assert scheduler.pending == []

    def test_batch_size_one(self, scheduler):
        batcher = NotificationBatcher(batch_size=1, scheduler=scheduler)

        assert batcher.add("only") == ["only"]
        assert scheduler.timers == []

    # ==================== Timer Trigger ====================

    def test_first_item_arms_single_timer(self, batcher, scheduler):
        batcher.add("n1")
        batcher.add("n2")

        assert len(scheduler.timers) == 1
        assert scheduler.timers[0].due == 5.0
        assert batcher.state == BatcherState.ACCUMULATING

    def test_scheduler_error_leaves_batch_unchanged(self, transport):
        class BrokenScheduler:
            def call_later(self, delay, callback):
                raise RuntimeError("no running event loop")

        batcher = NotificationBatcher(batch_size=3, scheduler=BrokenScheduler(), transport=transport)

        with pytest.raises(RuntimeError):
            batcher.add("n1")

        assert batcher.get_batch_size() == 0
        assert batcher.state == BatcherState.IDLE

    def test_timer_flushes_to_transport(self, batcher, scheduler, transport):
        batcher.add("n1")
        scheduler.advance(2)
        batcher.add("n2")
        scheduler.advance(2.5)
        assert transport.batches == []

        scheduler.advance(0.5)

        assert transport.batches == [["n1", "n2"]]
        assert batcher.get_batch_size() == 0

    def test_new_timer_after_timed_flush(self, batcher, scheduler, transport):
        batcher.add("n1")
        scheduler.advance(5)
        batcher.add("n2")

        assert len(scheduler.pending) == 1
        scheduler.advance(5)
        assert transport.batches == [["n1"], ["n2"]]

    def test_timed_flush_transport_failure_is_logged(self, scheduler, caplog):
        batcher = NotificationBatcher(
            batch_size=10, flush_interval=1.0, scheduler=scheduler, transport=RecordingTransport(fail=True)
        )
        batcher.add("n1")

        scheduler.advance(1)

        assert "Timed notification flush failed" in caplog.text
        assert batcher.get_batch_size() == 0

    # ==================== Manual Flush ====================

    def test_manual_flush_returns_in_order_and_cancels_timer(self, batcher, scheduler, transport):
        batcher.add("n1")
        batcher.add("n2")

        assert batcher.flush() == ["n1", "n2"]
        assert scheduler.pending == []
        assert scheduler.timers[0].cancelled

        scheduler.advance(10)
        assert transport.batches == [["n1", "n2"]]

    def test_flush_empty_returns_none(self, batcher, transport):
        assert batcher.flush() is None
        assert transport.batches == []

    def test_flush_snapshot_is_not_aliased(self, batcher):
        batcher.add("n1")
        flushed = batcher.flush()
        batcher.add("n2")

        assert flushed == ["n1"]

    def test_works_without_transport(self, scheduler):
        batcher = NotificationBatcher(batch_size=2, scheduler=scheduler)
        batcher.add({"ticket_id": "t1"})

        assert batcher.flush() == [{"ticket_id": "t1"}]

    def test_invalid_batch_size(self, scheduler):
        with pytest.raises(ValueError):
            NotificationBatcher(batch_size=0, scheduler=scheduler)


class TestAsyncioScheduling:
    """Default scheduler uses the running event loop"""

    @pytest.mark.asyncio
    async def test_timed_flush_on_event_loop(self):
        transport = RecordingTransport()
        batcher = NotificationBatcher(batch_size=10, flush_interval=0.01, transport=transport)

        batcher.add("n1")
        await asyncio.sleep(0.05)

        assert transport.batches == [["n1"]]

    @pytest.mark.asyncio
    async def test_manual_flush_cancels_loop_timer(self):
        transport = RecordingTransport()
        batcher = NotificationBatcher(batch_size=10, flush_interval=0.01, transport=transport)

        batcher.add("n1")
        batcher.flush()
        await asyncio.sleep(0.05)

        assert transport.batches == [["n1"]]
