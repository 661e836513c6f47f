"""
Tests for IntakeDispatcher end-to-end flow
"""

import pytest

from dispatch.config import DispatchSettings
from dispatch.rate_limiter import AdmissionController
from dispatch.services.dispatcher import IntakeDispatcher
from dispatch.services.notification_batcher import NotificationBatcher


class FailingScheduler:
    def call_later(self, delay, callback):
        raise RuntimeError("no running event loop")


def failing_transport(batch):
    raise ConnectionError("push gateway down")


class TestIntakeDispatcher:
    """Test suite for IntakeDispatcher"""

    @pytest.fixture
    def sent(self):
        return []

    @pytest.fixture
    def dispatcher(self, clock, scheduler, sent):
        return IntakeDispatcher(
            admission=AdmissionController(capacity=3, refill_rate=0.1, clock=clock),
            batcher=NotificationBatcher(batch_size=2, scheduler=scheduler, transport=sent.append),
        )

    def test_highest_priority_dispatched_first(self, dispatcher, roster, make_ticket):
        dispatcher.submit(make_ticket(id="routine", priority=1), caller_id="kiosk-1")
        dispatcher.submit(make_ticket(id="urgent", priority=9), caller_id="kiosk-2")

        assignment = dispatcher.dispatch_next(roster, {})

        assert assignment.ticket_id == "urgent"
        assert assignment.strategy == "least_load"

    def test_equal_priority_served_in_submission_order(self, dispatcher, roster, make_ticket):
        for ticket_id in ["a", "b", "c"]:
            dispatcher.submit(make_ticket(id=ticket_id, priority=5), caller_id=ticket_id)

        assignments = dispatcher.dispatch_all(roster, {})

        assert [a.ticket_id for a in assignments] == ["a", "b", "c"]

    def test_admission_control_rejects_burst(self, dispatcher, make_ticket, clock):
        results = [dispatcher.submit(make_ticket(), caller_id="kiosk-1") for _ in range(4)]

        assert results == [True, True, True, False]
        assert len(dispatcher.queue) == 3

        clock.advance(10)
        assert dispatcher.submit(make_ticket(), caller_id="kiosk-1")

    def test_spreads_load_and_updates_loads(self, dispatcher, roster, make_ticket):
        loads = {"doc-1": 1}
        for n in range(3):
            dispatcher.submit(make_ticket(priority=n), caller_id=f"caller-{n}")

        assignments = dispatcher.dispatch_all(roster, loads)

        assert [a.doctor_id for a in assignments] == ["doc-2", "doc-3", "doc-1"]
        assert loads == {"doc-1": 2, "doc-2": 1, "doc-3": 1}

    def test_notifications_batched(self, dispatcher, roster, make_ticket, sent, scheduler):
        for n in range(3):
            dispatcher.submit(make_ticket(id=f"t{n}", priority=10 - n), caller_id=f"caller-{n}")

        dispatcher.dispatch_all(roster, {})

        assert len(sent) == 1
        assert [n["ticket_id"] for n in sent[0]] == ["t0", "t1"]
        assert dispatcher.batcher.get_batch_size() == 1

        scheduler.advance(5)
        assert [n["ticket_id"] for n in sent[1]] == ["t2"]
        assert sent[1][0]["type"] == "assigned"

    def test_empty_roster_leaves_ticket_queued(self, dispatcher, make_ticket):
        dispatcher.submit(make_ticket(id="waiting"))

        assert dispatcher.dispatch_next([], {}) is None
        assert dispatcher.dispatch_all([], {}) == []
        assert dispatcher.queue.peek().id == "waiting"

    def test_empty_queue(self, dispatcher, roster):
        assert dispatcher.dispatch_next(roster, {}) is None

    def test_from_settings(self, clock, scheduler):
        settings = DispatchSettings(batch_size=4, bucket_capacity=1, flush_interval_seconds=2.0)

        dispatcher = IntakeDispatcher.from_settings(settings, clock=clock, scheduler=scheduler)

        assert dispatcher.batcher.batch_size == 4
        assert dispatcher.batcher.flush_interval == 2.0
        assert dispatcher.admission.capacity == 1
        assert dispatcher.queue.is_empty()

    # ==================== Delivery Failures ====================

    def test_scheduler_failure_keeps_ticket_queued(self, clock, roster, make_ticket):
        dispatcher = IntakeDispatcher(
            admission=AdmissionController(clock=clock),
            batcher=NotificationBatcher(batch_size=5, scheduler=FailingScheduler()),
        )
        dispatcher.submit(make_ticket(id="urgent", priority=9))
        loads = {}

        with pytest.raises(RuntimeError):
            dispatcher.dispatch_next(roster, loads)

        assert dispatcher.queue.peek().id == "urgent"
        assert loads == {}
        assert dispatcher.batcher.get_batch_size() == 0

    def test_transport_failure_on_size_flush_keeps_ticket_queued(self, clock, scheduler, roster, make_ticket):
        dispatcher = IntakeDispatcher(
            admission=AdmissionController(clock=clock),
            batcher=NotificationBatcher(batch_size=1, scheduler=scheduler, transport=failing_transport),
        )
        dispatcher.submit(make_ticket(id="urgent", priority=9))
        loads = {"doc-1": 2}

        with pytest.raises(ConnectionError):
            dispatcher.dispatch_next(roster, loads)

        assert len(dispatcher.queue) == 1
        assert loads == {"doc-1": 2}

    def test_default_scheduler_outside_event_loop(self, clock, roster, make_ticket):
        dispatcher = IntakeDispatcher.from_settings(DispatchSettings(), clock=clock)
        dispatcher.submit(make_ticket(id="urgent", priority=9))
        loads = {}

        with pytest.raises(RuntimeError):
            dispatcher.dispatch_next(roster, loads)

        assert dispatcher.queue.peek().id == "urgent"
        assert loads == {}

    def test_retry_after_failure_dispatches_once(self, clock, scheduler, roster, make_ticket):
        sent = []
        batcher = NotificationBatcher(batch_size=5, scheduler=FailingScheduler(), transport=sent.append)
        dispatcher = IntakeDispatcher(admission=AdmissionController(clock=clock), batcher=batcher)
        dispatcher.submit(make_ticket(id="urgent", priority=9))
        loads = {}

        with pytest.raises(RuntimeError):
            dispatcher.dispatch_next(roster, loads)
        batcher.scheduler = scheduler
        assignment = dispatcher.dispatch_next(roster, loads)

        assert assignment.ticket_id == "urgent"
        assert dispatcher.queue.is_empty()
        assert loads == {"doc-1": 1}
        assert batcher.flush() == [
            {'type': 'assigned', 'ticket_id': 'urgent', 'doctor_id': 'doc-1', 'priority': 9}
        ]
