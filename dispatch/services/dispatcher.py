"""
Intake Dispatcher

Ties admission control, the priority queue, least-load assignment and
notification batching into the intake -> queue -> doctor flow.
"""

import itertools
import logging
from typing import Any, Dict, List, MutableMapping, Optional, Sequence

from dispatch.clock import Clock, Scheduler, system_clock
from dispatch.config import DispatchSettings
from dispatch.models import Assignment, Doctor, Ticket
from dispatch.rate_limiter import AdmissionController
from dispatch.services.assignment import least_load_assignment
from dispatch.services.notification_batcher import NotificationBatcher, Transport
from dispatch.services.priority_queue import TicketPriorityQueue

logger = logging.getLogger(__name__)


class IntakeDispatcher:
    """
    Admits walk-in tickets and routes them to the least-loaded doctor.

    Tickets with equal priority are served in submission order. One
    dispatcher per queue; callers serialize access.
    """

    def __init__(
        self,
        admission: AdmissionController,
        batcher: NotificationBatcher,
        queue: Optional[TicketPriorityQueue] = None
    ):
        self.admission = admission
        self.batcher = batcher
        self.queue = queue or TicketPriorityQueue()
        self._sequence = itertools.count()

    @classmethod
    def from_settings(
        cls,
        settings: DispatchSettings,
        clock: Clock = system_clock,
        scheduler: Optional[Scheduler] = None,
        transport: Optional[Transport] = None
    ) -> "IntakeDispatcher":
        """Build a dispatcher with limits and batching taken from settings."""
        admission = AdmissionController(
            capacity=settings.bucket_capacity,
            refill_rate=settings.bucket_refill_rate,
            clock=clock
        )
        batcher = NotificationBatcher(
            batch_size=settings.batch_size,
            flush_interval=settings.flush_interval_seconds,
            scheduler=scheduler,
            transport=transport
        )
        return cls(admission, batcher)

    def submit(self, ticket: Ticket, caller_id: str = "anonymous") -> bool:
        """
        Admit a ticket into the queue.

        Returns:
            True if queued, False if the caller is over its rate limit
        """
        if not self.admission.is_allowed(caller_id):
            logger.info(f"Ticket {ticket.id} from {caller_id} rejected by admission control")
            return False

        self.queue.insert(ticket, key=(ticket.priority, -next(self._sequence)))
        logger.debug(f"Queued ticket {ticket.id} (priority={ticket.priority}, depth={len(self.queue)})")
        return True

    def dispatch_next(
        self,
        doctors: Sequence[Doctor],
        current_loads: MutableMapping[str, int]
    ) -> Optional[Assignment]:
        """
        Route the highest-priority ticket to the least-loaded doctor.

        The chosen doctor's entry in current_loads is incremented and an
        "assigned" notification is queued. The ticket leaves the queue only
        after the notification is accepted; if the batcher raises, the ticket
        stays queued and current_loads is unchanged.

        Returns:
            The assignment, or None when the queue is empty or the roster is
            empty (the ticket then stays queued)
        """
        if self.queue.is_empty() or not doctors:
            return None

        ticket = self.queue.peek()
        doctor = least_load_assignment(ticket, doctors, current_loads)
        self.batcher.add(self._notification(ticket, doctor))

        self.queue.extract_max()
        current_loads[doctor.id] = current_loads.get(doctor.id, 0) + 1
        assignment = Assignment(ticket_id=ticket.id, doctor_id=doctor.id, strategy="least_load")

        logger.info(f"Assigned ticket {ticket.id} to doctor {doctor.id}")
        return assignment

    def dispatch_all(
        self,
        doctors: Sequence[Doctor],
        current_loads: MutableMapping[str, int]
    ) -> List[Assignment]:
        """Dispatch until the queue drains or no doctor is available."""
        assignments = []
        while True:
            assignment = self.dispatch_next(doctors, current_loads)
            if assignment is None:
                return assignments
            assignments.append(assignment)

    @staticmethod
    def _notification(ticket: Ticket, doctor: Doctor) -> Dict[str, Any]:
        return {
            'type': 'assigned',
            'ticket_id': ticket.id,
            'doctor_id': doctor.id,
            'priority': ticket.priority,
        }
