"""
Custom exceptions for the dispatch core.

Empty queues, empty rosters and rate-limit denials are reported through
return values. The exceptions below signal programming errors.
"""


class HeapInvariantError(Exception):
    """Raised when the priority queue's heap property no longer holds."""

    def __init__(self, parent_index: int, child_index: int, message: str = None):
        self.parent_index = parent_index
        self.child_index = child_index
        self.message = message or (
            f"Heap property violated between parent {parent_index} and child {child_index}"
        )
        super().__init__(self.message)


class InvalidStatusTransitionError(Exception):
    """Raised when a ticket status would move backwards (e.g. Completed -> Open)."""

    def __init__(self, ticket_id: str, current: str, requested: str):
        self.ticket_id = ticket_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Ticket {ticket_id} cannot move from {current} to {requested}"
        )
