"""
Ticket priority queue.

Binary max-heap stored in a plain list; index arithmetic locates parents and
children. Entries are copied on read so callers never alias heap internals.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from dispatch.exceptions import HeapInvariantError
from dispatch.models import Ticket
from dispatch.observability.metrics import observe_queue_depth

logger = logging.getLogger(__name__)


@dataclass
class HeapEntry:
    """A ticket plus the key it is ordered by."""
    ticket: Ticket
    key: Any


class TicketPriorityQueue:
    """
    Max-heap of tickets. Higher key is served first.

    The key defaults to ticket.priority. Equal keys come out in unspecified
    order; pass a composite key such as (priority, -sequence) for FIFO ties.
    """

    def __init__(self):
        self._heap: List[HeapEntry] = []

    def insert(self, ticket: Ticket, key: Any = None) -> None:
        """Add a ticket in O(log n)."""
        entry = HeapEntry(ticket=ticket, key=ticket.priority if key is None else key)
        self._heap.append(entry)
        self._sift_up(len(self._heap) - 1)
        observe_queue_depth(len(self._heap))

    def extract_max(self) -> Optional[Ticket]:
        """
        Remove and return the highest-priority ticket.

        Returns:
            The ticket, or None when the queue is empty
        """
        if not self._heap:
            return None

        top = self._heap[0]
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._sift_down(0)

        observe_queue_depth(len(self._heap))
        return top.ticket

    def peek(self) -> Optional[Ticket]:
        if not self._heap:
            return None
        return self._heap[0].ticket.model_copy(deep=True)

    def get_all(self) -> List[Ticket]:
        """Independent copies of every queued ticket, in heap (not sorted) order."""
        return [entry.ticket.model_copy(deep=True) for entry in self._heap]

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def verify(self) -> None:
        """
        Check the heap property for every parent/child pair.

        Raises:
            HeapInvariantError: on the first violating pair
        """
        for child in range(1, len(self._heap)):
            parent = (child - 1) // 2
            if self._heap[parent].key < self._heap[child].key:
                raise HeapInvariantError(parent, child)

    def _swap(self, i: int, j: int) -> None:
        self._heap[i], self._heap[j] = self._heap[j], self._heap[i]

    def _sift_up(self, index: int) -> None:
        while index > 0:
            parent = (index - 1) // 2
            if not self._heap[parent].key < self._heap[index].key:
                break
            self._swap(parent, index)
            index = parent

    def _sift_down(self, index: int) -> None:
        size = len(self._heap)
        while True:
            largest = index
            left = 2 * index + 1
            right = left + 1

            if left < size and self._heap[largest].key < self._heap[left].key:
                largest = left
            if right < size and self._heap[largest].key < self._heap[right].key:
                largest = right
            if largest == index:
                return

            self._swap(index, largest)
            index = largest
