import heapq
import itertools
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dessim.core.event import Event


class Priority(IntEnum):
    """Tie-breaker for entries scheduled at the same time. Lower runs first."""

    URGENT = 0
    NORMAL = 1


@dataclass(order=True)
class ScheduledEntry:
    """Ordering key for one pending entry.

    Entries sort by time, then priority, then insertion sequence, which makes
    simultaneous events with equal priority strictly FIFO.
    """

    time: float
    priority: int
    sequence: int
    event: "Event" = field(compare=False)


class EventHeap:
    def __init__(self):
        """Min-heap of ScheduledEntry objects.

        The sequence counter belongs to the heap, not to the process, so
        independent simulations never influence each other's ordering.
        """
        self._heap: list[ScheduledEntry] = []
        self._sequence = itertools.count()

    def push(self, event: "Event", time: float, priority: int = Priority.NORMAL) -> ScheduledEntry:
        entry = ScheduledEntry(time, int(priority), next(self._sequence), event)
        heapq.heappush(self._heap, entry)
        return entry

    def pop(self) -> ScheduledEntry:
        return heapq.heappop(self._heap)

    def peek(self) -> ScheduledEntry:
        return self._heap[0]

    def peek_time(self) -> float:
        """Time of the earliest entry, or ``inf`` when empty."""
        return self._heap[0].time if self._heap else math.inf

    def has_events(self) -> bool:
        return bool(self._heap)

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)
