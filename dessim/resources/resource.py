"""Counted resources with mutually exclusive usage slots.

A Resource has ``capacity`` slots. A process requests a slot, holds it for a
while and releases it::

    def customer(sim, counter):
        with counter.request() as req:
            yield req
            yield sim.timeout(3)
        # released here, or cancelled if the wait was abandoned

Waiting requests are granted strictly in queue order. For ``Resource`` that
order is FIFO; ``PriorityResource`` orders by ``(priority, arrival)`` with
lower values first; ``PreemptiveResource`` additionally evicts a worse
holder when a better request arrives at a full resource.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from dessim.errors import InvalidRelease, Preempted
from dessim.resources.base import BaseResource, BaseStats, Put

if TYPE_CHECKING:
    from dessim.core.process import Process
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceStats(BaseStats):
    """Snapshot of resource statistics.

    Attributes:
        releases: Granted requests returned with ``release()``.
        preemptions: Holders evicted by a better request.
    """

    releases: int
    preemptions: int


class Request(Put):
    """Request for one usage slot.

    Yield it to wait until the slot is granted. Use it as a context manager
    to release the slot (or cancel the request) when the block exits.

    Attributes:
        priority: Lower values are served first (priority resources only).
        preempt: Whether this request may evict a worse holder.
        key: Ordering key ``(priority, arrival)``.
        usage_since: Time the slot was granted, or None while waiting.
        released: True once released.
        preempted: True if the holder was evicted.
    """

    def __init__(self, resource: Resource, priority: float = 0, preempt: bool = True):
        super().__init__(resource, priority=priority)
        self.preempt = preempt
        self.usage_since: float | None = None
        self.released = False
        self.preempted = False

    def release(self) -> None:
        self.resource.release(self)

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if not self.triggered:
            self.cancel()
        elif not (self.released or self.preempted):
            self.resource.release(self)

    def __repr__(self) -> str:
        return f"<Request #{self.id} {self.resource.name} priority={self.priority} {self.state.value}>"


class Resource(BaseResource):
    """Resource with ``capacity`` slots granted in FIFO order.

    Args:
        sim: The owning simulation.
        capacity: Number of slots. 0 is allowed; nothing is ever granted.
        name: Label for logs and stats.
        monitor: Record queue length, slots in use and waiting times.
    """

    def __init__(
        self,
        sim: Simulation,
        capacity: int = 1,
        name: str | None = None,
        *,
        monitor: bool = False,
    ):
        super().__init__(sim, capacity, name, monitor=monitor)
        self.users: list[Request] = []
        self._releases = 0
        self._preemptions = 0

    @property
    def count(self) -> int:
        """Number of slots in use."""
        return len(self.users)

    @property
    def level(self) -> int:
        return len(self.users)

    @property
    def queue(self) -> list[Request]:
        """Requests waiting for a slot, in grant order."""
        return self.put_queue

    @property
    def holders(self) -> list[Process | None]:
        """Processes currently holding a slot."""
        return [request.process for request in self.users]

    @property
    def stats(self) -> ResourceStats:
        return ResourceStats(
            **self._stats_fields(),
            releases=self._releases,
            preemptions=self._preemptions,
        )

    def request(self) -> Request:
        """Ask for a slot. The returned event fires once it is granted."""
        request = Request(self)
        self._issue(request, self.put_queue)
        return request

    def release(self, request: Request) -> None:
        """Return the slot held by ``request`` and grant waiting requests.

        Releasing a request twice, or one that was preempted, does nothing.

        Raises:
            InvalidRelease: If ``request`` was never granted.
            ValueError: If ``request`` belongs to another resource.
        """
        if request.resource is not self:
            raise ValueError(f"{request!r} was not issued on {self.name}")
        if request.released or request.preempted:
            return
        if request not in self.users:
            raise InvalidRelease(f"{request!r} has not been granted")

        self.users.remove(request)
        request.released = True
        self._releases += 1
        logger.debug("[%s] Released slot, in_use=%d, waiting=%d", self.name, self.count, self.queued)
        self._on_level_change()
        self._dispatch()

    def _do_put(self, request: Request) -> bool:
        if len(self.users) >= self._capacity:
            return False
        self.users.append(request)
        request.usage_since = self.sim.now
        self._grant(request, request)
        return True

    def _do_get(self, request: Any) -> bool:
        return False


class PriorityResource(Resource):
    """Resource whose waiting requests are ordered by priority.

    Lower priority values are served first; equal priorities are served in
    arrival order.
    """

    def request(self, priority: float = 0) -> Request:
        request = Request(self, priority, preempt=False)
        self._issue(request, self.put_queue)
        return request


class PreemptiveResource(PriorityResource):
    """Priority resource where a better request can evict a holder.

    When the request at the head of the queue cannot be granted and has
    ``preempt=True``, the holder with the worst ``(priority, arrival)`` key
    is evicted if that key is worse than the request's. The evicted
    holder's process is interrupted with a :class:`Preempted` cause. Equal
    priorities never preempt each other.
    """

    def request(self, priority: float = 0, preempt: bool = True) -> Request:
        request = Request(self, priority, preempt)
        self._issue(request, self.put_queue)
        return request

    def _do_put(self, request: Request) -> bool:
        if request.preempt and self.users and len(self.users) >= self._capacity:
            victim = max(self.users, key=attrgetter("key"))
            if victim.key > request.key:
                self._evict(victim, request)
        return super()._do_put(request)

    def _evict(self, victim: Request, by: Request) -> None:
        self.users.remove(victim)
        victim.preempted = True
        self._preemptions += 1
        logger.debug(
            "[%s] Preempted holder (priority=%s) for request (priority=%s)",
            self.name, victim.priority, by.priority,
        )
        process = victim.process
        if process is None or not process.is_alive:
            return
        if process is self.sim.active_process:
            # A process cannot interrupt itself; it loses the slot without notice.
            self.sim.log.warning(
                "[%s] %s evicted its own request (priority=%s); no interrupt delivered",
                self.name, process.name, victim.priority,
            )
            return
        process.interrupt(Preempted(by=by.process, usage_since=victim.usage_since, resource=self))
