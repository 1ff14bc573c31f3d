"""Shared queueing machinery for Resource, Container and Store.

Every primitive keeps two queues of pending request events: ``put_queue``
and ``get_queue``. Issuing a request appends it to its queue and runs a
dispatch pass; the dispatch pass keeps serving both queues until neither
makes progress, so a put that frees a getter which frees a putter is
settled within the same instant.

Queues are ordered by ``(priority, arrival)``: lower priorities first, ties
in issue order. Put queues are served strictly: when the head cannot be
applied, the requests behind it wait too (a large request is never starved
by smaller ones). Subclasses choose whether their get queue is strict as
well; Store is not, see ``Store``.

Requests are events. Yield them to wait for the grant; call ``cancel()`` to
withdraw one that is still pending::

    req = store.get()
    result = yield req | sim.timeout(5)
    if req not in result:
        req.cancel()
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from dessim.core.config import OverflowPolicy
from dessim.core.event import Event
from dessim.errors import InvalidCancellation
from dessim.monitoring import Data

if TYPE_CHECKING:
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaseStats:
    """Frozen snapshot of the counters every resource keeps.

    Attributes:
        name: Resource name.
        capacity: Total capacity.
        level: Units in use (Resource), current level (Container) or
            number of items (Store).
        queued: Requests currently waiting.
        grants: Requests granted so far.
        cancellations: Pending requests withdrawn by their issuer.
        contentions: Requests that could not be granted when issued.
        peak_queued: Largest number of waiting requests observed.
        total_wait_time: Sum of waiting times over all grants.
    """

    name: str
    capacity: float
    level: float
    queued: int
    grants: int
    cancellations: int
    contentions: int
    peak_queued: int
    total_wait_time: float

    @property
    def mean_wait_time(self) -> float:
        return self.total_wait_time / self.grants if self.grants else 0.0


class ResourceEvent(Event):
    """A pending put or get on a resource.

    Attributes:
        resource: The resource the request was issued on.
        process: The process that issued it, if any.
        issued_at: Simulation time of issue.
        cancelled: True once withdrawn with ``cancel()``.
        priority: Lower values are served first.
        key: Queue ordering key ``(priority, arrival)``.
    """

    def __init__(self, resource: BaseResource, name: str | None = None, priority: float = 0):
        super().__init__(resource.sim, name)
        self.resource = resource
        self.process = resource.sim.active_process
        self.issued_at = resource.sim.now
        self.cancelled = False
        self.priority = priority
        self.key = (priority, resource._next_arrival())

    def cancel(self) -> None:
        """Withdraw the request if it has not been granted yet.

        Cancelling twice is a no-op.

        Raises:
            InvalidCancellation: If the request has already been granted.
        """
        self.resource._cancel(self)

    def __enter__(self) -> ResourceEvent:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if not self.triggered:
            self.cancel()


class Put(ResourceEvent):
    """Request to add to a resource."""


class Get(ResourceEvent):
    """Request to take from a resource."""


class BaseResource:
    """Base class for primitives with put and get queues.

    Args:
        sim: The owning simulation.
        capacity: Maximum level (units, amount or items).
        name: Label for logs and stats.
        monitor: Record queue length, level and waiting-time series.
        overflow: What a put does when it cannot be applied at once;
            defaults to ``sim.config.overflow``.

    Raises:
        ValueError: If capacity is negative.
    """

    # Get queue served strictly in issue order (head blocks the rest)?
    strict_get_order = True

    def __init__(
        self,
        sim: Simulation,
        capacity: float,
        name: str | None = None,
        *,
        monitor: bool = False,
        overflow: OverflowPolicy | None = None,
    ):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.sim = sim
        self.name = name or type(self).__name__
        self._capacity = capacity
        self._overflow = overflow or sim.config.overflow
        self.put_queue: list[Put] = []
        self.get_queue: list[Get] = []
        self._arrivals = 0

        self.monitor = monitor
        self.queue_data = Data(f"{self.name}.queued")
        self.level_data = Data(f"{self.name}.level")
        self.wait_data = Data(f"{self.name}.wait")

        # Stats counters
        self._grants = 0
        self._cancellations = 0
        self._contentions = 0
        self._peak_queued = 0
        self._total_wait_time = 0.0

    @property
    def capacity(self) -> float:
        return self._capacity

    @property
    def overflow(self) -> OverflowPolicy:
        return self._overflow

    @property
    def queued(self) -> int:
        """Number of requests waiting in either queue."""
        return len(self.put_queue) + len(self.get_queue)

    @property
    def level(self) -> float:
        raise NotImplementedError

    @property
    def stats(self) -> BaseStats:
        """Frozen snapshot of current statistics."""
        return BaseStats(**self._stats_fields())

    def _stats_fields(self) -> dict[str, Any]:
        return dict(
            name=self.name,
            capacity=self._capacity,
            level=self.level,
            queued=self.queued,
            grants=self._grants,
            cancellations=self._cancellations,
            contentions=self._contentions,
            peak_queued=self._peak_queued,
            total_wait_time=self._total_wait_time,
        )

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def _issue(self, request: ResourceEvent, queue: list) -> None:
        """Queue a new request and try to serve it right away."""
        self._enqueue(request, queue)
        self._dispatch()
        if not request.triggered:
            self._contentions += 1
            self.sim._trace(
                "resource.queue", request,
                resource=self.name, priority=request.priority, queued=self.queued,
            )
            logger.debug(
                "[%s] %s queued, waiting=%d, level=%s",
                self.name, request.name, self.queued, self.level,
            )

    def _next_arrival(self) -> int:
        arrival = self._arrivals
        self._arrivals += 1
        return arrival

    def _enqueue(self, request: ResourceEvent, queue: list) -> None:
        bisect.insort(queue, request, key=attrgetter("key"))
        self._on_queue_change()

    def _grant(self, request: ResourceEvent, value: Any = None) -> None:
        wait = self.sim.now - request.issued_at
        self._grants += 1
        self._total_wait_time += wait
        if self.monitor:
            self.wait_data.add_stat(wait, self.sim.now)
        self.sim._trace(
            "resource.grant", request,
            resource=self.name, priority=request.priority, wait=wait,
        )
        request.trigger(value)

    def _cancel(self, request: ResourceEvent) -> None:
        if request.cancelled:
            return
        if request.triggered:
            raise InvalidCancellation(f"{request!r} on {self.name} was already granted")

        queue = self.put_queue if isinstance(request, Put) else self.get_queue
        queue.remove(request)
        request.cancelled = True
        self._cancellations += 1
        self._on_queue_change()
        self.sim._trace("resource.cancel", request, resource=self.name, queued=self.queued)
        logger.debug("[%s] %s cancelled, waiting=%d", self.name, request.name, self.queued)
        # The withdrawn request may have been blocking the ones behind it.
        self._dispatch()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _do_put(self, request: Put) -> bool:
        """Apply ``request`` if it fits now. Returns True if granted."""
        raise NotImplementedError

    def _do_get(self, request: Get) -> bool:
        """Apply ``request`` if it can be satisfied now. Returns True if granted."""
        raise NotImplementedError

    def _dispatch(self) -> None:
        level_before = self.level
        while True:
            progressed = self._serve(self.put_queue, self._do_put, strict=True)
            progressed |= self._serve(self.get_queue, self._do_get, strict=self.strict_get_order)
            if not progressed:
                break
        if self.level != level_before:
            self._on_level_change()

    def _serve(self, queue: list, apply: Callable[[Any], bool], *, strict: bool) -> bool:
        progressed = False
        idx = 0
        while idx < len(queue):
            if apply(queue[idx]):
                queue.pop(idx)
                progressed = True
            elif strict:
                break
            else:
                idx += 1
        if progressed:
            self._on_queue_change()
        return progressed

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def _on_queue_change(self) -> None:
        queued = self.queued
        if queued > self._peak_queued:
            self._peak_queued = queued
        if self.monitor:
            self.queue_data.add_stat(queued, self.sim.now)

    def _on_level_change(self) -> None:
        if self.monitor:
            self.level_data.add_stat(self.level, self.sim.now)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}('{self.name}', capacity={self._capacity}, "
            f"level={self.level}, queued={self.queued})"
        )
