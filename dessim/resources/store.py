"""Store holding discrete items in FIFO order.

Puts are granted in issue order while there is room. Gets take the oldest
item, or the oldest item accepted by their filter. Both accept a
``priority``; lower values go first, ties in issue order. Pending gets are
served in that order, but a filtered get that matches none of the stored
items does not hold up the gets behind it::

    store = Store(sim, capacity=1)

    def consumer(sim, store):
        item = yield store.get(lambda item: item == "B")
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dessim.core.config import OverflowPolicy
from dessim.errors import CapacityExceeded
from dessim.resources.base import BaseResource, BaseStats, Get, Put

if TYPE_CHECKING:
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)

ItemFilter = Callable[[Any], bool]


@dataclass(frozen=True)
class StoreStats(BaseStats):
    """Snapshot of store statistics.

    Attributes:
        items_put: Items added so far.
        items_got: Items removed so far.
    """

    items_put: int
    items_got: int


class StorePut(Put):
    def __init__(self, store: Store, item: Any, priority: float = 0):
        super().__init__(store, priority=priority)
        self.item = item


class StoreGet(Get):
    def __init__(self, store: Store, filter: ItemFilter | None = None, priority: float = 0):
        super().__init__(store, priority=priority)
        self.filter = filter


class Store(BaseResource):
    """Holds up to ``capacity`` items.

    Args:
        sim: The owning simulation.
        capacity: Maximum number of items (defaults to unbounded).
        name: Label for logs and stats.
        monitor: Record queue length, item count and waiting times.
        overflow: ``OverflowPolicy.RAISE`` makes a put into a full store
            raise ``CapacityExceeded`` instead of waiting.
    """

    strict_get_order = False

    def __init__(
        self,
        sim: Simulation,
        capacity: float = math.inf,
        name: str | None = None,
        *,
        monitor: bool = False,
        overflow: OverflowPolicy | None = None,
    ):
        super().__init__(sim, capacity, name, monitor=monitor, overflow=overflow)
        self._items: list[Any] = []
        self._items_put = 0
        self._items_got = 0

    @property
    def items(self) -> tuple[Any, ...]:
        """Stored items, oldest first."""
        return tuple(self._items)

    @property
    def level(self) -> int:
        return len(self._items)

    @property
    def stats(self) -> StoreStats:
        return StoreStats(
            **self._stats_fields(),
            items_put=self._items_put,
            items_got=self._items_got,
        )

    def __len__(self) -> int:
        return len(self._items)

    def put(self, item: Any, priority: float = 0) -> StorePut:
        """Add ``item``; the event fires once it is stored.

        Waiting puts with a lower ``priority`` are stored first.

        Raises:
            CapacityExceeded: Under ``OverflowPolicy.RAISE``, if the store
                is full or other puts are already waiting.
        """
        if self._overflow is OverflowPolicy.RAISE and (
            self.put_queue or len(self._items) >= self._capacity
        ):
            raise CapacityExceeded(f"{self.name} is full ({len(self._items)} items)")
        request = StorePut(self, item, priority)
        self._issue(request, self.put_queue)
        return request

    def get(self, filter: ItemFilter | None = None, priority: float = 0) -> StoreGet:
        """Take the oldest item, or the oldest one ``filter`` accepts.

        The event fires with the item. Waiting gets with a lower
        ``priority`` are served first.
        """
        request = StoreGet(self, filter, priority)
        self._issue(request, self.get_queue)
        return request

    def _do_put(self, request: StorePut) -> bool:
        if len(self._items) >= self._capacity:
            return False
        self._items.append(request.item)
        self._items_put += 1
        logger.debug("[%s] stored %r, items=%d", self.name, request.item, len(self._items))
        self._grant(request)
        return True

    def _do_get(self, request: StoreGet) -> bool:
        for idx, item in enumerate(self._items):
            if request.filter is None or request.filter(item):
                del self._items[idx]
                self._items_got += 1
                logger.debug("[%s] handed out %r, items=%d", self.name, item, len(self._items))
                self._grant(request, item)
                return True
        return False
