"""Container holding a continuous or discrete amount of something.

Puts add to the level and gets take from it; neither is ever partially
granted. A put that would overflow and a get that would underflow wait in
their queues, which are served strictly in ``(priority, arrival)`` order::

    tank = Container(sim, capacity=100, init=20)

    def pump(sim, tank):
        while True:
            yield tank.put(10)
            yield sim.timeout(1)

    def car(sim, tank):
        yield tank.get(40)   # waits until 40 units are available
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dessim.core.config import OverflowPolicy
from dessim.errors import CapacityExceeded
from dessim.resources.base import BaseResource, BaseStats, Get, Put

if TYPE_CHECKING:
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerStats(BaseStats):
    """Snapshot of container statistics.

    Attributes:
        total_put: Sum of all granted put amounts.
        total_got: Sum of all granted get amounts.
    """

    total_put: float
    total_got: float


class ContainerPut(Put):
    def __init__(self, container: Container, amount: float, priority: float = 0):
        super().__init__(container, priority=priority)
        self.amount = amount


class ContainerGet(Get):
    def __init__(self, container: Container, amount: float, priority: float = 0):
        super().__init__(container, priority=priority)
        self.amount = amount


class Container(BaseResource):
    """Holds a level between 0 and ``capacity``.

    Args:
        sim: The owning simulation.
        capacity: Maximum level (defaults to unbounded).
        init: Initial level.
        name: Label for logs and stats.
        monitor: Record queue length, level and waiting times.
        overflow: ``OverflowPolicy.RAISE`` makes a put that cannot be
            applied at once raise ``CapacityExceeded`` instead of waiting.

    Raises:
        ValueError: If ``init`` is negative or above ``capacity``.
    """

    def __init__(
        self,
        sim: Simulation,
        capacity: float = math.inf,
        init: float = 0,
        name: str | None = None,
        *,
        monitor: bool = False,
        overflow: OverflowPolicy | None = None,
    ):
        super().__init__(sim, capacity, name, monitor=monitor, overflow=overflow)
        if init < 0:
            raise ValueError(f"init must be >= 0, got {init}")
        if init > capacity:
            raise ValueError(f"init ({init}) exceeds capacity ({capacity})")
        self._level = init
        self._total_put = 0.0
        self._total_got = 0.0
        if monitor:
            self.level_data.add_stat(self._level, sim.now)

    @property
    def level(self) -> float:
        return self._level

    @property
    def stats(self) -> ContainerStats:
        return ContainerStats(
            **self._stats_fields(),
            total_put=self._total_put,
            total_got=self._total_got,
        )

    def put(self, amount: float, priority: float = 0) -> ContainerPut:
        """Add ``amount``; the event fires once it fits.

        Waiting puts with a lower ``priority`` are applied first.

        Raises:
            ValueError: If ``amount`` is not positive.
            CapacityExceeded: If ``amount`` exceeds the capacity, or if it
                does not fit right now under ``OverflowPolicy.RAISE``.
        """
        self._check_amount(amount)
        if self._overflow is OverflowPolicy.RAISE and (
            self.put_queue or self._level + amount > self._capacity
        ):
            raise CapacityExceeded(
                f"put({amount}) on {self.name} does not fit "
                f"(level={self._level}, capacity={self._capacity})"
            )
        request = ContainerPut(self, amount, priority)
        self._issue(request, self.put_queue)
        return request

    def get(self, amount: float, priority: float = 0) -> ContainerGet:
        """Take ``amount``; the event fires with ``amount`` once it is available.

        Waiting gets with a lower ``priority`` are served first.

        Raises:
            ValueError: If ``amount`` is not positive.
            CapacityExceeded: If ``amount`` exceeds the capacity.
        """
        self._check_amount(amount)
        request = ContainerGet(self, amount, priority)
        self._issue(request, self.get_queue)
        return request

    def _check_amount(self, amount: float) -> None:
        if amount <= 0:
            raise ValueError(f"amount must be > 0, got {amount}")
        if amount > self._capacity:
            raise CapacityExceeded(
                f"amount {amount} can never fit {self.name} with capacity {self._capacity}"
            )

    def _do_put(self, request: ContainerPut) -> bool:
        if self._level + request.amount > self._capacity:
            return False
        self._level += request.amount
        self._total_put += request.amount
        logger.debug("[%s] put %s, level=%s", self.name, request.amount, self._level)
        self._grant(request)
        return True

    def _do_get(self, request: ContainerGet) -> bool:
        if request.amount > self._level:
            return False
        self._level -= request.amount
        self._total_got += request.amount
        logger.debug("[%s] got %s, level=%s", self.name, request.amount, self._level)
        self._grant(request, request.amount)
        return True
