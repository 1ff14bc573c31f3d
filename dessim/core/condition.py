"""Composite events: wait for all or any of a set of events.

``AllOf`` fires once every constituent has triggered (barrier / quorum
waits). ``AnyOf`` fires on the first constituent (races such as a request
against a patience timeout). Both resolve with a :class:`ConditionValue`,
a read-only mapping from each fired constituent to its value.

Example::

    req = counter.request()
    patience = sim.timeout(4)
    result = yield req | patience
    if req in result:
        ...  # got the counter
    else:
        req.cancel()  # the losing request is NOT cancelled for you

The value is assembled when the condition itself is processed, so every
constituent that triggered at the same instant is reported, not just the
first one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from dessim.core.event import Event

if TYPE_CHECKING:
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)

Evaluator = Callable[[tuple[Event, ...], int], bool]


class ConditionValue(Mapping):
    """Values of the constituents that had fired when a condition fired.

    Iteration follows the order the constituents were passed in, so the
    result does not depend on the order in which they triggered.
    """

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __getitem__(self, event: Event) -> Any:
        if event not in self.events:
            raise KeyError(event)
        return event._value

    def __contains__(self, event: object) -> bool:
        return event in self.events

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def todict(self) -> dict[Event, Any]:
        return {event: event._value for event in self.events}

    def __repr__(self) -> str:
        return f"<ConditionValue {self.todict()}>"


class Condition(Event):
    """Event that fires when ``evaluate(events, fired_count)`` becomes true.

    A failing constituent fails the condition with the same exception; the
    failure then counts as handled on the constituent.

    Args:
        sim: The owning simulation. All constituents must belong to it.
        evaluate: Predicate over the constituents and the number processed.
        events: Constituent events.

    Raises:
        ValueError: If a constituent belongs to another simulation.
    """

    __slots__ = ("_evaluate", "_events", "_count", "_detached")

    def __init__(
        self,
        sim: Simulation,
        evaluate: Evaluator,
        events: Iterable[Event],
        name: str | None = None,
    ):
        super().__init__(sim, name)
        self._evaluate = evaluate
        self._events = tuple(events)
        self._count = 0
        self._detached = False

        for event in self._events:
            if event.sim is not sim:
                raise ValueError(f"{event!r} belongs to a different simulation")

        # Must run before any waiter so waiters see the assembled value.
        self.callbacks.append(self._build_value)

        if not self._events:
            self.trigger(ConditionValue())
            return

        for event in self._events:
            if event.processed:
                self._check(event)
            else:
                event.callbacks.append(self._check)

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    def detach(self) -> None:
        """Stop listening to the constituents of a condition that has not fired.

        Used when a process abandons the wait (for example after being
        interrupted). A detached condition never fires.
        """
        if self.triggered:
            return
        self._detached = True
        self._remove_check_callbacks()
        logger.debug("%r detached from %d constituent(s)", self, len(self._events))

    def _check(self, event: Event) -> None:
        if self.triggered or self._detached:
            return

        self._count += 1

        if not event._ok:
            event._defused = True
            self.fail(event._value)
        elif self._evaluate(self._events, self._count):
            self.trigger()

    def _build_value(self, event: Event) -> None:
        self._remove_check_callbacks()
        if self._ok:
            value = ConditionValue()
            self._populate_value(value)
            self._value = value

    def _populate_value(self, value: ConditionValue) -> None:
        for event in self._events:
            if isinstance(event, Condition):
                event._populate_value(value)
            elif event.triggered and event._ok and event not in value:
                value.events.append(event)

    def _remove_check_callbacks(self) -> None:
        # Nested conditions keep their own callbacks; others may wait on them.
        for event in self._events:
            if not event.processed:
                event.remove_callback(self._check)

    @staticmethod
    def all_events(events: tuple[Event, ...], count: int) -> bool:
        return len(events) == count

    @staticmethod
    def any_events(events: tuple[Event, ...], count: int) -> bool:
        return count > 0 or not events


class AllOf(Condition):
    """Fires once every constituent has triggered.

    Triggering the constituents in a different order yields an equal value.
    """

    __slots__ = ()

    def __init__(self, sim: Simulation, events: Iterable[Event]):
        super().__init__(sim, Condition.all_events, events)


class AnyOf(Condition):
    """Fires as soon as one constituent triggers.

    The constituents that lost the race are left untouched. Pending
    resource requests among them stay queued until the caller cancels them.
    """

    __slots__ = ()

    def __init__(self, sim: Simulation, events: Iterable[Event]):
        super().__init__(sim, Condition.any_events, events)
