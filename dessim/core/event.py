"""Event types that form the fundamental units of simulation work.

An Event is a value representing a future occurrence. Processes suspend on
events by yielding them; when the simulation processes the event, every
registered callback runs in registration order, which is how waiting
processes resume.

Lifecycle::

    PENDING --trigger()/fail()--> TRIGGERED --processed by step()--> PROCESSED

Triggering schedules the event at the current time; the callbacks only run
once the simulation loop pops it. A Timeout is scheduled at creation but
stays PENDING until its time arrives.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from dessim.core.event_heap import Priority
from dessim.errors import AlreadyTriggered, InvalidSchedule

if TYPE_CHECKING:
    from dessim.core.condition import AllOf, AnyOf
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)

EventCallback = Callable[["Event"], None]
"""Signature for continuations registered on an event."""


class EventState(Enum):
    PENDING = "pending"
    TRIGGERED = "triggered"
    PROCESSED = "processed"


class Event:
    """A future occurrence that processes can wait on.

    Attributes:
        sim: The owning simulation.
        id: Per-simulation sequence number, stable across identical runs.
        name: Label for logging and tracing (defaults to the class name).
        callbacks: Continuations run, in order, when the event is processed.
    """

    __slots__ = ("sim", "id", "name", "callbacks", "_state", "_value", "_ok", "_defused")

    def __init__(self, sim: Simulation, name: str | None = None):
        self.sim = sim
        self.id = sim._next_event_id()
        self.name = name or type(self).__name__
        self.callbacks: list[EventCallback] = []
        self._state = EventState.PENDING
        self._value: Any = None
        self._ok: bool | None = None
        self._defused = False

    def __repr__(self) -> str:
        return f"<{self.name} #{self.id} {self._state.value}>"

    @property
    def state(self) -> EventState:
        return self._state

    @property
    def triggered(self) -> bool:
        """True once the event has a value (triggered or processed)."""
        return self._state is not EventState.PENDING

    @property
    def processed(self) -> bool:
        """True once the simulation has run the event's callbacks."""
        return self._state is EventState.PROCESSED

    @property
    def ok(self) -> bool:
        """Whether the event succeeded. Only meaningful once triggered."""
        if self._state is EventState.PENDING:
            raise RuntimeError(f"{self!r} has not been triggered yet")
        return bool(self._ok)

    @property
    def value(self) -> Any:
        """The trigger value, or the exception of a failed event.

        Raises:
            RuntimeError: If the event is still pending.
        """
        if self._state is EventState.PENDING:
            raise RuntimeError(f"value of {self!r} is not yet available")
        return self._value

    @property
    def defused(self) -> bool:
        """True if a failure carried by this event has been handled."""
        return self._defused

    @defused.setter
    def defused(self, value: bool) -> None:
        self._defused = value

    def trigger(self, value: Any = None, priority: int = Priority.NORMAL) -> Event:
        """Mark the event successful and schedule it at the current time.

        Raises:
            AlreadyTriggered: If the event was triggered or failed before.
        """
        self._ensure_pending()
        self._ok = True
        self._value = value
        self._state = EventState.TRIGGERED
        self.sim.schedule(self, 0, priority)
        return self

    def fail(self, exception: BaseException, priority: int = Priority.NORMAL) -> Event:
        """Mark the event failed; waiting processes get ``exception`` thrown in.

        Raises:
            TypeError: If ``exception`` is not an exception instance.
            AlreadyTriggered: If the event was triggered or failed before.
        """
        if not isinstance(exception, BaseException):
            raise TypeError(f"{exception!r} is not an exception")
        self._ensure_pending()
        self._ok = False
        self._value = exception
        self._state = EventState.TRIGGERED
        self.sim.schedule(self, 0, priority)
        return self

    def add_callback(self, fn: EventCallback) -> None:
        """Register a continuation. Runs after callbacks registered earlier."""
        if self._state is EventState.PROCESSED:
            raise RuntimeError(f"{self!r} was already processed")
        self.callbacks.append(fn)

    def remove_callback(self, fn: EventCallback) -> bool:
        """Unregister a continuation. Returns False if it was not registered."""
        try:
            self.callbacks.remove(fn)
        except ValueError:
            return False
        return True

    def _ensure_pending(self) -> None:
        if self._state is not EventState.PENDING:
            raise AlreadyTriggered(f"{self!r} has already been triggered")

    def _mark_processed(self) -> list[EventCallback]:
        """Flip to PROCESSED and hand back the callbacks to run."""
        if self._state is EventState.PENDING:
            # Scheduled ahead of time (Timeout): it fires as it is popped.
            self._state = EventState.TRIGGERED
        callbacks, self.callbacks = self.callbacks, []
        self._state = EventState.PROCESSED
        return callbacks

    def __and__(self, other: Event) -> AllOf:
        from dessim.core.condition import AllOf

        return AllOf(self.sim, [self, other])

    def __or__(self, other: Event) -> AnyOf:
        from dessim.core.condition import AnyOf

        return AnyOf(self.sim, [self, other])


class Timeout(Event):
    """An event that fires by itself after ``delay`` time units.

    Args:
        sim: The owning simulation.
        delay: Non-negative delay from now.
        value: Value the timeout fires with.
    """

    __slots__ = ("delay",)

    def __init__(
        self,
        sim: Simulation,
        delay: float,
        value: Any = None,
        name: str | None = None,
    ):
        if delay < 0:
            raise InvalidSchedule(f"negative delay {delay}")
        super().__init__(sim, name)
        self.delay = delay
        self._ok = True
        self._value = value
        sim.schedule(self, delay)

    def __repr__(self) -> str:
        return f"<{self.name} #{self.id} delay={self.delay} {self._state.value}>"
