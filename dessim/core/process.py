"""Generator-based cooperative processes.

A process wraps a Python generator. The generator runs until it yields an
Event, then stays suspended until the simulation processes that event, at
which point it resumes with the event's value (or has the event's exception
thrown in). Only one process body runs at a time and nothing preempts it
between two yields.

Example::

    def customer(sim, counter):
        with counter.request() as req:
            yield req                # suspend until granted
            yield sim.timeout(3.0)   # being served
        return "served"

    proc = sim.process(customer(sim, counter))
    sim.run()
    proc.value  # "served"

A Process is itself an Event that fires when the generator returns, so other
processes can wait for it with ``yield proc``.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from enum import Enum
from typing import TYPE_CHECKING, Any

from dessim.core.event import Event, EventState
from dessim.core.event_heap import Priority
from dessim.errors import Interrupt, NotInterruptible, Preempted, StopSimulation

if TYPE_CHECKING:
    from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)

ProcessGenerator = Generator[Event, Any, Any]
"""Type alias for process bodies: yield events, receive their values."""


class ProcessState(Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"
    FAILED = "failed"


def _cause_fields(cause: Any) -> dict[str, Any]:
    """Trace fields describing an interrupt cause."""
    fields = {"cause": repr(cause), "cause_type": type(cause).__name__}
    if isinstance(cause, Preempted):
        fields["resource"] = cause.resource.name
        fields["usage_since"] = cause.usage_since
        fields["by"] = getattr(cause.by, "name", None)
    return fields


class Initialize(Event):
    """Internal: urgent event that performs a process's first resumption."""

    __slots__ = ()

    def __init__(self, sim: Simulation, process: Process):
        super().__init__(sim, name=f"Initialize[{process.name}]")
        self.callbacks.append(process._resume)
        self._ok = True
        self._value = None
        self._state = EventState.TRIGGERED
        sim.schedule(self, 0, Priority.URGENT)


class Interruption(Event):
    """Delivers an :class:`Interrupt` to a suspended process.

    Scheduled with urgent priority at the current time. When processed it
    detaches the process from whatever it was waiting on and throws
    ``Interrupt(cause)`` into the body. For anyone else waiting on it (the
    interrupter, typically) it is an ordinary event whose value is the cause.
    """

    __slots__ = ("process",)

    def __init__(self, process: Process, cause: Any):
        super().__init__(process.sim, name=f"Interruption[{process.name}]")
        self.process = process
        self.callbacks.append(self._interrupt)
        self._ok = True
        self._value = cause
        self._state = EventState.TRIGGERED
        process.sim.schedule(self, 0, Priority.URGENT)

    @property
    def cause(self) -> Any:
        return self._value

    def _interrupt(self, event: Event) -> None:
        process = self.process
        if not process.is_alive:
            # Finished between the interrupt() call and now.
            return

        if process._target is not None:
            process._target.remove_callback(process._resume)

        process.sim._trace("process.interrupt", process, **_cause_fields(self.cause))
        process.sim.log.debug("%s interrupted (cause=%r)", process.name, self.cause)
        process._advance(False, Interrupt(self.cause), self)


class Process(Event):
    """A cooperatively scheduled unit of simulated behaviour.

    Args:
        sim: The owning simulation.
        generator: The process body.
        name: Label for logs and traces (defaults to the generator's name).

    Raises:
        TypeError: If ``generator`` is not a generator.
    """

    def __init__(self, sim: Simulation, generator: ProcessGenerator, name: str | None = None):
        if not isinstance(generator, Generator):
            raise TypeError(f"{generator!r} is not a generator")
        super().__init__(sim, name or getattr(generator, "__name__", "Process"))
        self._generator = generator
        self._proc_state = ProcessState.SUSPENDED
        self._target: Event | None = Initialize(sim, self)

    def __repr__(self) -> str:
        return f"<Process {self.name} #{self.id} {self._proc_state.value}>"

    @property
    def state(self) -> ProcessState:  # type: ignore[override]
        """Process lifecycle state (the completion event state is ``event_state``)."""
        return self._proc_state

    @property
    def event_state(self) -> EventState:
        return self._state

    @property
    def target(self) -> Event | None:
        """The event this process is currently waiting on."""
        return self._target

    @property
    def is_alive(self) -> bool:
        return self._proc_state in (ProcessState.ACTIVE, ProcessState.SUSPENDED)

    def interrupt(self, cause: Any = None) -> Interruption | None:
        """Forcibly resume this process with ``Interrupt(cause)``.

        The pending wait is discarded but not cancelled: a resource request
        the process was waiting on stays queued until the process cancels
        it.

        Returns:
            The Interruption event (yieldable by the interrupter), or None
            if the process was not interruptible and the simulation is
            configured with ``strict_interrupts=False``.

        Raises:
            NotInterruptible: If the process has terminated, or tries to
                interrupt itself, and ``strict_interrupts`` is set.
        """
        reason = None
        if not self.is_alive:
            reason = f"{self.name} has already {self._proc_state.value}"
        elif self.sim.active_process is self:
            reason = f"{self.name} cannot interrupt itself"

        if reason is not None:
            if self.sim.config.strict_interrupts:
                raise NotInterruptible(reason)
            logger.warning("Ignoring interrupt: %s", reason)
            return None

        return Interruption(self, cause)

    def _resume(self, event: Event) -> None:
        """Callback: continue the body with the outcome of ``event``."""
        if not event._ok:
            # The body receives the exception, so it counts as handled.
            event._defused = True
        self._advance(event._ok, event._value, event)

    def _advance(self, ok: bool, value: Any, event: Event) -> None:
        """Send ``value`` into the generator, or throw it when not ``ok``.

        Loops while the body yields events that were already processed, so
        those resume immediately without another trip through the heap.
        """
        sim = self.sim
        sim._active_process = self
        self._proc_state = ProcessState.ACTIVE
        sim._trace("process.resume", self, on=event.id)

        while True:
            try:
                if ok:
                    next_event = self._generator.send(value)
                else:
                    next_event = self._generator.throw(value)
            except StopIteration as stop:
                self._finish(ProcessState.TERMINATED, True, stop.value)
                break
            except StopSimulation:
                self._finish(ProcessState.TERMINATED, True, None)
                sim._active_process = None
                raise
            except Exception as exc:
                self._finish(ProcessState.FAILED, False, exc)
                sim.log.debug("%s failed: %r", self.name, exc)
                sim._trace("process.fail", self, error=type(exc).__name__)
                break

            if not isinstance(next_event, Event):
                ok = False
                value = TypeError(f"process {self.name} yielded {next_event!r}, which is not an Event")
                continue

            if next_event.processed:
                ok, value = next_event._ok, next_event._value
                if not ok:
                    next_event._defused = True
                continue

            next_event.callbacks.append(self._resume)
            self._target = next_event
            self._proc_state = ProcessState.SUSPENDED
            sim._trace("process.suspend", self, on=next_event.id)
            sim.log.debug("%s waits on %r", self.name, next_event)
            break

        sim._active_process = None

    def _finish(self, state: ProcessState, ok: bool, value: Any) -> None:
        self._proc_state = state
        self._target = None
        self._generator = None
        self._ok = ok
        self._value = value
        self._state = EventState.TRIGGERED
        self.sim.schedule(self, 0)
        if ok:
            self.sim._trace("process.stop", self)
