"""Core simulation engine: clock, event heap, and main loop.

The Simulation owns the clock and the event heap. Each ``step()`` pops the
earliest entry by (time, priority, insertion sequence), advances the clock
to its time, and runs the event's callbacks; those callbacks resume
processes, which in turn schedule further events.

Example::

    sim = Simulation()

    def clock(sim, name, tick):
        while True:
            print(name, sim.now)
            yield sim.timeout(tick)

    sim.process(clock(sim, "fast", 0.5))
    sim.process(clock(sim, "slow", 1.0))
    sim.run(until=2)

Failures inside process bodies terminate only the failing process. Failures
that no other process handled are logged and raised together, as
``SimulationFailures``, when ``run()`` finishes.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from dessim.core.clock import Clock
from dessim.core.condition import AllOf, AnyOf
from dessim.core.config import SimulationConfig
from dessim.core.event import Event, Timeout
from dessim.core.event_heap import EventHeap, Priority
from dessim.core.process import Interruption, Process, ProcessGenerator
from dessim.core.tracing import NullTraceRecorder, TraceRecorder
from dessim.errors import (
    EmptySchedule,
    InvalidSchedule,
    ProcessFailure,
    SimulationFailures,
    StopSimulation,
)

logger = logging.getLogger(__name__)


class SimTimeAdapter(logging.LoggerAdapter):
    """Prefixes every message with the current simulation time.

    The time is also attached to the record as ``sim_time``.
    """

    def __init__(self, logger: logging.Logger, sim: Simulation):
        super().__init__(logger, {})
        self._sim = sim

    def process(self, msg, kwargs):
        kwargs["extra"] = {**kwargs.get("extra", {}), "sim_time": self._sim.now}
        return f"[t={self._sim.now}] {msg}", kwargs


class Simulation:
    """Discrete-event simulation kernel.

    Args:
        start_time: Initial clock value.
        config: Kernel settings; defaults to ``SimulationConfig()``.
        trace_recorder: Receives engine-level spans (default: discarded).
        trace_logger: Logger for suspension/resume trace lines; defaults to
            this module's logger.
    """

    def __init__(
        self,
        start_time: float = 0,
        *,
        config: SimulationConfig | None = None,
        trace_recorder: TraceRecorder | None = None,
        trace_logger: logging.Logger | None = None,
    ):
        self.config = config or SimulationConfig()
        self._clock = Clock(start_time, epoch=self.config.epoch, time_unit=self.config.time_unit)
        self._heap = EventHeap()
        self._event_ids = itertools.count()
        self._trace_recorder = trace_recorder or NullTraceRecorder()
        self.log = SimTimeAdapter(trace_logger or logger, self)

        self._active_process: Process | None = None
        self._failures: list[ProcessFailure] = []
        self._stop_request: StopSimulation | None = None
        self._events_processed = 0

    def __repr__(self) -> str:
        return f"Simulation(now={self.now!r}, pending={self._heap.size()})"

    # ------------------------------------------------------------------
    # Clock and state
    # ------------------------------------------------------------------

    @property
    def now(self) -> float:
        """Current simulation time."""
        return self._clock.now

    @property
    def now_datetime(self) -> datetime:
        """Current simulation time mapped onto ``config.epoch``."""
        return self._clock.to_datetime()

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def active_process(self) -> Process | None:
        """The process whose body is executing right now, if any."""
        return self._active_process

    @property
    def events_processed(self) -> int:
        return self._events_processed

    @property
    def failures(self) -> list[ProcessFailure]:
        """Unhandled failures recorded since the last ``run()`` raised them."""
        return list(self._failures)

    @property
    def trace_recorder(self) -> TraceRecorder:
        return self._trace_recorder

    def _next_event_id(self) -> int:
        return next(self._event_ids)

    def _trace(self, kind: str, event: Event, **data: Any) -> None:
        self._trace_recorder.record(
            time=self._clock.now,
            kind=kind,
            event_id=event.id,
            event_type=event.name,
            **data,
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def process(self, generator: ProcessGenerator, name: str | None = None) -> Process:
        """Spawn a process; its body starts at the current time."""
        return Process(self, generator, name)

    def event(self, name: str | None = None) -> Event:
        """Create a pending event to be triggered manually."""
        return Event(self, name)

    def timeout(self, delay: float, value: Any = None) -> Timeout:
        """An event that fires ``delay`` time units from now."""
        return Timeout(self, delay, value)

    def all_of(self, events: Iterable[Event]) -> AllOf:
        return AllOf(self, events)

    def any_of(self, events: Iterable[Event]) -> AnyOf:
        return AnyOf(self, events)

    def interrupt(self, process: Process, cause: Any = None) -> Interruption | None:
        """Shorthand for ``process.interrupt(cause)``."""
        return process.interrupt(cause)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, event: Event, delay: float = 0, priority: int = Priority.NORMAL) -> None:
        """Insert ``event`` into the queue at ``now + delay``.

        Raises:
            InvalidSchedule: If ``delay`` is negative.
        """
        if delay < 0:
            raise InvalidSchedule(f"negative delay {delay} for {event!r}")
        time = self._clock.now + delay
        entry = self._heap.push(event, time, priority)
        self._trace_recorder.record(
            time=self._clock.now,
            kind="heap.push",
            event_id=event.id,
            event_type=event.name,
            at=time,
            priority=entry.priority,
        )

    def peek(self) -> float:
        """Time of the next scheduled entry, or ``inf`` if there is none."""
        self._discard_stale()
        return self._heap.peek_time()

    def _discard_stale(self) -> None:
        # A timeout triggered by hand leaves its original entry behind.
        while self._heap.has_events() and self._heap.peek().event.processed:
            self._heap.pop()

    def step(self) -> None:
        """Process the next event.

        Entries whose event was already processed (a timeout that was
        triggered by hand, for instance) are discarded without counting as
        a step.

        Raises:
            EmptySchedule: If no events are left.
            SimulationFailures: With ``config.fail_fast``, when the event
                carries a failure nobody handled.
            StopSimulation: If a callback raised it; raised after the
                remaining callbacks of the event have run.
        """
        self._discard_stale()
        if not self._heap.has_events():
            raise EmptySchedule("no scheduled events left")

        entry = self._heap.pop()
        event = entry.event
        self._clock.advance(entry.time)
        self._events_processed += 1
        self._trace("event.process", event)

        # Every waiter on the event resumes before a stop takes effect.
        stop: StopSimulation | None = None
        for callback in event._mark_processed():
            try:
                callback(event)
            except StopSimulation as exc:
                if stop is None:
                    stop = exc

        if not event._ok and not event._defused:
            self._record_failure(event)
        if stop is not None:
            raise stop

    def _record_failure(self, event: Event) -> None:
        failure = ProcessFailure(time=self.now, name=event.name, exception=event._value)
        event._defused = True
        self.log.error(
            "Unhandled failure in %s: %s: %s",
            event.name, type(event._value).__name__, event._value,
            exc_info=event._value,
        )
        if self.config.fail_fast:
            raise SimulationFailures([failure])
        self._failures.append(failure)

    def stop(self, value: Any = None) -> None:
        """End ``run()`` once the current step completes; it returns ``value``."""
        self._stop_request = StopSimulation(value)

    def run(self, until: float | Event | None = None) -> Any:
        """Process events until the queue drains, ``until`` passes, or a stop.

        Args:
            until: A time horizon or an Event. With a time, events scheduled
                at exactly ``until`` are still processed and the clock ends
                at ``until``. With an Event, the run ends once it has been
                processed and returns its value.

        Returns:
            The value passed to ``stop()``/``StopSimulation``, the value of
            the ``until`` event, or None.

        Raises:
            ValueError: If ``until`` lies in the past.
            SimulationFailures: If process bodies failed and nobody handled
                the failures.
            RuntimeError: If ``until`` is an event and the queue drained
                before it was processed.
        """
        horizon: float | None = None
        until_event: Event | None = None
        if isinstance(until, Event):
            until_event = until
            if not until_event.processed:
                # The caller receives the failure from run() itself.
                until_event.add_callback(_defuse)
        elif until is not None:
            if until < self.now:
                raise ValueError(f"until ({until}) must not be before now ({self.now})")
            horizon = until

        self._stop_request = None
        stopped = False
        result: Any = None
        logger.info("Simulation run started at t=%s (until=%r)", self.now, until)

        try:
            while True:
                if until_event is not None and until_event.processed:
                    break
                if self.peek() > (math.inf if horizon is None else horizon):
                    break
                if not self._heap.has_events():
                    break
                self.step()
                if self._stop_request is not None:
                    result = self._stop_request.value
                    stopped = True
                    break
        except StopSimulation as stop:
            result = stop.value
            stopped = True
            logger.info("Simulation stopped by process at t=%s", self.now)

        if horizon is not None and not stopped:
            self._clock.advance(horizon)

        logger.info(
            "Simulation run ended at t=%s after %d event(s)", self.now, self._events_processed
        )
        self._raise_failures()

        if until_event is not None and not stopped:
            if not until_event.processed:
                raise RuntimeError(
                    f"no scheduled events left but {until_event!r} was not processed"
                )
            if not until_event._ok:
                raise until_event._value
            return until_event._value
        return result

    def _raise_failures(self) -> None:
        if self._failures:
            failures, self._failures = self._failures, []
            raise SimulationFailures(failures)


def _defuse(event: Event) -> None:
    event.defused = True
