"""Exception taxonomy for the simulation kernel.

Programming errors (negative delays, double triggers, invalid cancellation)
are raised immediately at the call site and are never caught inside the
kernel. Process-body failures are collected by the simulation and raised
together once ``Simulation.run()`` returns control, see
:class:`SimulationFailures`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class SimulationError(Exception):
    """Base class for all kernel errors."""


class InvalidSchedule(SimulationError, ValueError):
    """An event was scheduled with a negative delay."""


class AlreadyTriggered(SimulationError, RuntimeError):
    """An event was triggered (or failed) a second time."""


class CapacityExceeded(SimulationError):
    """A put or get can never fit, or would overflow under OverflowPolicy.RAISE."""


class InvalidCancellation(SimulationError):
    """A request was cancelled after it had already been granted."""


class InvalidRelease(SimulationError):
    """A resource request was released without ever having been granted."""


class NotInterruptible(SimulationError):
    """The process is not suspended and cannot be interrupted."""


class EmptySchedule(SimulationError):
    """step() was called with no scheduled events left."""


class StopSimulation(Exception):
    """Raise inside a process body to end ``Simulation.run()``.

    ``run()`` returns :attr:`value`.
    """

    def __init__(self, value: Any = None):
        super().__init__(value)
        self.value = value


class Interrupt(Exception):
    """Thrown into a process body by ``Process.interrupt()``.

    Attributes:
        cause: Arbitrary payload supplied by the interrupter.
    """

    def __init__(self, cause: Any = None):
        super().__init__(cause)

    @property
    def cause(self) -> Any:
        return self.args[0]

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.cause!r})"


class Preempted:
    """Interrupt cause delivered when a PreemptiveResource evicts a holder.

    Attributes:
        by: The process whose request caused the eviction.
        usage_since: Simulation time at which the evicted request was granted.
        resource: The resource the holder was evicted from.
    """

    __slots__ = ("by", "usage_since", "resource")

    def __init__(self, by: Any, usage_since: float, resource: Any):
        self.by = by
        self.usage_since = usage_since
        self.resource = resource

    def __repr__(self) -> str:
        return f"Preempted(by={self.by!r}, usage_since={self.usage_since!r})"


@dataclass(frozen=True)
class ProcessFailure:
    """A failure nobody handled, recorded by the simulation.

    Attributes:
        time: Simulation time at which the failed event was processed.
        name: Name of the failed process or event.
        exception: The exception the body raised.
    """

    time: float
    name: str
    exception: BaseException


class SimulationFailures(SimulationError):
    """Raised by ``Simulation.run()`` when process bodies failed unhandled.

    Attributes:
        failures: Every unhandled failure, in the order they were processed.
    """

    def __init__(self, failures: list[ProcessFailure]):
        self.failures = list(failures)
        summary = "; ".join(
            f"{f.name} at t={f.time}: {type(f.exception).__name__}: {f.exception}"
            for f in self.failures
        )
        super().__init__(f"{len(self.failures)} unhandled failure(s): {summary}")
