"""Core simulation engine components."""

from dessim.core.clock import Clock
from dessim.core.condition import AllOf, AnyOf, Condition, ConditionValue
from dessim.core.config import OverflowPolicy, SimulationConfig
from dessim.core.event import Event, EventState, Timeout
from dessim.core.event_heap import EventHeap, Priority, ScheduledEntry
from dessim.core.process import Interruption, Process, ProcessState
from dessim.core.simulation import SimTimeAdapter, Simulation
from dessim.core.tracing import InMemoryTraceRecorder, NullTraceRecorder, TraceRecorder

__all__ = [
    "Simulation",
    "SimTimeAdapter",
    "SimulationConfig",
    "OverflowPolicy",
    "Clock",
    "Event",
    "EventState",
    "Timeout",
    "Condition",
    "ConditionValue",
    "AllOf",
    "AnyOf",
    "Process",
    "ProcessState",
    "Interruption",
    "EventHeap",
    "Priority",
    "ScheduledEntry",
    "TraceRecorder",
    "InMemoryTraceRecorder",
    "NullTraceRecorder",
]
