"""dessim: a process-oriented discrete-event simulation kernel.

Processes are generator functions that yield events; the simulation advances
a virtual clock from event to event and resumes the processes waiting on
each one. Shared resources (Resource, Container, Store) coordinate
processes that compete for capacity.

Example::

    import dessim

    sim = dessim.Simulation()
    counter = dessim.Resource(sim, capacity=1)

    def customer(sim, name, counter):
        with counter.request() as req:
            yield req
            yield sim.timeout(5)
        print(name, "left at", sim.now)

    for name in ("a", "b"):
        sim.process(customer(sim, name, counter))
    sim.run()
"""

import logging

from dessim.core import (
    AllOf,
    AnyOf,
    Clock,
    Condition,
    ConditionValue,
    Event,
    EventState,
    InMemoryTraceRecorder,
    NullTraceRecorder,
    OverflowPolicy,
    Priority,
    Process,
    ProcessState,
    SimTimeAdapter,
    Simulation,
    SimulationConfig,
    Timeout,
    TraceRecorder,
)
from dessim.errors import (
    AlreadyTriggered,
    CapacityExceeded,
    EmptySchedule,
    Interrupt,
    InvalidCancellation,
    InvalidRelease,
    InvalidSchedule,
    NotInterruptible,
    Preempted,
    ProcessFailure,
    SimulationError,
    SimulationFailures,
    StopSimulation,
)
from dessim.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from dessim.monitoring import Data
from dessim.replication import ReplicationResult, results_frame, run_replications
from dessim.resources import (
    Container,
    ContainerStats,
    PreemptiveResource,
    PriorityResource,
    Request,
    Resource,
    ResourceStats,
    Store,
    StoreStats,
)

logging.getLogger("dessim").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Kernel
    "Simulation",
    "SimulationConfig",
    "OverflowPolicy",
    "Clock",
    "Priority",
    "SimTimeAdapter",
    # Events
    "Event",
    "EventState",
    "Timeout",
    "Condition",
    "ConditionValue",
    "AllOf",
    "AnyOf",
    "Process",
    "ProcessState",
    # Resources
    "Resource",
    "PriorityResource",
    "PreemptiveResource",
    "Request",
    "ResourceStats",
    "Container",
    "ContainerStats",
    "Store",
    "StoreStats",
    # Errors
    "SimulationError",
    "InvalidSchedule",
    "AlreadyTriggered",
    "CapacityExceeded",
    "InvalidCancellation",
    "InvalidRelease",
    "NotInterruptible",
    "EmptySchedule",
    "StopSimulation",
    "Interrupt",
    "Preempted",
    "ProcessFailure",
    "SimulationFailures",
    # Tracing and monitoring
    "TraceRecorder",
    "InMemoryTraceRecorder",
    "NullTraceRecorder",
    "Data",
    # Replications
    "run_replications",
    "ReplicationResult",
    "results_frame",
    # Logging
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "configure_from_env",
    "set_level",
    "set_module_level",
    "disable_logging",
]
