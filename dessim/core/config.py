"""Explicit per-simulation configuration.

Every knob the kernel exposes lives on :class:`SimulationConfig`, which is
handed to the ``Simulation`` constructor. There is no module-level state.

Example::

    config = SimulationConfig(strict_interrupts=False, overflow=OverflowPolicy.RAISE)
    sim = Simulation(config=config)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class OverflowPolicy(Enum):
    """What a put does when the Store or Container is full.

    BLOCK queues the put until there is room. RAISE fails it with
    ``CapacityExceeded`` at issue time.
    """

    BLOCK = "block"
    RAISE = "raise"


@dataclass(frozen=True)
class SimulationConfig:
    """Frozen simulation settings.

    Attributes:
        strict_interrupts: If True, interrupting a process that is not
            suspended raises ``NotInterruptible``. If False, the call logs a
            warning and returns None.
        fail_fast: If True, an unhandled process failure is raised from
            ``step()`` immediately instead of being collected until the end
            of ``run()``.
        overflow: Default overflow policy for Store and Container puts.
        epoch: Datetime corresponding to simulation time zero.
        time_unit: Duration of one simulation time unit, used with epoch.
    """

    strict_interrupts: bool = True
    fail_fast: bool = False
    overflow: OverflowPolicy = OverflowPolicy.BLOCK
    epoch: datetime | None = None
    time_unit: timedelta = timedelta(seconds=1)

    def replace(self, **changes) -> SimulationConfig:
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)
