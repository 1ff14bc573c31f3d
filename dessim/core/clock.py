"""Simulation clock.

The clock only moves forward and is only advanced by the simulation loop.
An optional epoch maps simulated time onto wall-clock datetimes, so models
can be written in hours or minutes and still log real dates.
"""

from __future__ import annotations

from datetime import datetime, timedelta


class Clock:
    """Owns the current simulation time.

    Args:
        start_time: Initial value of ``now`` (non-negative).
        epoch: Datetime that corresponds to ``t = 0``.
        time_unit: Length of one simulated time unit (default one second).
    """

    def __init__(
        self,
        start_time: float = 0,
        *,
        epoch: datetime | None = None,
        time_unit: timedelta = timedelta(seconds=1),
    ):
        if start_time < 0:
            raise ValueError(f"start_time must be >= 0, got {start_time}")
        self._current_time = start_time
        self._epoch = epoch
        self._time_unit = time_unit

    @property
    def now(self) -> float:
        return self._current_time

    @property
    def epoch(self) -> datetime | None:
        return self._epoch

    def advance(self, time: float) -> None:
        """Move the clock to ``time``.

        Raises:
            ValueError: If ``time`` lies in the past.
        """
        if time < self._current_time:
            raise ValueError(
                f"clock cannot move backwards ({time} < {self._current_time})"
            )
        self._current_time = time

    def to_datetime(self, time: float | None = None) -> datetime:
        """Convert a simulation time (default: now) to a datetime.

        Raises:
            RuntimeError: If the clock has no epoch.
        """
        if self._epoch is None:
            raise RuntimeError("clock has no epoch; pass one via SimulationConfig")
        if time is None:
            time = self._current_time
        return self._epoch + time * self._time_unit

    def __repr__(self) -> str:
        return f"Clock(now={self._current_time!r})"
