"""Time-series storage for recorded simulation series.

Resources created with ``monitor=True`` record queue lengths, levels and
waiting times into :class:`Data` containers. After the run, the series can
be summarised here or exported with :meth:`Data.to_dataframe` for an
external plotting component.
"""

from __future__ import annotations

import math
import statistics
from typing import Any

import pandas as pd


class Data:
    """Container for (time, value) samples recorded during a run.

    Samples are stored in append order. The kernel always appends with a
    non-decreasing simulation time, which :meth:`time_weighted_mean` relies
    on.

    Args:
        name: Label used as the value column in :meth:`to_dataframe`.
    """

    def __init__(self, name: str = "value") -> None:
        self.name = name
        self._samples: list[tuple[float, Any]] = []

    def add_stat(self, value: Any, time: float) -> None:
        """Record ``value`` at simulation time ``time``."""
        self._samples.append((time, value))

    def clear(self) -> None:
        self._samples.clear()

    @property
    def values(self) -> list[tuple[float, Any]]:
        """All recorded samples as (time, value) tuples."""
        return self._samples

    def times(self) -> list[float]:
        return [t for t, _ in self._samples]

    def raw_values(self) -> list[Any]:
        return [v for _, v in self._samples]

    def between(self, start: float, end: float) -> Data:
        """Return a new Data with the samples in [start, end)."""
        result = Data(self.name)
        result._samples = [(t, v) for t, v in self._samples if start <= t < end]
        return result

    # === Aggregations ===

    def count(self) -> int:
        return len(self._samples)

    def mean(self) -> float:
        """Mean of sample values. Returns 0.0 if empty."""
        vals = self.raw_values()
        if not vals:
            return 0.0
        return sum(vals) / len(vals)

    def min(self) -> float:
        vals = self.raw_values()
        return float(min(vals)) if vals else 0.0

    def max(self) -> float:
        vals = self.raw_values()
        return float(max(vals)) if vals else 0.0

    def std(self) -> float:
        """Population standard deviation. Returns 0.0 with fewer than 2 samples."""
        vals = self.raw_values()
        if len(vals) < 2:
            return 0.0
        return statistics.pstdev(vals)

    def percentile(self, p: float) -> float:
        """Linearly interpolated percentile, ``p`` in [0, 1]. 0.0 if empty."""
        vals = sorted(self.raw_values())
        if not vals:
            return 0.0
        if p <= 0:
            return float(vals[0])
        if p >= 1:
            return float(vals[-1])
        pos = p * (len(vals) - 1)
        lo = int(pos)
        hi = min(lo + 1, len(vals) - 1)
        frac = pos - lo
        return float(vals[lo] * (1.0 - frac) + vals[hi] * frac)

    def time_weighted_mean(self, until: float | None = None) -> float:
        """Average of a step function that holds each value until the next sample.

        Suited to state series such as queue length or container level.

        Args:
            until: End of the observation window; defaults to the last
                sample time.

        Returns:
            The time-weighted mean, or 0.0 if the window is empty.
        """
        if not self._samples:
            return 0.0
        start = self._samples[0][0]
        end = self._samples[-1][0] if until is None else until
        if end <= start:
            return float(self._samples[-1][1])

        area = 0.0
        for (t, v), (t_next, _) in zip(self._samples, self._samples[1:]):
            area += v * (min(t_next, end) - t) if t < end else 0.0
        last_t, last_v = self._samples[-1]
        if last_t < end:
            area += last_v * (end - last_t)
        return area / (end - start)

    def to_dataframe(self) -> pd.DataFrame:
        """Samples as a DataFrame with columns ``time`` and ``name``."""
        return pd.DataFrame(self._samples, columns=["time", self.name])

    def __len__(self) -> int:
        return len(self._samples)

    def __bool__(self) -> bool:
        return len(self._samples) > 0

    def __repr__(self) -> str:
        return f"Data({self.name!r}, samples={len(self._samples)})"


def summarize(data: Data) -> dict[str, float]:
    """Summary statistics of a series as a plain dict."""
    return {
        "count": data.count(),
        "mean": data.mean(),
        "std": data.std(),
        "min": data.min(),
        "p50": data.percentile(0.5),
        "p99": data.percentile(0.99),
        "max": data.max(),
        "time_weighted_mean": data.time_weighted_mean() if data else math.nan,
    }
