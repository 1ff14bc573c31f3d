"""Trace recorders for engine-level simulation instrumentation.

Span kinds written by the kernel:

- ``heap.push`` (``at``, ``priority``) and ``event.process``
- ``process.resume`` / ``process.suspend`` (``on``: the event id),
  ``process.stop``, ``process.fail`` (``error``)
- ``process.interrupt`` (``cause``, ``cause_type``; preemptions add
  ``resource``, ``usage_since`` and ``by``)
- ``resource.queue`` (``resource``, ``priority``, ``queued``),
  ``resource.grant`` (``resource``, ``priority``, ``wait``) and
  ``resource.cancel`` (``resource``, ``queued``)

Event ids are per-simulation counters, so recording the same seeded program
twice yields identical span lists.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Protocol

import pandas as pd


class TraceRecorder(Protocol):
    """Protocol for recording engine-level trace spans.

    Implementations can store traces in memory, write them elsewhere,
    or simply discard them.
    """

    def record(
        self,
        *,
        time: float,
        kind: str,
        event_id: int | None = None,
        event_type: str | None = None,
        **data: Any,
    ) -> None:
        """Record an engine-level trace span.

        Args:
            time: Simulation time when the span occurred.
            kind: Category of span (e.g., "heap.push", "process.resume").
            event_id: Id of the associated event.
            event_type: Name of the associated event.
            **data: Additional structured data for the span.
        """


@dataclass
class InMemoryTraceRecorder:
    """Stores engine traces in memory for later inspection.

    Useful for testing and for comparing two runs of the same model.
    """

    spans: list[dict[str, Any]] = field(default_factory=list)

    def record(
        self,
        *,
        time: float,
        kind: str,
        event_id: int | None = None,
        event_type: str | None = None,
        **data: Any,
    ) -> None:
        span: dict[str, Any] = {
            "time": time,
            "kind": kind,
        }
        if event_id is not None:
            span["event_id"] = event_id
        if event_type is not None:
            span["event_type"] = event_type
        if data:
            span["data"] = data
        self.spans.append(span)

    def clear(self) -> None:
        """Clear all recorded spans."""
        self.spans.clear()

    def filter_by_kind(self, kind: str) -> list[dict[str, Any]]:
        """Return spans matching the given kind."""
        return [s for s in self.spans if s["kind"] == kind]

    def filter_by_event(self, event_id: int) -> list[dict[str, Any]]:
        """Return spans for a specific event id."""
        return [s for s in self.spans if s.get("event_id") == event_id]

    def kind_counts(self) -> Counter:
        return Counter(s["kind"] for s in self.spans)

    def waits(self, resource: str) -> list[tuple[float, float]]:
        """``(time, wait)`` of every grant on the named resource."""
        return [
            (s["time"], s["data"]["wait"])
            for s in self.filter_by_kind("resource.grant")
            if s["data"]["resource"] == resource
        ]

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten the spans into a DataFrame, one row per span.

        Extra span data is expanded into columns prefixed with ``data.``.
        """
        rows = []
        for span in self.spans:
            row = {k: v for k, v in span.items() if k != "data"}
            for key, value in span.get("data", {}).items():
                row[f"data.{key}"] = value
            rows.append(row)
        return pd.DataFrame(rows, columns=None if rows else ["time", "kind"])


@dataclass
class NullTraceRecorder:
    """No-op recorder that discards all traces."""

    def record(
        self,
        *,
        time: float,
        kind: str,
        event_id: int | None = None,
        event_type: str | None = None,
        **data: Any,
    ) -> None:
        pass
