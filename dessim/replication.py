"""Independent replications of a stochastic model.

Each replication builds its own Simulation and its own ``random.Random``
seeded from the list of seeds, so replications share no state and can run
in parallel threads::

    def model(sim, rng):
        served = []
        counter = Resource(sim, capacity=2)
        for i in range(20):
            sim.process(customer(sim, counter, rng, served))
        return lambda: len(served)

    results = run_replications(model, seeds=range(10), until=480)
    frame = results_frame(results)
    frame["value"].mean()
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any

import pandas as pd

from dessim.core.config import SimulationConfig
from dessim.core.simulation import Simulation

logger = logging.getLogger(__name__)

Model = Callable[[Simulation, random.Random], Any]
"""Sets up a replication. Returns a callable producing its result, or a value."""


@dataclass(frozen=True)
class ReplicationResult:
    """Outcome of a single replication."""

    seed: int
    value: Any
    end_time: float
    events_processed: int


def run_replication(
    model: Model,
    seed: int,
    *,
    until: float | None = None,
    config: SimulationConfig | None = None,
) -> ReplicationResult:
    """Run one replication of ``model`` with ``random.Random(seed)``."""
    sim = Simulation(config=config)
    rng = random.Random(seed)
    collect = model(sim, rng)
    run_value = sim.run(until=until)

    if callable(collect):
        value = collect()
    elif collect is None:
        value = run_value
    else:
        value = collect

    logger.debug(
        "Replication seed=%s finished at t=%s after %d event(s)",
        seed, sim.now, sim.events_processed,
    )
    return ReplicationResult(
        seed=seed,
        value=value,
        end_time=sim.now,
        events_processed=sim.events_processed,
    )


def run_replications(
    model: Model,
    seeds: Iterable[int],
    *,
    until: float | None = None,
    config: SimulationConfig | None = None,
    max_workers: int | None = None,
) -> list[ReplicationResult]:
    """Run one independent replication per seed.

    Args:
        model: Called as ``model(sim, rng)`` before each run. It may return
            a callable, called after the run to produce the replication's
            value; a plain value, used as is; or None, in which case the
            value returned by ``sim.run()`` is used.
        seeds: One seed per replication.
        until: Passed to ``Simulation.run``.
        config: Configuration shared by every replication's Simulation.
        max_workers: Run replications in a thread pool of this size when
            greater than 1; otherwise they run one after another.

    Returns:
        Results in the order of ``seeds``.

    Raises:
        SimulationFailures: From the first replication (in seed order)
            whose processes failed unhandled.
    """
    seeds = list(seeds)
    logger.info("Running %d replication(s) (max_workers=%s)", len(seeds), max_workers)

    def run(seed: int) -> ReplicationResult:
        return run_replication(model, seed, until=until, config=config)

    if max_workers is not None and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(run, seeds))
    return [run(seed) for seed in seeds]


def results_frame(results: Iterable[ReplicationResult]) -> pd.DataFrame:
    """Replication results as a DataFrame, one row per replication."""
    rows = [asdict(result) for result in results]
    return pd.DataFrame(rows, columns=["seed", "value", "end_time", "events_processed"])
