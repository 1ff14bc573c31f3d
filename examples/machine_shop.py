"""Machines that break down and share one repairman.

Each machine produces parts until it breaks. Breakdowns request the
repairman with high priority and preempt routine maintenance, which resumes
with whatever work it had left. Produced parts go into a Container; the
shop stops once the order is complete.
"""

from __future__ import annotations

import random

import dessim

MACHINES = 5
PART_TIME = 1.5
MEAN_TIME_TO_FAILURE = 40.0
REPAIR_TIME = 6.0
MAINTENANCE = 25.0
ORDER = 400


def machine(sim, name, rng, repairman, output):
    while True:
        remaining = rng.expovariate(1 / MEAN_TIME_TO_FAILURE)
        while remaining > 0:
            started = sim.now
            yield sim.timeout(min(PART_TIME, remaining))
            remaining -= sim.now - started
            if remaining > 0:
                yield output.put(1)
        sim.log.info("%s broke down", name)
        with repairman.request(priority=1) as req:
            yield req
            yield sim.timeout(REPAIR_TIME)


def maintenance(sim, repairman):
    work = MAINTENANCE
    while work > 0:
        with repairman.request(priority=2) as req:
            yield req
            started = sim.now
            try:
                yield sim.timeout(work)
                work = 0
            except dessim.Interrupt as interrupt:
                work -= sim.now - started
                sim.log.info("maintenance preempted by %s, %.1f left", interrupt.cause.by, work)


def watch_order(sim, output):
    while output.level < ORDER:
        yield sim.timeout(1)
    return sim.now


def main() -> None:
    dessim.enable_console_logging("INFO")
    rng = random.Random(7)
    sim = dessim.Simulation()
    repairman = dessim.PreemptiveResource(sim, capacity=1, name="repairman")
    output = dessim.Container(sim, name="parts", monitor=True)

    for i in range(MACHINES):
        sim.process(machine(sim, f"machine-{i}", rng, repairman, output), name=f"machine-{i}")
    sim.process(maintenance(sim, repairman), name="maintenance")
    finished = sim.run(sim.process(watch_order(sim, output)))

    print(f"Order of {ORDER} parts finished at t={finished:.1f}")
    print(f"Repairman: {repairman.stats}")


if __name__ == "__main__":
    main()
