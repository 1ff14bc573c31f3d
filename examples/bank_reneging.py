"""Bank customers who give up when the queue is too slow.

Customers arrive at random and wait for one of the tellers. Each customer has
a patience; if no teller frees up before it runs out, the customer cancels
the request and leaves. Runs several independent replications per staffing
level and prints a summary table.

Run with::

    python examples/bank_reneging.py
"""

from __future__ import annotations

import dessim

CUSTOMERS = 60
MEAN_INTERARRIVAL = 2.0
PATIENCE = (1.0, 6.0)
SERVICE = (2.0, 7.0)


def bank(tellers: int):
    def model(sim: dessim.Simulation, rng):
        counter = dessim.Resource(sim, capacity=tellers, name="tellers", monitor=True)
        outcome = {"served": 0, "reneged": 0}

        def customer(sim, name):
            patience = rng.uniform(*PATIENCE)
            req = counter.request()
            result = yield req | sim.timeout(patience)
            if req not in result:
                req.cancel()
                outcome["reneged"] += 1
                sim.log.info("%s reneged", name)
                return
            yield sim.timeout(rng.uniform(*SERVICE))
            counter.release(req)
            outcome["served"] += 1

        def source(sim):
            for i in range(CUSTOMERS):
                sim.process(customer(sim, f"customer-{i:02d}"), name=f"customer-{i:02d}")
                yield sim.timeout(rng.expovariate(1 / MEAN_INTERARRIVAL))

        sim.process(source(sim))
        return lambda: outcome["reneged"] / CUSTOMERS

    return model


def main() -> None:
    dessim.configure_from_env()
    for tellers in (1, 2, 3):
        frame = dessim.results_frame(dessim.run_replications(bank(tellers), range(20), max_workers=4))
        print(
            f"tellers={tellers}  reneged={frame['value'].mean():.1%}  "
            f"(min {frame['value'].min():.1%}, max {frame['value'].max():.1%})"
        )


if __name__ == "__main__":
    main()
