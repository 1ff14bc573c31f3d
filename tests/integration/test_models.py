"""Small complete models exercising processes and resources together."""

import random
from dataclasses import dataclass

from dessim import (
    Container,
    Interrupt,
    Preempted,
    PreemptiveResource,
    Resource,
    Simulation,
    StopSimulation,
    Store,
    results_frame,
    run_replications,
)


@dataclass(frozen=True)
class Product:
    kind: str
    serial: str


class TestMachinesAndCombiner:
    """Machines fill a store with parts; a combiner assembles one of each."""

    def _build(self, sim, prod_times, target):
        store = Store(sim, name="warehouse")
        assembled = Container(sim, capacity=target, name="assembled")
        produced = {kind: 0 for kind in prod_times}

        def machine(sim, kind, prod_time):
            while True:
                yield sim.timeout(prod_time)
                produced[kind] += 1
                yield store.put(Product(kind, f"{kind}-{produced[kind]:04d}"))

        def combiner(sim):
            while True:
                requests = [store.get(lambda p, kind=kind: p.kind == kind) for kind in prod_times]
                parts = yield sim.all_of(requests)
                assert sorted(p.kind for p in parts.values()) == sorted(prod_times)
                yield assembled.put(1)
                if assembled.level == assembled.capacity:
                    raise StopSimulation(sim.now)

        for kind, prod_time in prod_times.items():
            sim.process(machine(sim, kind, prod_time), name=f"machine-{kind}")
        sim.process(combiner(sim), name="combiner")
        return store, assembled, produced

    def test_slowest_machine_sets_the_pace(self):
        sim = Simulation()
        prod_times = {"nut": 1, "bolt": 2, "rivet": 4, "beam": 6}
        store, assembled, produced = self._build(sim, prod_times, target=10)

        finished_at = sim.run()

        assert finished_at == 60
        assert assembled.level == 10
        assert produced["beam"] == 10
        assert produced["nut"] == 60
        # Faster machines have parts left over.
        assert sum(1 for p in store.items if p.kind == "nut") == 50


class TestSandwichShop:
    """Clients renege when staff does not become available within their patience."""

    def _shop(self, sim, rng, staff=1, clients=40, patience=5):
        counter = Resource(sim, capacity=staff, name="staff", monitor=True)
        stats = {"served": 0, "reneged": 0}

        def client(sim):
            req = counter.request()
            result = yield req | sim.timeout(patience)
            if req in result:
                yield sim.timeout(rng.uniform(2, 6))
                counter.release(req)
                stats["served"] += 1
            else:
                req.cancel()
                stats["reneged"] += 1

        def arrivals(sim):
            for _ in range(clients):
                sim.process(client(sim))
                yield sim.timeout(rng.expovariate(1 / 2))

        sim.process(arrivals(sim))
        return counter, stats

    def test_every_client_is_served_or_reneges(self):
        sim = Simulation()
        counter, stats = self._shop(sim, random.Random(8))
        sim.run()

        assert stats["served"] + stats["reneged"] == 40
        assert counter.queue == []
        assert counter.count == 0
        assert counter.stats.cancellations == stats["reneged"]
        assert counter.stats.grants == stats["served"]

    def test_waits_never_exceed_patience(self):
        sim = Simulation()
        counter, _ = self._shop(sim, random.Random(3), patience=5)
        sim.run()
        assert counter.wait_data.max() <= 5 + 1e-9

    def test_more_staff_fewer_reneges(self):
        def model(staff):
            def build(sim, rng):
                _, stats = self._shop(sim, rng, staff=staff)
                return lambda: stats["reneged"]

            return build

        one = results_frame(run_replications(model(1), range(10)))
        three = results_frame(run_replications(model(3), range(10)))
        assert three["value"].mean() < one["value"].mean()


class TestPuppies:
    """Humans interrupt puppies at random; puppies react to the cause."""

    def test_each_pickup_is_delivered_once(self):
        sim = Simulation()
        rng = random.Random(42)
        activities = {"eat": (1, 5), "sleep": (5, 30), "play": (5, 10)}
        pickups = {"Django": [], "Zappa": []}
        picked = {"Anais": 0, "Pieter": 0}

        def puppy(sim, name):
            state = "eat"
            while True:
                try:
                    yield sim.timeout(rng.randint(*activities[state]))
                    state = rng.choice([s for s in activities if s != state])
                except Interrupt as interrupt:
                    pickups[name].append((sim.now, interrupt.cause))

        def human(sim, name, litter):
            while True:
                yield sim.timeout(rng.randint(5, 20))
                picked[name] += 1
                cause = yield rng.choice(litter).interrupt(name)
                assert cause == name

        litter = [sim.process(puppy(sim, name), name=name) for name in pickups]
        for name in picked:
            sim.process(human(sim, name, litter), name=name)
        sim.run(until=100)

        delivered = [cause for events in pickups.values() for _, cause in events]
        assert len(delivered) == sum(picked.values())
        assert set(delivered) <= set(picked)
        assert all(p.is_alive for p in litter)


class TestMachineRepair:
    """Urgent jobs preempt routine maintenance on a single repairman."""

    def test_routine_work_resumes_after_preemption(self):
        sim = Simulation()
        repairman = PreemptiveResource(sim, capacity=1, name="repairman")
        log = []

        def routine(sim, work):
            while work > 0:
                with repairman.request(priority=2) as req:
                    yield req
                    start = sim.now
                    try:
                        yield sim.timeout(work)
                        work = 0
                    except Interrupt as interrupt:
                        assert isinstance(interrupt.cause, Preempted)
                        work -= sim.now - start
                        log.append(("routine preempted", sim.now, work))
            log.append(("routine done", sim.now))

        def breakdown(sim, at, repair):
            yield sim.timeout(at)
            with repairman.request(priority=1) as req:
                yield req
                log.append(("repair started", sim.now))
                yield sim.timeout(repair)

        sim.process(routine(sim, 10))
        sim.process(breakdown(sim, 3, 4))
        sim.run()

        assert log == [
            ("routine preempted", 3, 7),
            ("repair started", 3),
            ("routine done", 14),
        ]
        assert repairman.stats.preemptions == 1
