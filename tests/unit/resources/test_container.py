"""Unit tests for Container."""

import logging

import pytest

from dessim import (
    CapacityExceeded,
    Container,
    ContainerStats,
    InvalidCancellation,
    OverflowPolicy,
    Simulation,
    SimulationConfig,
)


class TestContainerCreation:
    def test_defaults(self, sim):
        c = Container(sim)
        assert c.level == 0
        assert c.capacity == float("inf")

    def test_init_level(self, sim):
        assert Container(sim, capacity=10, init=4).level == 4

    def test_negative_init_raises(self, sim):
        with pytest.raises(ValueError, match="init must be >= 0"):
            Container(sim, capacity=10, init=-1)

    def test_init_above_capacity_raises(self, sim):
        with pytest.raises(ValueError, match="exceeds capacity"):
            Container(sim, capacity=10, init=11)


class TestPutAndGet:
    def test_immediate_put_and_get(self, sim):
        c = Container(sim, capacity=10)
        put = c.put(4)
        get = c.get(3)
        assert put.triggered
        assert get.triggered
        assert get.value == 3
        assert c.level == 1

    def test_get_waits_for_level(self, sim):
        c = Container(sim, capacity=100)
        log = []

        def consumer(sim):
            amount = yield c.get(30)
            log.append((sim.now, amount))

        def producer(sim):
            for _ in range(4):
                yield sim.timeout(1)
                yield c.put(10)

        sim.process(consumer(sim))
        sim.process(producer(sim))
        sim.run()
        assert log == [(3, 30)]
        assert c.level == 10

    def test_put_blocks_when_full(self, sim):
        c = Container(sim, capacity=10, init=8)
        log = []

        def producer(sim):
            yield c.put(5)
            log.append(("put done", sim.now))

        def consumer(sim):
            yield sim.timeout(4)
            yield c.get(3)
            log.append(("got", sim.now))

        sim.process(producer(sim))
        sim.process(consumer(sim))
        sim.run()
        assert log == [("got", 4), ("put done", 4)]
        assert c.level == 10

    def test_get_queue_is_strict_fifo(self, sim):
        c = Container(sim, capacity=10)
        big = c.get(8)
        small = c.get(1)
        c.put(2)
        assert not big.triggered
        assert not small.triggered
        c.put(6)
        assert big.triggered
        assert small.triggered is False
        assert c.level == 0

    def test_cancelling_head_unblocks_queue(self, sim):
        c = Container(sim, capacity=10, init=3)
        big = c.get(8)
        small = c.get(2)
        assert not small.triggered
        big.cancel()
        assert small.triggered
        assert c.level == 1

    def test_cancel_granted_raises(self, sim):
        c = Container(sim, capacity=10, init=3)
        get = c.get(1)
        with pytest.raises(InvalidCancellation):
            get.cancel()


class TestAmountValidation:
    def test_non_positive_amount_raises(self, sim):
        c = Container(sim, capacity=10)
        with pytest.raises(ValueError, match="amount must be > 0"):
            c.put(0)
        with pytest.raises(ValueError):
            c.get(-1)

    def test_amount_above_capacity_raises(self, sim):
        c = Container(sim, capacity=10)
        with pytest.raises(CapacityExceeded):
            c.put(11)
        with pytest.raises(CapacityExceeded):
            c.get(11)


class TestOverflowPolicy:
    def test_raise_policy(self, sim):
        c = Container(sim, capacity=10, init=8, overflow=OverflowPolicy.RAISE)
        with pytest.raises(CapacityExceeded, match="does not fit"):
            c.put(3)
        c.put(2)
        assert c.level == 10

    def test_policy_from_config(self):
        sim = Simulation(config=SimulationConfig(overflow=OverflowPolicy.RAISE))
        c = Container(sim, capacity=1, init=1)
        assert c.overflow is OverflowPolicy.RAISE
        with pytest.raises(CapacityExceeded):
            c.put(1)


class TestContainerStats:
    def test_stats_and_monitoring(self, sim):
        c = Container(sim, capacity=10, name="tank", monitor=True)

        def flow(sim):
            yield c.put(6)
            yield sim.timeout(2)
            yield c.get(4)

        sim.process(flow(sim))
        sim.run()

        stats = c.stats
        assert isinstance(stats, ContainerStats)
        assert stats.total_put == 6
        assert stats.total_got == 4
        assert stats.level == 2
        assert stats.grants == 2
        assert c.level_data.values == [(0, 0), (0, 6), (2, 2)]


class TestContainerPriorities:
    def test_lower_priority_get_served_first(self, sim):
        c = Container(sim, capacity=10)
        routine = c.get(3)
        urgent = c.get(3, priority=-1)
        assert c.get_queue == [urgent, routine]

        c.put(3)
        assert urgent.triggered
        assert not routine.triggered

    def test_equal_priorities_keep_issue_order(self, sim):
        c = Container(sim, capacity=10)
        gets = [c.get(1, priority=2) for _ in range(3)]
        assert c.get_queue == gets

    def test_lower_priority_put_applied_first(self, sim):
        c = Container(sim, capacity=5, init=5)
        low = c.put(2, priority=1)
        high = c.put(3, priority=0)
        c.get(3)

        assert high.triggered
        assert not low.triggered
        assert c.level == 5


class TestContainerLogging:
    def test_applied_puts_and_gets_logged_at_debug(self, sim, caplog):
        tank = Container(sim, capacity=10, name="tank")
        with caplog.at_level(logging.DEBUG, logger="dessim"):
            tank.put(3)
            tank.get(2)

        messages = [r.getMessage() for r in caplog.records]
        assert "[tank] put 3, level=3" in messages
        assert "[tank] got 2, level=1" in messages
