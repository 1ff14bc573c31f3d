"""Unit tests for Store."""

import pytest

from dessim import CapacityExceeded, OverflowPolicy, Store, StoreStats


class TestStoreBasics:
    def test_put_then_get_fifo(self, sim):
        store = Store(sim)
        for item in ("a", "b", "c"):
            store.put(item)
        gets = [store.get() for _ in range(3)]
        assert [g.value for g in gets] == ["a", "b", "c"]
        assert len(store) == 0

    def test_items_view(self, sim):
        store = Store(sim)
        store.put(1)
        store.put(2)
        assert store.items == (1, 2)
        assert store.level == 2

    def test_get_waits_for_item(self, sim):
        store = Store(sim)
        log = []

        def consumer(sim):
            item = yield store.get()
            log.append((sim.now, item))

        def producer(sim):
            yield sim.timeout(4)
            yield store.put("widget")

        sim.process(consumer(sim))
        sim.process(producer(sim))
        sim.run()
        assert log == [(4, "widget")]

    def test_put_blocks_when_full(self, sim):
        store = Store(sim, capacity=1)
        first = store.put("first")
        second = store.put("second")
        assert first.triggered
        assert not second.triggered

        assert store.get().value == "first"
        assert second.triggered
        assert store.items == ("second",)

    def test_zero_capacity_store_blocks_all_puts(self, sim):
        store = Store(sim, capacity=0)
        put = store.put("x")
        assert not put.triggered


class TestFilteredGet:
    def test_takes_oldest_match(self, sim):
        store = Store(sim)
        for item in (1, 2, 3, 4):
            store.put(item)
        get = store.get(lambda item: item % 2 == 0)
        assert get.value == 2
        assert store.items == (1, 3, 4)

    def test_unmatched_filter_does_not_block_later_gets(self, sim):
        store = Store(sim)
        picky = store.get(lambda item: item == "B")
        anything = store.get()
        store.put("A")

        assert not picky.triggered
        assert anything.value == "A"

        store.put("B")
        assert picky.value == "B"

    def test_gets_served_in_arrival_order(self, sim):
        store = Store(sim)
        first = store.get()
        second = store.get()
        store.put("x")
        assert first.triggered
        assert not second.triggered

    def test_cancel_pending_get(self, sim):
        store = Store(sim)
        get = store.get()
        get.cancel()
        store.put("x")
        assert not get.triggered
        assert store.items == ("x",)


class TestStoreOverflow:
    def test_raise_policy(self, sim):
        store = Store(sim, capacity=1, overflow=OverflowPolicy.RAISE)
        store.put("a")
        with pytest.raises(CapacityExceeded, match="full"):
            store.put("b")


class TestStoreStats:
    def test_stats(self, sim):
        store = Store(sim, capacity=2, name="shelf")
        store.put("a")
        store.put("b")
        store.put("c")
        store.get()

        stats = store.stats
        assert isinstance(stats, StoreStats)
        assert stats.name == "shelf"
        assert stats.items_put == 3
        assert stats.items_got == 1
        assert stats.level == 2
        assert stats.contentions == 1
        assert stats.queued == 0


class TestStorePriorities:
    def test_lower_priority_get_takes_item_first(self, sim):
        store = Store(sim)
        normal = store.get()
        urgent = store.get(priority=-1)
        store.put("x")

        assert urgent.triggered
        assert not normal.triggered

    def test_lower_priority_put_stored_first(self, sim):
        store = Store(sim, capacity=1)
        store.put("first")
        late = store.put("late")
        vip = store.put("vip", priority=-1)
        store.get()

        assert vip.triggered
        assert not late.triggered
        assert store.items == ("vip",)

    def test_priority_and_filter_combine(self, sim):
        store = Store(sim)
        picky = store.get(lambda item: item == "b", priority=-1)
        anything = store.get()
        store.put("a")

        assert anything.triggered
        assert not picky.triggered
        store.put("b")
        assert picky.triggered
