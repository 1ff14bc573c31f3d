"""Unit tests for trace recorders."""

from dessim import (
    InMemoryTraceRecorder,
    Interrupt,
    NullTraceRecorder,
    PreemptiveResource,
    Resource,
    Simulation,
)


class TestInMemoryTraceRecorder:
    def test_record_minimal_span(self):
        recorder = InMemoryTraceRecorder()
        recorder.record(time=1.0, kind="heap.push")
        assert recorder.spans == [{"time": 1.0, "kind": "heap.push"}]

    def test_record_with_event_and_data(self):
        recorder = InMemoryTraceRecorder()
        recorder.record(time=2.0, kind="process.resume", event_id=3, event_type="worker", on=1)
        (span,) = recorder.spans
        assert span["event_id"] == 3
        assert span["event_type"] == "worker"
        assert span["data"] == {"on": 1}

    def test_filters(self):
        recorder = InMemoryTraceRecorder()
        recorder.record(time=0, kind="heap.push", event_id=1)
        recorder.record(time=0, kind="event.process", event_id=1)
        recorder.record(time=1, kind="heap.push", event_id=2)

        assert len(recorder.filter_by_kind("heap.push")) == 2
        assert [s["kind"] for s in recorder.filter_by_event(1)] == ["heap.push", "event.process"]

    def test_clear(self):
        recorder = InMemoryTraceRecorder()
        recorder.record(time=0, kind="heap.push")
        recorder.clear()
        assert recorder.spans == []

    def test_to_dataframe_flattens_data(self):
        recorder = InMemoryTraceRecorder()
        recorder.record(time=0, kind="heap.push", event_id=0, event_type="Timeout", at=5, priority=1)
        frame = recorder.to_dataframe()

        assert list(frame["kind"]) == ["heap.push"]
        assert frame.loc[0, "data.at"] == 5
        assert frame.loc[0, "data.priority"] == 1

    def test_empty_dataframe_has_columns(self):
        frame = InMemoryTraceRecorder().to_dataframe()
        assert frame.empty
        assert list(frame.columns) == ["time", "kind"]


class TestRecorderInSimulation:
    def test_interrupt_span(self):
        recorder = InMemoryTraceRecorder()
        sim = Simulation(trace_recorder=recorder)

        def sleeper(sim):
            try:
                yield sim.timeout(5)
            except Exception:
                pass

        victim = sim.process(sleeper(sim))
        sim.run(until=1)
        victim.interrupt("ring")
        sim.run()

        (span,) = recorder.filter_by_kind("process.interrupt")
        assert span["time"] == 1
        assert span["data"]["cause"] == "'ring'"

    def test_fail_span(self):
        recorder = InMemoryTraceRecorder()
        sim = Simulation(trace_recorder=recorder)

        def broken(sim):
            yield sim.timeout(1)
            raise KeyError("x")

        def parent(sim):
            try:
                yield sim.process(broken(sim))
            except KeyError:
                pass

        sim.process(parent(sim))
        sim.run()
        (span,) = recorder.filter_by_kind("process.fail")
        assert span["data"]["error"] == "KeyError"

    def test_null_recorder_is_default(self):
        sim = Simulation()
        assert isinstance(sim.trace_recorder, NullTraceRecorder)
        sim.trace_recorder.record(time=0, kind="anything")

    def test_preemption_interrupt_span_has_typed_fields(self):
        recorder = InMemoryTraceRecorder()
        sim = Simulation(trace_recorder=recorder)
        r = PreemptiveResource(sim, capacity=1, name="crane")

        def holder(sim):
            with r.request(priority=5) as req:
                yield req
                try:
                    yield sim.timeout(10)
                except Interrupt:
                    pass

        def vip(sim):
            yield sim.timeout(2)
            with r.request(priority=0) as req:
                yield req

        sim.process(holder(sim))
        sim.process(vip(sim), name="vip")
        sim.run()

        (span,) = recorder.filter_by_kind("process.interrupt")
        assert span["data"]["cause_type"] == "Preempted"
        assert span["data"]["resource"] == "crane"
        assert span["data"]["usage_since"] == 0
        assert span["data"]["by"] == "vip"

    def test_resource_spans_and_waits(self):
        recorder = InMemoryTraceRecorder()
        sim = Simulation(trace_recorder=recorder)
        desk = Resource(sim, capacity=1, name="desk")

        def user(sim, hold):
            with desk.request() as req:
                yield req
                yield sim.timeout(hold)

        sim.process(user(sim, 4))
        sim.process(user(sim, 1))
        sim.run()

        counts = recorder.kind_counts()
        assert counts["resource.grant"] == 2
        assert counts["resource.queue"] == 1
        assert recorder.waits("desk") == [(0, 0), (4, 4)]
