from launcher import metrics
from launcher.eventbus import EventBus, emit as bus_emit, subscribe
from launcher.events import ModuleInstalled, RuntimeStopped, emit, on


def test_eventbus_basic_dispatch():
    got = []
    subscribe("TestEvent", lambda p: got.append(p["value"]))
    subscribe("TestEvent", lambda p: got.append(p["value"] * 2))
    bus_emit("TestEvent", {"value": 3})
    assert sorted(got) == [3, 6]
    counters = metrics.snapshot()["counters"]
    assert any("events_emitted_total" in k for k in counters)


def test_handler_exception_isolated():
    bus = EventBus()
    got = []

    def bad(_p):
        raise RuntimeError("boom")

    bus.subscribe("E", bad)
    bus.subscribe("E", lambda p: got.append(p))
    bus.emit("E", {"x": 1})
    assert len(got) == 1 and "ts" in got[0]
    assert metrics.counter("handler_exceptions_total", {"event": "E"}) == 1


def test_unsubscribe():
    bus = EventBus()
    got = []
    unsub = bus.subscribe("E", got.append)
    unsub()
    unsub()
    bus.emit("E", {})
    assert got == []


def test_typed_event_reaches_bus_and_any_listeners():
    named, any_seen = [], []
    subscribe("ModuleInstalled", named.append)
    unsub = on(lambda name, payload: any_seen.append(name))
    emit(ModuleInstalled(location="/d/a.zip", module_id=4, start_tier=2))
    unsub()
    emit(RuntimeStopped(reason="stopped"))
    assert named[0]["location"] == "/d/a.zip"
    assert named[0]["origin"] == "deploy"
    assert any_seen == ["ModuleInstalled"]
    assert metrics.counter("module_operations_total", {"op": "install"}) == 1
    assert metrics.counter("runtime_stops_total", {"reason": "stopped"}) == 1


def test_metrics_snapshot_shape():
    metrics.inc("c_total", {"b": 2, "a": 1})
    metrics.observe("lat_ms", 3.0)
    metrics.observe("lat_ms", 1.0)
    snap = metrics.snapshot()
    assert snap["counters"]["c_total{a=1,b=2}"] == 1
    hist = snap["histograms"]["lat_ms"]
    assert hist["count"] == 2 and hist["min"] == 1.0 and hist["last"] == 1.0
