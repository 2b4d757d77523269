import pytest

from event_registry.events import EmittedEvent, EventRegistry


def test_create_is_idempotent(registry):
    registry.create("x")
    registry.create("x")
    assert registry.has_event("x")
    assert registry.event_names() == ["x"]
    assert registry.observers("x") == ()


def test_create_keeps_existing_callbacks(registry, calls):
    cb = calls.cb("a")
    registry.observe("x", cb, auto_create=True)
    registry.create("x")
    assert registry.observers("x") == (cb,)


def test_observe_unknown_event_returns_none(registry, calls):
    assert registry.observe("x", calls.cb("a")) is None
    assert not registry.has_event("x")


def test_observe_auto_create_registers_and_delivers(registry, calls):
    cb = calls.cb("a")
    assert registry.observe("x", cb, auto_create=True) is cb
    assert registry.has_event("x")

    registry.emit("x", {"k": 1})
    assert calls == [("a", "x", EmittedEvent(type="x", args={"k": 1}))]


def test_observe_rejects_non_callable(registry):
    registry.create("x")
    with pytest.raises(TypeError):
        registry.observe("x", "not a function")


def test_emit_preserves_registration_order(registry, calls):
    registry.create("x")
    registry.observe("x", calls.cb("first"))
    registry.observe("x", calls.cb("second"))
    registry.emit("x", 42)
    assert [tag for tag, _, _ in calls] == ["first", "second"]
    assert all(event.args == 42 for _, _, event in calls)


def test_emit_without_data_gives_empty_args(registry, calls):
    registry.observe("x", calls.cb("a"), auto_create=True)
    registry.emit("x")
    _, _, event = calls[0]
    assert event.type == "x"
    assert event.args == {}
    assert event.args is not None


def test_emit_keeps_falsy_data(registry, calls):
    registry.observe("x", calls.cb("a"), auto_create=True)
    registry.emit("x", 0)
    registry.emit("x", [])
    assert [event.args for _, _, event in calls] == [0, []]


def test_emit_builds_fresh_event_each_time(registry, calls):
    registry.observe("x", calls.cb("a"), auto_create=True)
    registry.emit("x")
    registry.emit("x")
    assert calls[0][2] is not calls[1][2]


def test_emit_unknown_event_is_noop(registry):
    registry.emit("missing", {"k": 1})
    assert not registry.has_event("missing")


def test_unobserve_removes_only_matching_callback(registry, calls):
    cb1 = registry.observe("x", calls.cb("one"), auto_create=True)
    cb2 = registry.observe("x", calls.cb("two"))
    assert registry.unobserve("x", cb1) is True
    assert registry.observers("x") == (cb2,)

    registry.emit("x")
    assert [tag for tag, _, _ in calls] == ["two"]


def test_unobserve_removes_every_registration(registry, calls):
    cb = calls.cb("a")
    other = calls.cb("b")
    registry.observe("x", cb, auto_create=True)
    registry.observe("x", other)
    registry.observe("x", cb)
    registry.unobserve("x", cb)
    assert registry.observers("x") == (other,)


def test_unobserve_unregistered_callback(registry, calls):
    registry.create("x")
    kept = registry.observe("x", calls.cb("a"))
    assert registry.unobserve("x", calls.cb("a")) is True
    assert registry.observers("x") == (kept,)
    assert registry.unobserve("y", kept) is False


def test_unobserve_matches_identity_not_behavior(registry):
    seen = []
    registry.create("x")
    registry.observe("x", lambda name, event: seen.append(name))
    registry.unobserve("x", lambda name, event: seen.append(name))
    registry.emit("x")
    assert seen == ["x"]


def test_unobserve_lambda_via_returned_handle(registry):
    seen = []
    handle = registry.observe("x", lambda name, event: seen.append(name), auto_create=True)
    registry.unobserve("x", handle)
    registry.emit("x")
    assert seen == []


def test_unobserve_bound_method(registry):
    class Listener:
        def __init__(self):
            self.seen = []

        def handle(self, name, event):
            self.seen.append(event.args)

    first, second = Listener(), Listener()
    registry.observe("x", first.handle, auto_create=True)
    registry.observe("x", second.handle)
    registry.unobserve("x", first.handle)
    registry.emit("x", "payload")
    assert first.seen == []
    assert second.seen == ["payload"]


def test_remove_deletes_event_and_callbacks(registry, calls):
    registry.observe("x", calls.cb("a"), auto_create=True)
    registry.remove("x")
    assert not registry.has_event("x")
    registry.emit("x")
    assert calls == []
    assert registry.observe("x", calls.cb("a")) is None


def test_remove_unknown_event_is_noop(registry):
    registry.remove("missing")
    assert registry.event_names() == []


def test_remove_leaves_silence_untouched(registry):
    registry.create("x")
    registry.silence("x")
    registry.remove("x")
    assert registry.is_silenced("x")


def test_callback_mutation_during_emit_uses_snapshot(registry, calls):
    late = calls.cb("late")
    second = calls.cb("second")

    def first(name, event):
        calls.append(("first", name, event))
        registry.observe(name, late)
        registry.unobserve(name, second)

    registry.observe("x", first, auto_create=True)
    registry.observe("x", second)
    registry.emit("x")
    assert [tag for tag, _, _ in calls] == ["first", "second"]

    calls.clear()
    registry.emit("x")
    assert [tag for tag, _, _ in calls] == ["first", "late"]


def test_callback_may_emit_other_events(registry, calls):
    registry.observe("inner", calls.cb("inner"), auto_create=True)
    registry.observe("outer", lambda name, event: registry.emit("inner", event.args), auto_create=True)
    registry.emit("outer", "data")
    assert calls == [("inner", "inner", EmittedEvent(type="inner", args="data"))]


def test_registries_are_independent(calls):
    a, b = EventRegistry(), EventRegistry()
    a.observe("x", calls.cb("a"), auto_create=True)
    assert not b.has_event("x")
    b.create("x")
    b.emit("x")
    assert calls == []


def test_on_decorator_registers_function(registry):
    seen = []

    @registry.on("x")
    def handler(name, event):
        seen.append(event.args)

    registry.emit("x", 1)
    assert seen == [1]
    assert registry.observers("x") == (handler,)


def test_on_decorator_without_auto_create(registry):
    with pytest.raises(KeyError):

        @registry.on("x", auto_create=False)
        def handler(name, event):
            pass

    assert not registry.has_event("x")


def test_get_stats(registry, calls):
    registry.observe("x", calls.cb("a"), auto_create=True)
    registry.observe("x", calls.cb("b"))
    registry.create("y")
    registry.silence("z")
    stats = registry.get_stats()
    assert stats["events"] == 2
    assert stats["total_callbacks"] == 2
    assert stats["silenced"] == 1
    assert stats["failures"] == 0
    assert stats["handler_errors"] == "raise"
