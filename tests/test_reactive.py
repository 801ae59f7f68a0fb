import pytest

from spangraph.reactive import Computed, Scope, Signal


def test_signal_notifies_in_subscription_order():
    sig = Signal(0)
    seen = []
    sig.subscribe(lambda v: seen.append(("a", v)))
    sig.subscribe(lambda v: seen.append(("b", v)))

    sig.set(1)

    assert seen == [("a", 1), ("b", 1)]
    assert sig.get() == 1 == sig.value


def test_signal_same_object_does_not_notify_but_equal_copy_does():
    payload = {"x": 1}
    sig = Signal(payload)
    seen = []
    sig.subscribe(seen.append)

    sig.set(payload)
    assert seen == []

    sig.set({"x": 1})
    assert seen == [{"x": 1}]


def test_subscribe_immediate_and_unsubscribe():
    sig = Signal("first")
    seen = []
    unsubscribe = sig.subscribe(seen.append, immediate=True)
    assert seen == ["first"]

    unsubscribe()
    unsubscribe()
    sig.set("second")
    assert seen == ["first"]
    assert sig.subscriber_count() == 0


def test_computed_is_lazy_and_cached():
    a = Signal(2)
    b = Signal(3)
    calls = []

    def product():
        calls.append(1)
        return a.get() * b.get()

    c = Computed(product, [a, b])
    assert calls == []
    assert c.get() == 6
    assert c.get() == 6
    assert len(calls) == 1

    a.set(5)
    assert c.dirty
    assert len(calls) == 1
    assert c.get() == 15
    assert len(calls) == 2


def test_computed_only_tracks_declared_dependencies():
    declared = Signal(1)
    undeclared = Signal(10)
    c = Computed(lambda: declared.get() + undeclared.get(), [declared])
    assert c.get() == 11

    undeclared.set(20)
    assert c.get() == 11

    declared.set(2)
    assert c.get() == 22


def test_computed_pushes_new_value_to_subscribers():
    src = Signal("a")
    upper = Computed(lambda: src.get().upper(), [src])
    chained = Computed(lambda: upper.get() + "!", [upper])
    seen = []
    chained.subscribe(seen.append, immediate=True)

    src.set("b")

    assert seen == ["A!", "B!"]


def test_computed_dispose_stops_tracking():
    src = Signal(1)
    c = Computed(lambda: src.get(), [src])
    assert src.subscriber_count() == 1
    c.dispose()
    assert src.subscriber_count() == 0


def test_scope_runs_cleanups_once_in_reverse_order():
    order = []
    scope = Scope()
    scope.add(lambda: order.append("first"))
    scope.add(lambda: order.append("second"))

    scope.close()
    scope.close()

    assert order == ["second", "first"]
    assert scope.closed


def test_scope_context_manager_closes_on_error():
    order = []
    with pytest.raises(KeyError):
        with Scope() as scope:
            scope.add(lambda: order.append("cleaned"))
            raise KeyError("boom")
    assert order == ["cleaned"]


def test_scope_runs_every_cleanup_and_reraises_first_error():
    order = []

    def fail(msg):
        def _f():
            order.append(msg)
            raise RuntimeError(msg)
        return _f

    scope = Scope()
    scope.add(lambda: order.append("last"))
    scope.add(fail("second"))
    scope.add(fail("first"))

    with pytest.raises(RuntimeError, match="first"):
        scope.close()
    assert order == ["first", "second", "last"]


def test_add_on_closed_scope_runs_immediately():
    scope = Scope()
    scope.close()
    ran = []
    scope.add(lambda: ran.append(True))
    assert ran == [True]
