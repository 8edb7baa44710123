from boost_host.core.event_bus import EventBus


def test_event_bus_subscribe_publish():
    bus = EventBus()
    got = []

    def handler(data):
        got.append(data)

    bus.subscribe("t", handler)
    bus.publish("t", {"a": 1})
    bus.publish("t", {"b": 2})

    assert got == [{"a": 1}, {"b": 2}]


def test_subscription_handle_unsubscribes_once():
    bus = EventBus()
    got = []

    sub = bus.subscribe("t", got.append)
    bus.publish("t", 1)
    sub.unsubscribe()
    sub.unsubscribe()
    bus.publish("t", 2)

    assert got == [1]
    assert sub.active is False
    assert bus.subscriber_count("t") == 0


def test_handle_is_callable():
    bus = EventBus()
    got = []
    unsubscribe = bus.subscribe("t", got.append)
    unsubscribe()
    bus.publish("t", 1)
    assert got == []


def test_unsubscribe_later_handler_during_publish_skips_it():
    bus = EventBus()
    got = []

    def first(data):
        got.append("first")
        second_sub.unsubscribe()

    bus.subscribe("t", first)
    second_sub = bus.subscribe("t", lambda d: got.append("second"))

    bus.publish("t", None)
    bus.publish("t", None)

    assert got == ["first", "first"]


def test_subscribe_during_publish_takes_effect_next_time():
    bus = EventBus()
    got = []

    def adder(data):
        got.append(("adder", data))
        if data == 1:
            bus.subscribe("t", lambda d: got.append(("late", d)))

    bus.subscribe("t", adder)
    bus.publish("t", 1)
    bus.publish("t", 2)

    assert got == [("adder", 1), ("adder", 2), ("late", 2)]


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    got = []

    def boom(data):
        raise RuntimeError("boom")

    bus.subscribe("t", boom)
    bus.subscribe("t", got.append)
    bus.publish("t", 5)

    assert got == [5]


def test_unsubscribe_by_handler():
    bus = EventBus()
    got = []
    bus.subscribe("t", got.append)
    bus.subscribe("u", got.append)

    bus.unsubscribe("t", got.append)
    bus.publish("t", 1)
    bus.publish("u", 2)

    assert got == [2]
