from cohortkit import InMemoryConfigChannel


def test_get_and_initial_values():
    channel = InMemoryConfigChannel({"a": True})
    assert channel.get("a") is True
    assert channel.get("b") is None


def test_notifies_subscribed_handlers_on_change():
    channel = InMemoryConfigChannel()
    calls = []
    handler = lambda key, value: calls.append((key, value))  # noqa: E731

    channel.subscribe("a", handler)
    channel.subscribe("a", handler)
    channel.set("a", True)
    channel.set("a", True)
    channel.set("b", True)
    channel.set("a", False)
    channel.delete("a")
    channel.delete("a")

    assert calls == [("a", True), ("a", False), ("a", None)]


def test_set_none_deletes():
    channel = InMemoryConfigChannel({"a": True})
    calls = []
    channel.subscribe("a", lambda key, value: calls.append(value))

    channel.set("a", None)

    assert channel.get("a") is None
    assert calls == [None]


def test_unsubscribe():
    channel = InMemoryConfigChannel()
    calls = []
    handler = lambda key, value: calls.append(value)  # noqa: E731

    channel.subscribe("a", handler)
    channel.unsubscribe("a", handler)
    channel.unsubscribe("a", handler)
    channel.set("a", True)

    assert calls == []
    assert channel.handlers("a") == []


def test_failing_handler_does_not_stop_delivery():
    channel = InMemoryConfigChannel()
    calls = []

    channel.subscribe("a", lambda key, value: 1 / 0)
    channel.subscribe("a", lambda key, value: calls.append(value))
    channel.set("a", 1)

    assert calls == [1]


def test_handler_may_unsubscribe_itself():
    channel = InMemoryConfigChannel()
    calls = []

    def once(key, value):
        calls.append(value)
        channel.unsubscribe(key, once)

    channel.subscribe("a", once)
    channel.set("a", 1)
    channel.set("a", 2)

    assert calls == [1]
