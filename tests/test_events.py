from agentcost_dashboard.events import EventBus


def test_publish_reaches_subscribers_with_a_copy() -> None:
    bus = EventBus()
    received = []
    bus.subscribe("tokens-refreshed", received.append)

    detail = {"access_token": "abc"}
    bus.publish("tokens-refreshed", detail)
    received[0]["access_token"] = "changed"

    assert detail == {"access_token": "abc"}
    assert bus.listener_count("tokens-refreshed") == 1


def test_unsubscribe_handle_removes_listener() -> None:
    bus = EventBus()
    received = []
    unsubscribe = bus.subscribe("storage", received.append)

    unsubscribe()
    unsubscribe()
    bus.publish("storage", {"key": "user"})

    assert received == []
    assert bus.listener_count("storage") == 0


def test_failing_listener_does_not_stop_others() -> None:
    bus = EventBus()
    received = []

    def broken(detail):
        raise RuntimeError("boom")

    bus.subscribe("token-refresh-failed", broken)
    bus.subscribe("token-refresh-failed", received.append)
    bus.publish("token-refresh-failed")

    assert received == [{}]
