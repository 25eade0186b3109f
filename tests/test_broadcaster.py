import json
import time

import pytest
from websockets.sync.client import connect

from claw_agent.monitoring.broadcaster import EventBroadcaster
from claw_agent.monitoring.events import portfolio_update_event
from conftest import NOW_MS


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def broadcaster():
    b = EventBroadcaster("127.0.0.1", 0).start()
    yield b
    b.stop()


def test_publish_without_server_is_dropped():
    b = EventBroadcaster("127.0.0.1", 0)

    b.publish(portfolio_update_event({}, NOW_MS))

    assert not b.running
    assert b.bound_port is None


def test_events_fan_out_to_all_clients(broadcaster):
    url = f"ws://127.0.0.1:{broadcaster.bound_port}"
    with connect(url) as c1, connect(url) as c2:
        assert wait_for(lambda: broadcaster.client_count == 2)

        broadcaster.publish(portfolio_update_event({"positions": 0}, NOW_MS))

        for client in (c1, c2):
            message = json.loads(client.recv(timeout=5))
            assert message == {"type": "PORTFOLIO_UPDATE", "portfolioState": {"positions": 0}, "timestamp": NOW_MS}


def test_disconnected_clients_are_removed(broadcaster):
    url = f"ws://127.0.0.1:{broadcaster.bound_port}"
    with connect(url):
        assert wait_for(lambda: broadcaster.client_count == 1)

    assert wait_for(lambda: broadcaster.client_count == 0)
    broadcaster.publish(portfolio_update_event({}, NOW_MS))
    broadcaster.flush()


def test_stop_is_idempotent():
    b = EventBroadcaster("127.0.0.1", 0).start()

    b.stop()
    b.stop()

    assert not b.running
