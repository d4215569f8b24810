import json

import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError

from bridge.sensor_reading import SensorReading
from conftest import make_reading
from detection.connection_manager import ConnectionManager, ConnectionState


class FakeClient:
    """Stands in for socketio.Client; the test decides whether connect succeeds."""

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.handlers = {}
        self.connected = False
        self.connect_calls = []

    def on(self, event, handler):
        self.handlers[event] = handler

    def connect(self, url, transports=None):
        self.connect_calls.append(url)
        if not self.succeed:
            raise SocketConnectionError("Connection refused")
        self.connected = True
        self.handlers['connect']()

    def disconnect(self):
        if self.connected:
            self.connected = False
            self.handlers['disconnect']()

    def drop(self):
        """Simulate the bridge going away."""
        self.connected = False
        self.handlers['disconnect']('transport close')

    def deliver(self, message):
        self.handlers['sensor_data'](message)


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.daemon = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


class Harness:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.clients = []
        self.timers = []
        self.readings = []
        self.manager = ConnectionManager(
            'http://bridge:8080',
            self.readings.append,
            client_factory=self.make_client,
            timer_factory=self.make_timer,
        )

    def make_client(self):
        succeed = self.outcomes.pop(0) if self.outcomes else True
        client = FakeClient(succeed)
        self.clients.append(client)
        return client

    def make_timer(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def start(self):
        """Start the manager and run the first connect attempt."""
        self.manager.start()
        self.timers[0].fire()


def wire(reading):
    return reading.to_json()


def test_start_returns_before_connecting():
    h = Harness([True])
    h.manager.start()

    assert h.clients == []
    assert h.manager.state is ConnectionState.CONNECTING
    assert h.timers[0].delay == 0
    assert h.timers[0].started and h.timers[0].daemon

    h.timers[0].fire()

    assert h.manager.state is ConnectionState.OPEN
    assert h.manager.is_open()
    assert h.clients[0].connect_calls == ['http://bridge:8080']
    assert len(h.timers) == 1
    assert h.manager.reconnect_attempts == 0


def test_start_twice_schedules_one_attempt():
    h = Harness([True])
    h.manager.start()
    h.manager.start()

    assert len(h.timers) == 1


def test_messages_are_parsed_and_forwarded_in_order():
    h = Harness([True])
    h.start()

    for ts in (1, 2, 3):
        h.clients[0].deliver(wire(make_reading(captured_at=ts)))

    assert [r.captured_at for r in h.readings] == [1, 2, 3]
    assert all(isinstance(r, SensorReading) for r in h.readings)


def test_unparseable_message_is_discarded_without_closing(caplog):
    h = Harness([True])
    h.start()

    h.clients[0].deliver("{not json")
    h.clients[0].deliver(wire(make_reading(captured_at=9)))

    assert [r.captured_at for r in h.readings] == [9]
    assert h.manager.is_open()
    assert h.manager.messages_discarded == 1
    assert "Data parsing error" in caplog.text


@pytest.mark.parametrize("payload", [
    {'flex': [1, 2, 3, 4], 'touch': [1, 2, 3, 4, 5, 6]},
    {'touch': [], 'accel': []},
    [1, 2, 3],
    "just a string",
])
def test_message_missing_groups_is_discarded(payload):
    h = Harness([True])
    h.start()

    h.clients[0].deliver(json.dumps(payload))

    assert h.readings == []
    assert h.manager.messages_discarded == 1


def test_failed_connect_schedules_retry_after_two_seconds():
    h = Harness([False, True])
    h.start()

    assert h.manager.state is ConnectionState.CLOSED
    assert len(h.timers) == 2
    assert h.timers[1].delay == 2.0
    assert h.timers[1].started and h.timers[1].daemon

    h.timers[1].fire()

    assert h.manager.is_open()
    assert h.manager.reconnect_attempts == 1


def test_retries_forever():
    h = Harness([False] * 25)
    h.start()

    for i in range(1, 26):
        h.timers[i].fire()

    assert h.manager.reconnect_attempts == 25
    assert h.manager.is_open()
    assert len(h.clients) == 26


def test_lost_connection_reconnects_with_fresh_client():
    h = Harness([True, True])
    h.start()

    h.clients[0].drop()
    assert h.manager.state is ConnectionState.CLOSED
    h.timers[1].fire()

    assert len(h.clients) == 2
    assert h.manager.is_open()

    # Late messages from the dead client are ignored
    h.clients[0].deliver(wire(make_reading(captured_at=1)))
    h.clients[1].deliver(wire(make_reading(captured_at=2)))
    assert [r.captured_at for r in h.readings] == [2]


def test_stop_closes_connection_without_reconnecting():
    h = Harness([True])
    h.start()

    h.manager.stop()

    assert not h.clients[0].connected
    assert h.manager.state is ConnectionState.CLOSED
    assert len(h.timers) == 1


def test_stop_cancels_pending_reconnect():
    h = Harness([False])
    h.start()
    timer = h.timers[1]

    h.manager.stop()
    timer.callback()  # a timer that raced the cancel

    assert timer.cancelled
    assert len(h.clients) == 1
    assert len(h.timers) == 2
    assert h.manager.get_status()['state'] == 'closed'


def test_stop_before_first_attempt_never_connects():
    h = Harness([True])
    h.manager.start()

    h.manager.stop()
    h.timers[0].callback()

    assert h.timers[0].cancelled
    assert h.clients == []


@pytest.mark.parametrize("message", [
    '{"flex": [1, 2, 3, 4], "touch": [1, 2, 3, 4, 5, 6], "accel": [1, 2, 3], "timestamp": Infinity}',
    '{"flex": [1, 2, 3, 4], "touch": [1, 2, 3, 4, 5, 6], "accel": [1, NaN, 3], "timestamp": 5}',
    '{"flex": ["a", 2, 3, 4], "touch": [1, 2, 3, 4, 5, 6], "accel": [1, 2, 3], "timestamp": 5}',
    '{"flex": [1, 2, 3, 4], "touch": [1, 2, 3, 4, 5, 6], "accel": [1, 2, 3], "timestamp": "soon"}',
])
def test_message_with_bad_values_is_discarded_without_closing(message, caplog):
    h = Harness([True])
    h.start()

    h.clients[0].deliver(message)
    h.clients[0].deliver(wire(make_reading(captured_at=9)))

    assert [r.captured_at for r in h.readings] == [9]
    assert h.manager.is_open()
    assert h.manager.messages_discarded == 1
    assert "Invalid sensor data format" in caplog.text
