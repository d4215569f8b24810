import json

import pytest
import serial

from bridge.reading_broadcaster import CallbackSink
from bridge.sensor_bridge import SensorBridge
from bridge.sensor_server import SocketClientSink

VALID_LINE = "2100,2200,1900,2050,10,50,50,50,10,80,1.5,-0.25,9.81"


class IdleSerial:
    def __init__(self, **kwargs):
        pass

    def readline(self):
        return b''

    def close(self):
        pass


@pytest.fixture
def bridge():
    return SensorBridge(port='/dev/null', baud_rate=9600, serial_factory=IdleSerial)


def test_valid_line_is_published(bridge):
    received = []
    bridge.broadcaster.subscribe(CallbackSink(received.append))

    assert bridge.handle_line(VALID_LINE) == 1

    message = json.loads(received[0])
    assert message['flex'] == [2100, 2200, 1900, 2050]
    assert message['touch'] == [10, 50, 50, 50, 10, 80]
    assert message['accel'] == [1.5, -0.25, 9.81]
    assert isinstance(message['timestamp'], int)


def test_invalid_and_debug_lines_are_not_published(bridge):
    received = []
    bridge.broadcaster.subscribe(CallbackSink(received.append))

    assert bridge.handle_line("1,2,3") is None
    assert bridge.handle_line("[DEBUG] hello") is None
    assert bridge.handle_line(",".join(["x"] * 13)) is None

    assert received == []
    status = bridge.get_status()
    assert status['frames_rejected'] == 2
    assert status['debug_lines'] == 1
    assert status['readings_published'] == 0


def test_link_open_failure_leaves_bridge_idle(caplog):
    def unavailable(**kwargs):
        raise serial.SerialException("No such file or directory")

    bridge = SensorBridge(port='/dev/ttyMISSING', serial_factory=unavailable)

    assert bridge.start() is False
    assert not bridge.link_open
    assert not bridge.server.is_running()
    assert "Failed to open port" in caplog.text


def test_socket_clients_receive_readings(bridge):
    client = bridge.server.socketio.test_client(bridge.server.app)
    assert client.is_connected()
    assert bridge.broadcaster.subscriber_count() == 1

    status = [m for m in client.get_received() if m['name'] == 'status']
    assert status[0]['args'][0]['clients'] == 1

    bridge.handle_line(VALID_LINE)

    readings = [m for m in client.get_received() if m['name'] == 'sensor_data']
    assert len(readings) == 1
    assert json.loads(readings[0]['args'][0])['flex'] == [2100, 2200, 1900, 2050]

    client.disconnect()
    assert bridge.broadcaster.subscriber_count() == 0
    assert bridge.handle_line(VALID_LINE) == 0


def test_stop_releases_subscribers(bridge):
    bridge.broadcaster.subscribe(CallbackSink(lambda message: None))

    bridge.stop()

    assert bridge.broadcaster.subscriber_count() == 0
    assert not bridge.link_open


def test_stop_tolerates_clients_leaving_during_shutdown(bridge):
    server = bridge.server
    for sid in ('a', 'b', 'c'):
        server.connected_clients.add(sid)
        server.subscriptions[sid] = bridge.broadcaster.subscribe(SocketClientSink(server, sid))

    unsubscribe = bridge.broadcaster.unsubscribe

    def unsubscribe_as_client_leaves(handle):
        # 'c' disconnects on the server thread while stop() is running
        leaving = server.subscriptions.pop('c', None)
        if leaving is not None:
            unsubscribe(leaving)
        return unsubscribe(handle)

    bridge.broadcaster.unsubscribe = unsubscribe_as_client_leaves
    server.stop()

    assert server.subscriptions == {}
    assert server.get_connected_client_count() == 0
    assert bridge.broadcaster.subscriber_count() == 0
