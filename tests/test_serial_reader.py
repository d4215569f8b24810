import pytest
import serial

from bridge.errors import TransportError
from bridge.serial_reader import SerialLineReader


class FakeSerial:
    """Replays canned byte lines, then reports the device as unplugged."""

    def __init__(self, lines, **kwargs):
        self.lines = list(lines)
        self.kwargs = kwargs
        self.closed = False

    def readline(self):
        if self.lines:
            return self.lines.pop(0)
        raise serial.SerialException("device disconnected")

    def close(self):
        self.closed = True


def factory_for(lines, created):
    def factory(**kwargs):
        port = FakeSerial(lines, **kwargs)
        created.append(port)
        return port
    return factory


def test_open_passes_port_settings():
    created = []
    reader = SerialLineReader('/dev/ttyUSB0', 115200, lambda line: None,
                              serial_factory=factory_for([], created))
    reader.open()

    assert created[0].kwargs == {'port': '/dev/ttyUSB0', 'baudrate': 115200, 'timeout': 1.0}


def test_open_failure_raises_transport_error():
    def broken(**kwargs):
        raise serial.SerialException("could not open port 'COM9'")

    reader = SerialLineReader('COM9', 115200, lambda line: None, serial_factory=broken)

    with pytest.raises(TransportError, match="COM9"):
        reader.open()


def test_lines_are_decoded_stripped_and_delivered_in_order():
    lines = []
    created = []
    reader = SerialLineReader('/dev/ttyUSB0', 115200, lines.append, serial_factory=factory_for([
        b'[DEBUG] boot\r\n',
        b'',
        b'   \r\n',
        b'1,2,3\r\n',
        b'4,5,\xff6\r\n',
    ], created))

    reader.start()
    reader.reader_thread.join(timeout=2)

    assert lines == ['[DEBUG] boot', '1,2,3', '4,5,6']
    assert not reader.is_running()

    reader.stop()
    assert created[0].closed
    assert reader.connection is None
