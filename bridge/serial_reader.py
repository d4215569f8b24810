import logging
import threading
from typing import Callable, Optional

import serial

from bridge.bridge_config import SERIAL_TIMEOUT
from bridge.errors import TransportError

logger = logging.getLogger(__name__)


class SerialLineReader:
    """Reads newline-terminated text from the glove's serial port on a background thread"""

    def __init__(self, port, baud_rate, line_callback: Callable[[str], None],
                 serial_factory=serial.Serial, timeout=SERIAL_TIMEOUT):
        """
        Initialize the serial reader

        Args:
            port: Device path, e.g. '/dev/ttyUSB0' or 'COM3'
            baud_rate: Serial baud rate
            line_callback: Called with every non-empty decoded line, in arrival order
            serial_factory: Callable building the serial connection (pyserial's Serial by default)
            timeout: readline() timeout in seconds, bounds how long stop() waits
        """
        self.port = port
        self.baud_rate = baud_rate
        self.line_callback = line_callback
        self.serial_factory = serial_factory
        self.timeout = timeout

        self.connection = None
        self.reader_thread: Optional[threading.Thread] = None
        self._running = threading.Event()

    def open(self):
        """
        Open the serial link

        Raises:
            TransportError: If the port cannot be opened
        """
        try:
            self.connection = self.serial_factory(
                port=self.port,
                baudrate=self.baud_rate,
                timeout=self.timeout
            )
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Failed to open {self.port}: {e}") from e
        logger.info("Serial port opened on %s at %d baud", self.port, self.baud_rate)

    def start(self):
        """Open the link if needed and start the reader thread"""
        if self.connection is None:
            self.open()

        self._running.set()
        self.reader_thread = threading.Thread(target=self._read_loop, name='serial-reader', daemon=True)
        self.reader_thread.start()

    def read_line(self) -> Optional[str]:
        """Read one line, returning None on timeout or an empty line"""
        raw = self.connection.readline()
        if not raw:
            return None
        line = raw.decode('utf-8', errors='ignore').strip()
        return line or None

    def _read_loop(self):
        while self._running.is_set():
            try:
                line = self.read_line()
            except (serial.SerialException, OSError) as e:
                logger.error("Serial port error: %s", e)
                self._running.clear()
                break

            if line is not None:
                self.line_callback(line)

    def is_running(self):
        return self.reader_thread is not None and self.reader_thread.is_alive()

    def stop(self):
        """Stop the reader thread and close the link"""
        self._running.clear()
        if self.reader_thread and self.reader_thread.is_alive() \
                and self.reader_thread is not threading.current_thread():
            self.reader_thread.join(timeout=self.timeout * 2)

        if self.connection is not None:
            try:
                self.connection.close()
            except (serial.SerialException, OSError) as e:
                logger.warning("Error closing serial port: %s", e)
            self.connection = None
            logger.info("Serial port closed")
