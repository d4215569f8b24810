"""
Reconnecting subscription to the sensor bridge.
Keeps one downstream consumer fed with readings across transient link loss.
"""

import json
import logging
import threading
from enum import Enum
from typing import Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from bridge.bridge_config import SENSOR_EVENT
from bridge.errors import InvalidReadingError
from bridge.sensor_reading import SensorReading
from detection.detection_config import RECONNECT_DELAY_SECONDS

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle: Connecting -> Open -> Closed -> Connecting -> ..."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def _default_client_factory():
    # Reconnection is driven by ConnectionManager, not the client
    return socketio.Client(reconnection=False, logger=False, engineio_logger=False)


class ConnectionManager:
    """
    Maintains a Socket.IO subscription to the bridge and forwards parsed readings.

    Every close or failed attempt schedules a fresh attempt after a fixed delay,
    forever, until stop() is called. Messages are delivered to the consumer on
    the client's thread, in arrival order.
    """

    def __init__(self, url: str, on_reading: Callable[[SensorReading], None],
                 client_factory: Optional[Callable] = None,
                 timer_factory: Callable = threading.Timer,
                 reconnect_delay: float = RECONNECT_DELAY_SECONDS):
        """
        Initialize the connection manager.

        Args:
            url: Bridge endpoint, e.g. 'http://localhost:8080'
            on_reading: Consumer called with each SensorReading
            client_factory: Builds a socketio.Client-compatible object per attempt
            timer_factory: Builds the reconnect timer (threading.Timer signature)
            reconnect_delay: Seconds to wait after a close before reconnecting
        """
        self.url = url
        self.on_reading = on_reading
        self.client_factory = client_factory or _default_client_factory
        self.timer_factory = timer_factory
        self.reconnect_delay = reconnect_delay

        self.state = ConnectionState.CLOSED
        self.client = None
        self.reconnect_timer = None
        self.stopped = True
        self._lock = threading.RLock()

        self.reconnect_attempts = 0
        self.messages_received = 0
        self.messages_discarded = 0

    def start(self) -> None:
        """Enter Connecting; the first attempt runs on a timer thread."""
        with self._lock:
            if not self.stopped:
                return
            self.stopped = False
            timer = self.timer_factory(0, self._connect)
            timer.daemon = True
            self.reconnect_timer = timer
            self.state = ConnectionState.CONNECTING
        timer.start()

    def _connect(self) -> None:
        with self._lock:
            self.reconnect_timer = None
            if self.stopped:
                return
            self.state = ConnectionState.CONNECTING
            client = self.client_factory()
            self.client = client

        def handle_connect():
            self._on_open(client)

        def handle_disconnect(*args):
            self._on_close(client, "connection lost")

        def handle_sensor_data(message):
            self._on_message(client, message)

        client.on('connect', handle_connect)
        client.on('disconnect', handle_disconnect)
        client.on(SENSOR_EVENT, handle_sensor_data)

        try:
            client.connect(self.url, transports=['websocket'])
        except SocketConnectionError as e:
            self._on_close(client, f"connect failed: {e}")

    def _on_open(self, client) -> None:
        with self._lock:
            if client is not self.client:
                return
            if self.stopped:
                stale = True
            else:
                stale = False
                self.state = ConnectionState.OPEN
        if stale:
            client.disconnect()
            return
        logger.info("Connected to sensor bridge at %s", self.url)

    def _on_close(self, client, reason: str) -> None:
        with self._lock:
            if client is not self.client:
                return
            self.state = ConnectionState.CLOSED
            if self.stopped or self.reconnect_timer is not None:
                return
            timer = self.timer_factory(self.reconnect_delay, self._connect)
            timer.daemon = True
            self.reconnect_timer = timer
            self.reconnect_attempts += 1
        logger.warning("Bridge %s; reconnecting in %.0f seconds...", reason, self.reconnect_delay)
        timer.start()

    def _on_message(self, client, message) -> None:
        if client is not self.client:
            return
        self.messages_received += 1

        try:
            data = json.loads(message)
        except (TypeError, ValueError) as e:
            self.messages_discarded += 1
            logger.warning("Data parsing error: %s", e)
            return

        try:
            reading = SensorReading.from_wire(data)
        except InvalidReadingError as e:
            self.messages_discarded += 1
            logger.warning("Invalid sensor data format (%s): %r", e, data)
            return

        self.on_reading(reading)

    def stop(self) -> None:
        """Close the connection and cancel any pending reconnect; no reconnect follows."""
        with self._lock:
            self.stopped = True
            timer, self.reconnect_timer = self.reconnect_timer, None
            client = self.client
            self.state = ConnectionState.CLOSED

        if timer is not None:
            timer.cancel()
        if client is not None and client.connected:
            client.disconnect()
        logger.info("Connection manager stopped")

    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    def get_status(self) -> dict:
        return {
            'state': self.state.value,
            'reconnect_attempts': self.reconnect_attempts,
            'messages_received': self.messages_received,
            'messages_discarded': self.messages_discarded
        }
