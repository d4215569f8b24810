"""
Fan-out of validated readings to every subscribed sink.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Tuple

from bridge.sensor_reading import SensorReading

logger = logging.getLogger(__name__)


class ReadingSink(ABC):
    """
    Abstract destination for serialized readings.

    A sink that is not ready simply misses the current reading; readings are a
    current-state stream, nothing is queued for later.
    """

    @abstractmethod
    def send(self, message: str) -> None:
        """
        Deliver one JSON-encoded reading.

        Args:
            message: Wire form of the reading
        """
        pass

    def is_ready(self) -> bool:
        return True

    def describe(self) -> str:
        return self.__class__.__name__


class CallbackSink(ReadingSink):
    """Sink that hands each message to an in-process callable."""

    def __init__(self, callback: Callable[[str], None]):
        self.callback = callback

    def send(self, message: str) -> None:
        self.callback(message)


class SubscriptionHandle:
    """Opaque token returned by subscribe(); compared by identity."""

    __slots__ = ('sink_name',)

    def __init__(self, sink_name: str):
        self.sink_name = sink_name

    def __repr__(self):
        return f"<SubscriptionHandle {self.sink_name} at {id(self):#x}>"


class ReadingBroadcaster:
    """
    Holds the active subscribers and publishes readings to them in subscription order.

    The reader thread publishes while the server thread subscribes and unsubscribes,
    so the table is guarded and publish works on a snapshot.
    """

    def __init__(self):
        self._subscriptions: Dict[SubscriptionHandle, ReadingSink] = {}
        self._lock = threading.Lock()

        self.readings_published = 0
        self.deliveries_dropped = 0
        self.deliveries_failed = 0

    def subscribe(self, sink: ReadingSink) -> SubscriptionHandle:
        """
        Add a sink to the broadcast set.

        Args:
            sink: Destination for future readings

        Returns:
            Handle used to unsubscribe; every call returns a new handle
        """
        handle = SubscriptionHandle(sink.describe())
        with self._lock:
            self._subscriptions[handle] = sink
            count = len(self._subscriptions)
        logger.info("Subscriber added: %s (%d total)", handle.sink_name, count)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """
        Remove a subscription.

        Args:
            handle: Handle returned by subscribe()

        Returns:
            True if the subscription existed, False otherwise
        """
        with self._lock:
            sink = self._subscriptions.pop(handle, None)
            count = len(self._subscriptions)
        if sink is None:
            return False
        logger.info("Subscriber removed: %s (%d remaining)", handle.sink_name, count)
        return True

    def publish(self, reading: SensorReading) -> int:
        """
        Deliver a reading to every current subscriber.

        Args:
            reading: Validated reading to broadcast

        Returns:
            int: Number of sinks the reading was delivered to
        """
        message = reading.to_json()
        delivered = 0
        self.readings_published += 1

        for handle, sink in self._snapshot():
            if not sink.is_ready():
                self.deliveries_dropped += 1
                continue
            try:
                sink.send(message)
                delivered += 1
            except Exception as e:
                # One broken subscriber must not starve the others
                self.deliveries_failed += 1
                logger.warning("Error sending reading to %s: %s", handle.sink_name, e)

        return delivered

    def _snapshot(self) -> List[Tuple[SubscriptionHandle, ReadingSink]]:
        with self._lock:
            return list(self._subscriptions.items())

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def close(self) -> None:
        """Release every subscriber."""
        with self._lock:
            count = len(self._subscriptions)
            self._subscriptions.clear()
        if count:
            logger.info("Released %d subscribers", count)
