"""
Sensor bridge: serial glove telemetry in, Socket.IO readings out.

Run with `python -m bridge.sensor_bridge`. Every line read from the serial port is
decoded and published on the reader thread, so readings leave in arrival order.
"""

import argparse
import logging
import os
import time

from dotenv import load_dotenv

from bridge import bridge_config
from bridge.errors import TransportError
from bridge.frame_decoder import FrameDecoder
from bridge.reading_broadcaster import ReadingBroadcaster
from bridge.sensor_reading import SensorReading
from bridge.sensor_server import SensorServer
from bridge.serial_reader import SerialLineReader

logger = logging.getLogger(__name__)


class SensorBridge:
    """Wires the serial reader, frame decoder, broadcaster and Socket.IO server together."""

    def __init__(self, port=None, baud_rate=None, config=bridge_config,
                 serial_factory=None, decoder=None, broadcaster=None):
        """
        Initialize the bridge.

        Args:
            port: Serial device path (defaults to SERIAL_PORT)
            baud_rate: Serial baud rate (defaults to BAUD_RATE)
            config: Configuration module or object with server settings
            serial_factory: Optional replacement for pyserial's Serial
            decoder: Optional FrameDecoder instance
            broadcaster: Optional ReadingBroadcaster instance
        """
        self.config = config
        self.decoder = decoder or FrameDecoder()
        self.broadcaster = broadcaster or ReadingBroadcaster()

        reader_kwargs = {}
        if serial_factory is not None:
            reader_kwargs['serial_factory'] = serial_factory
        self.reader = SerialLineReader(
            port or config.SERIAL_PORT,
            baud_rate or config.BAUD_RATE,
            line_callback=self.handle_line,
            **reader_kwargs
        )
        self.server = SensorServer(self.broadcaster, self.get_status, config)

        self.link_open = False

    def handle_line(self, raw_line: str):
        """
        Decode one raw line and publish it if it is a valid reading.

        Returns:
            Number of subscribers reached, or None if the line was not a reading
        """
        result = self.decoder.decode(raw_line)
        if not isinstance(result, SensorReading):
            return None

        delivered = self.broadcaster.publish(result)
        logger.debug("Parsed: flex=%s touch=%s accel=%s -> %d clients",
                     result.flex, result.touch[:2], result.accel, delivered)
        return delivered

    def start(self) -> bool:
        """
        Open the serial link and start serving readings.

        Returns:
            True if the link is up; False leaves the bridge idle until restart
        """
        try:
            self.reader.open()
        except TransportError as e:
            logger.error("Failed to open port: %s", e)
            return False

        self.link_open = True
        self.server.start()
        self.reader.start()
        return True

    def stop(self):
        """Close the serial link and release every subscriber."""
        print("\nClosing bridge...")
        self.reader.stop()
        self.server.stop()
        self.broadcaster.close()
        self.link_open = False

    def get_status(self):
        status = {
            'serial_port': self.reader.port,
            'link_open': self.link_open,
            'subscribers': self.broadcaster.subscriber_count(),
            'readings_published': self.broadcaster.readings_published
        }
        status.update(self.decoder.get_stats())
        return status


def main(argv=None):
    load_dotenv()

    parser = argparse.ArgumentParser(description='Serial glove to Socket.IO bridge')
    parser.add_argument('--port', default=bridge_config.SERIAL_PORT, help='Serial device path')
    parser.add_argument('--baud', type=int, default=bridge_config.BAUD_RATE, help='Serial baud rate')
    parser.add_argument('--listen-port', type=int, default=bridge_config.SERVER_PORT,
                        help='Socket.IO listen port')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    class BridgeConfig:
        FLASK_SECRET_KEY = bridge_config.FLASK_SECRET_KEY
        SERVER_HOST = bridge_config.SERVER_HOST
        SERVER_PORT = args.listen_port
        SERIAL_PORT = args.port
        BAUD_RATE = args.baud

    bridge = SensorBridge(config=BridgeConfig())
    if not bridge.start():
        print("Bridge is not running: serial link unavailable. Fix the port and restart.")

    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        bridge.stop()


if __name__ == "__main__":
    main()
