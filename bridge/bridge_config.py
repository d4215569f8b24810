# Sensor Bridge Configuration Constants
# Deployment values can be overridden from the environment (.env is loaded by the entry point)

import os

# Serial Link Settings
SERIAL_PORT = os.getenv('SERIAL_PORT', '/dev/ttyUSB0')  # Windows: 'COM3'
BAUD_RATE = int(os.getenv('BAUD_RATE', '115200'))
SERIAL_TIMEOUT = 1.0  # Seconds - readline() returns empty after this long without data

# Frame Format Settings
DEBUG_PREFIX = '[DEBUG]'  # Lines starting with this are device log output, not data
FLEX_CHANNELS = 4
TOUCH_CHANNELS = 6
ACCEL_CHANNELS = 3
FRAME_FIELD_COUNT = FLEX_CHANNELS + TOUCH_CHANNELS + ACCEL_CHANNELS

# Socket.IO Server Settings
SERVER_HOST = os.getenv('BRIDGE_HOST', '0.0.0.0')
SERVER_PORT = int(os.getenv('BRIDGE_PORT', '8080'))
FLASK_SECRET_KEY = 'potion-blast-bridge'
SENSOR_EVENT = 'sensor_data'  # Socket.IO event carrying one JSON reading
