import threading
import logging
from flask import Flask, jsonify, request
from flask_socketio import SocketIO, emit

from bridge.bridge_config import SENSOR_EVENT
from bridge.reading_broadcaster import ReadingBroadcaster, ReadingSink

logger = logging.getLogger(__name__)


class SocketClientSink(ReadingSink):
    """Broadcaster sink for one connected Socket.IO client"""

    def __init__(self, server, sid):
        self.server = server
        self.sid = sid

    def send(self, message):
        self.server.socketio.emit(SENSOR_EVENT, message, to=self.sid)

    def is_ready(self):
        return self.sid in self.server.connected_clients

    def describe(self):
        return f"client {self.sid}"


class SensorServer:
    """Flask-SocketIO server publishing glove readings to every connected game client"""

    def __init__(self, broadcaster: ReadingBroadcaster, status_provider, config):
        """
        Initialize sensor server

        Args:
            broadcaster: Broadcaster that connected clients are subscribed to
            status_provider: Function that returns the bridge status dict
            config: Configuration object with server settings
        """
        self.broadcaster = broadcaster
        self.status_provider = status_provider
        self.config = config

        # Flask app setup
        self.app = Flask(__name__)
        # Set a higher logging level to suppress lower-severity messages
        logging.getLogger('werkzeug').setLevel(logging.ERROR)
        logging.getLogger('engineio').setLevel(logging.ERROR)

        self.app.config['SECRET_KEY'] = config.FLASK_SECRET_KEY
        self.app.logger.disabled = True  # Disable Flask logs

        # SocketIO setup
        self.socketio = SocketIO(self.app, cors_allowed_origins="*", async_mode='threading',
                                 logger=False, engineio_logger=False)

        # Connected clients and their broadcaster subscriptions
        self.connected_clients = set()
        self.subscriptions = {}

        # Setup routes and handlers
        self._setup_routes()
        self._setup_socket_handlers()

        self.server_thread = None

    def _setup_routes(self):
        """Setup Flask routes"""
        @self.app.route('/')
        def index():
            return jsonify(self._status_payload())

    def _setup_socket_handlers(self):
        """Setup SocketIO event handlers"""

        @self.socketio.on('connect')
        def handle_connect():
            sid = request.sid
            self.connected_clients.add(sid)
            self.subscriptions[sid] = self.broadcaster.subscribe(SocketClientSink(self, sid))
            logger.info("Client connected: %s (%d total)", sid, len(self.connected_clients))
            emit('status', self._status_payload())

        @self.socketio.on('disconnect')
        def handle_disconnect(reason=None):
            sid = request.sid
            self.connected_clients.discard(sid)
            handle = self.subscriptions.pop(sid, None)
            if handle is not None:
                self.broadcaster.unsubscribe(handle)
            logger.info("Client disconnected: %s (%d remaining)", sid, len(self.connected_clients))

        @self.socketio.on('get_status')
        def handle_get_status():
            emit('status', self._status_payload())

    def _status_payload(self):
        status = {'connected': True, 'clients': self.get_connected_client_count()}
        status.update(self.status_provider())
        return status

    def start(self):
        """Start the sensor server in a background thread"""
        def run_server():
            self.socketio.run(
                self.app,
                host=self.config.SERVER_HOST,
                port=self.config.SERVER_PORT,
                debug=False,
                allow_unsafe_werkzeug=True
            )

        self.server_thread = threading.Thread(target=run_server, name='sensor-server', daemon=True)
        self.server_thread.start()

        print(f"Bridge running on ws://{self.config.SERVER_HOST}:{self.config.SERVER_PORT}")

    def is_running(self):
        """Check if server thread is running"""
        return self.server_thread is not None and self.server_thread.is_alive()

    def stop(self):
        """Drop all client subscriptions; the daemon server thread exits with the process"""
        for sid, handle in list(self.subscriptions.items()):
            self.broadcaster.unsubscribe(handle)
            self.subscriptions.pop(sid, None)
        self.connected_clients.clear()

        if self.is_running():
            logger.info("Stopping sensor server...")

    def get_connected_client_count(self):
        """Get the number of connected WebSocket clients"""
        return len(self.connected_clients)
