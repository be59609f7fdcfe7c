"""Bridge service - subscribes to MQTT and writes readings to TimescaleDB."""

import logging
import signal
from typing import Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from mqtt2tsdb.shared.database import ConnectError, ReadingsStorage
from mqtt2tsdb.shared.mqtt import is_system_topic

from .config import Config
from .handler import IngestionHandler

logger = logging.getLogger(__name__)


class BridgeService:
    """Service that feeds broker messages to the ingestion handler."""

    def __init__(
        self,
        config: Config,
        storage: Optional[ReadingsStorage] = None,
        handler: Optional[IngestionHandler] = None,
    ):
        self.config = config
        self.storage = storage or ReadingsStorage(config.db)
        self.handler = handler or IngestionHandler(self.storage)
        self.client: Optional[mqtt.Client] = None
        self._running = False

    def _on_connect(self, client: mqtt.Client, userdata, flags, reason_code, properties):
        """Callback when connected to MQTT broker."""
        if reason_code == 0:
            logger.info(f"Connected to MQTT broker at {self.config.mqtt.broker}:{self.config.mqtt.port}")
            # Resubscribe on every connect so a broker restart doesn't lose it
            client.subscribe(self.config.mqtt.topic, qos=self.config.mqtt.qos)
            logger.info(f"Subscribed to: {self.config.mqtt.topic} (qos={self.config.mqtt.qos})")
        else:
            logger.error(f"Failed to connect to MQTT broker, reason: {reason_code}")

    def _on_disconnect(self, client: mqtt.Client, userdata, disconnect_flags, reason_code, properties):
        """Callback when disconnected from MQTT broker."""
        if reason_code != 0:
            logger.warning(f"Unexpected disconnection from MQTT broker (reason={reason_code})")
        else:
            logger.info("Disconnected from MQTT broker")

    def _on_message(self, client: mqtt.Client, userdata, msg: mqtt.MQTTMessage):
        """Callback when a message is received."""
        if is_system_topic(msg.topic):
            return
        try:
            self.handler.handle(msg.topic, msg.payload)
        except Exception:
            # Keep the network loop alive whatever happens to one message
            logger.exception(f"Error processing message from {msg.topic}")

    def _setup_signal_handlers(self):
        """Set up signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signame = signal.Signals(signum).name
            logger.info(f"Received {signame}, shutting down...")
            self._running = False
            if self.client:
                self.client.disconnect()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

    def _create_client(self) -> mqtt.Client:
        """Create the paho-mqtt v2 client with callbacks attached."""
        mqtt_config = self.config.mqtt
        client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=mqtt_config.client_id,
        )
        if mqtt_config.username:
            client.username_pw_set(mqtt_config.username, mqtt_config.password)
        if mqtt_config.tls:
            client.tls_set()
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        return client

    def run(self) -> int:
        """Run the bridge (blocking).

        Returns:
            Process exit code: 0 after a clean shutdown, 1 if the database
            or the broker could not be reached at startup.
        """
        try:
            self.storage.connect()
        except ConnectError as e:
            logger.error(str(e))
            return 1

        self._setup_signal_handlers()
        self._running = True
        self.client = self._create_client()

        logger.info(f"Connecting to MQTT broker at {self.config.mqtt.broker}:{self.config.mqtt.port}")

        try:
            try:
                self.client.connect(
                    self.config.mqtt.broker,
                    self.config.mqtt.port,
                    keepalive=self.config.mqtt.keepalive,
                )
            except (OSError, ValueError) as e:
                logger.error(f"Unable to connect to MQTT broker: {e}")
                return 1

            logger.info("Waiting for MQTT messages. Press CTRL+C to exit...")
            self.client.loop_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._running = False
            self.storage.close()
            logger.info(f"Message stats: {self.handler.stats.to_dict()}")
            logger.info("MQTT bridge stopped")
        return 0
