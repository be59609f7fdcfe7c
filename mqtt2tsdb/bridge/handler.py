"""Ingestion handler - turns one MQTT message into one database row."""

import logging
import threading
from dataclasses import asdict, dataclass

from mqtt2tsdb.shared.database import (
    InsertError,
    LivenessError,
    ReadingsStorage,
    ReconnectError,
)

from .decoder import DecodeError, decode

logger = logging.getLogger(__name__)


@dataclass
class HandlerStats:
    """Per-process message counters, logged at shutdown."""
    received: int = 0
    inserted: int = 0
    decode_failed: int = 0
    insert_failed: int = 0
    dropped_db_down: int = 0
    reconnects: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class IngestionHandler:
    """Decodes inbound messages and writes them to the readings store.

    paho-mqtt invokes message callbacks from its single network-loop thread,
    so calls normally arrive one at a time. The lock still wraps the whole
    of ``handle`` because the liveness check, reconnect and insert all act on
    the one connection owned by ``storage`` and must not interleave if the
    client is ever driven from more than one thread.

    Liveness is checked lazily on each message. When the check fails the
    handler reconnects once and drops the message whatever the outcome.
    """

    def __init__(self, storage: ReadingsStorage):
        self.storage = storage
        self.stats = HandlerStats()
        self._lock = threading.Lock()

    def handle(self, topic: str, payload: bytes) -> None:
        """Process one message. Never raises; every failure is logged."""
        with self._lock:
            self.stats.received += 1
            logger.debug(f"topic: {topic}, payload: {payload!r}")

            if not self._ensure_live():
                self.stats.dropped_db_down += 1
                return

            try:
                reading = decode(topic, payload)
            except DecodeError as e:
                self.stats.decode_failed += 1
                logger.warning(f"Dropping message ({type(e).__name__}): {e}")
                return

            try:
                self.storage.insert_reading(reading)
            except InsertError as e:
                self.stats.insert_failed += 1
                logger.error(f"Failed to store reading from {topic}: {e}")
                return

            self.stats.inserted += 1
            logger.debug(f"Logged: {reading.topic()} = {reading.value}")

    def _ensure_live(self) -> bool:
        """Return True if the connection is usable for this message.

        On a failed check a single reconnect is attempted, but the current
        message is dropped either way.
        """
        try:
            self.storage.check_alive()
            return True
        except LivenessError as e:
            logger.warning(f"Skip message due to lost db connection: {e}")

        try:
            self.storage.reconnect()
            self.stats.reconnects += 1
        except ReconnectError as e:
            logger.error(f"Reconnect to database failed: {e}")
        return False
