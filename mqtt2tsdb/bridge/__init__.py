"""MQTT bridge - subscribes to the broker and logs readings to TimescaleDB."""

from .bridge_service import BridgeService
from .decoder import DecodeError, InvalidNumber, MalformedTopic, WrongSegmentCount, decode
from .handler import IngestionHandler


def main():
    """Entry point for the mqtt2tsdb bridge."""
    import sys

    from .config import load_config
    from mqtt2tsdb.shared.logging import setup_logging

    config = load_config()
    setup_logging(config.log_level)

    service = BridgeService(config)
    sys.exit(service.run())


__all__ = [
    "BridgeService",
    "DecodeError",
    "IngestionHandler",
    "InvalidNumber",
    "MalformedTopic",
    "WrongSegmentCount",
    "decode",
    "main",
]
