"""mqtt2tsdb - persists topic-encoded MQTT sensor readings to TimescaleDB."""

__version__ = "0.1.0"
