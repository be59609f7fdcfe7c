"""Shared utilities for the mqtt2tsdb bridge."""

from .models import Reading
from .database import (
    ConnectError,
    ConnectionState,
    DBConfig,
    InsertError,
    LivenessError,
    ReadingsStorage,
    ReconnectError,
    StorageError,
)
from .config import load_yaml_config
from .mqtt import MQTTConfig
from .logging import setup_logging

__all__ = [
    "Reading",
    "ConnectError",
    "ConnectionState",
    "DBConfig",
    "InsertError",
    "LivenessError",
    "ReadingsStorage",
    "ReconnectError",
    "StorageError",
    "load_yaml_config",
    "MQTTConfig",
    "setup_logging",
]
