"""MQTT configuration and utilities."""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

DEFAULT_BROKER_URL = "tcp://127.0.0.1:1883"

# scheme -> (default port, use TLS)
BROKER_SCHEMES = {
    "tcp": (1883, False),
    "mqtt": (1883, False),
    "ssl": (8883, True),
    "mqtts": (8883, True),
}


@dataclass
class MQTTConfig:
    """MQTT broker configuration."""
    broker: str = "127.0.0.1"
    port: int = 1883
    client_id: str = "mqtt2timescaledb"
    username: Optional[str] = None
    password: Optional[str] = None
    keepalive: int = 60
    qos: int = 0
    topic: str = "#"
    tls: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "MQTTConfig":
        """Create config from dictionary.

        A ``url`` key takes precedence over ``broker``/``port``/``tls``.
        """
        if data.get("url"):
            config = cls.from_url(data["url"])
        else:
            config = cls(
                broker=data.get("broker", "127.0.0.1"),
                port=int(data.get("port", 1883)),
                tls=bool(data.get("tls", False)),
            )
        config.client_id = data.get("client_id", config.client_id)
        config.username = data.get("username") or config.username
        config.password = data.get("password") or config.password
        config.keepalive = int(data.get("keepalive", config.keepalive))
        config.qos = int(data.get("qos", config.qos))
        config.topic = data.get("topic", config.topic)
        return config

    @classmethod
    def from_url(cls, url: str) -> "MQTTConfig":
        """Create config from a broker URL such as ``tcp://host:1883``.

        Raises:
            ValueError: If the scheme is unsupported or the host is missing.
        """
        if "://" not in url:
            url = f"tcp://{url}"
        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        if scheme not in BROKER_SCHEMES:
            raise ValueError(f"Unsupported broker scheme '{parts.scheme}' in {url}")
        if not parts.hostname:
            raise ValueError(f"Broker URL has no host: {url}")

        default_port, tls = BROKER_SCHEMES[scheme]
        return cls(
            broker=parts.hostname,
            port=parts.port or default_port,
            username=parts.username or None,
            password=parts.password or None,
            tls=tls,
        )


def is_system_topic(topic: str) -> bool:
    """Return True for broker-internal ``$SYS/...`` topics."""
    return topic.startswith("$SYS/")
