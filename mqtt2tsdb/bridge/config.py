"""Configuration loading for the MQTT to TimescaleDB bridge.

Settings are resolved once at startup, in order of precedence:
command-line flags, environment variables (a ``.env`` file is loaded first),
an optional YAML file, then built-in defaults.
"""

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from mqtt2tsdb.shared.config import load_yaml_config
from mqtt2tsdb.shared.database import DEFAULT_DATABASE_URL, DBConfig
from mqtt2tsdb.shared.mqtt import DEFAULT_BROKER_URL, MQTTConfig


@dataclass
class Config:
    """Main configuration container."""
    mqtt: MQTTConfig
    db: DBConfig
    log_level: str = "INFO"


def build_parser() -> argparse.ArgumentParser:
    """Command-line flags. Defaults are None so unset flags fall through."""
    p = argparse.ArgumentParser(
        prog="mqtt2tsdb",
        description="Persist topic-encoded MQTT sensor readings to TimescaleDB",
    )
    p.add_argument("-mq", "--mq", dest="broker_url",
                   help=f"mqtt server to connect to (default {DEFAULT_BROKER_URL})")
    p.add_argument("-u", "--username", help="username for auth")
    p.add_argument("-p", "--password", help="password for auth")
    p.add_argument("-db", "--db", dest="database_url",
                   help=f"database to connect to (default {DEFAULT_DATABASE_URL})")
    p.add_argument("--table", help="table readings are inserted into (default environment)")
    p.add_argument("--topic", help="subscription pattern (default #)")
    p.add_argument("--qos", type=int, choices=(0, 1, 2), help="subscription QoS (default 0)")
    p.add_argument("--client-id", help="MQTT client id (default mqtt2timescaledb)")
    p.add_argument("--log-level", help="log level (default INFO)")
    p.add_argument("-v", "-vvv", "--verbose", dest="verbose", action="store_true",
                   help="verbose output for debugging")
    p.add_argument("-c", "--config", help="optional YAML config file")
    return p


def _apply_broker_url(mqtt_config: MQTTConfig, url: str) -> None:
    parsed = MQTTConfig.from_url(url)
    mqtt_config.broker = parsed.broker
    mqtt_config.port = parsed.port
    mqtt_config.tls = parsed.tls
    if parsed.username:
        mqtt_config.username = parsed.username
    if parsed.password:
        mqtt_config.password = parsed.password


def load_config(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Build the bridge configuration.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
        environ: Environment mapping (defaults to os.environ after .env is loaded).

    Returns:
        Config object with all settings resolved.

    Raises:
        FileNotFoundError: If a requested YAML file doesn't exist.
        ValueError: If the broker URL is invalid.
    """
    args = build_parser().parse_args(argv)

    # Also loads .env into os.environ
    config_data = load_yaml_config(args.config)
    env = os.environ if environ is None else environ

    # MQTT: YAML, then environment, then flags
    mqtt_config = MQTTConfig.from_dict(config_data.get("mqtt", {}))
    if broker_url := env.get("MQTT_BROKER"):
        _apply_broker_url(mqtt_config, broker_url)
    mqtt_config.username = env.get("MQTT_USERNAME") or mqtt_config.username
    mqtt_config.password = env.get("MQTT_PASSWORD") or mqtt_config.password
    mqtt_config.client_id = env.get("MQTT_CLIENT_ID") or mqtt_config.client_id
    mqtt_config.topic = env.get("MQTT_TOPIC") or mqtt_config.topic

    if args.broker_url:
        _apply_broker_url(mqtt_config, args.broker_url)
    if args.username:
        mqtt_config.username = args.username
    if args.password:
        mqtt_config.password = args.password
    if args.client_id:
        mqtt_config.client_id = args.client_id
    if args.topic:
        mqtt_config.topic = args.topic
    if args.qos is not None:
        mqtt_config.qos = args.qos

    # Database: YAML, then environment, then flags
    db_data = config_data.get("database", {})
    db_config = DBConfig(
        url=env.get("DATABASE_URL") or db_data.get("url", DEFAULT_DATABASE_URL),
        table=env.get("DB_TABLE") or db_data.get("table", "environment"),
        connect_timeout=int(env.get("DB_CONNECT_TIMEOUT") or db_data.get("connect_timeout", 10)),
    )
    if args.database_url:
        db_config.url = args.database_url
    if args.table:
        db_config.table = args.table

    if args.verbose:
        log_level = "DEBUG"
    elif args.log_level:
        log_level = args.log_level.upper()
    elif env.get("LOG_LEVEL"):
        log_level = env["LOG_LEVEL"].upper()
    else:
        log_level = str(config_data.get("log_level", "INFO")).upper()

    return Config(mqtt=mqtt_config, db=db_config, log_level=log_level)
