"""Configuration loading utilities."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

CONFIG_ENV_VAR = "MQTT2TSDB_CONFIG"


def get_config_path(config_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Resolve the YAML config file to use, if any.

    Args:
        config_path: Explicit path. If None, falls back to the
            MQTT2TSDB_CONFIG environment variable.

    Returns:
        Path to the configuration file, or None when no file was requested.
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR)
    if not config_path:
        return None
    return Path(config_path)


def load_yaml_config(
    config_path: Optional[Union[str, Path]] = None,
    load_env: bool = True,
) -> dict:
    """Load YAML configuration file.

    The file is optional: with no explicit path and no MQTT2TSDB_CONFIG in
    the environment an empty dict is returned.

    Args:
        config_path: Path to config file. If None, uses get_config_path().
        load_env: Whether to load .env file first.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If a config file was requested but doesn't exist.
        yaml.YAMLError: If config file is invalid YAML.
    """
    if load_env:
        load_dotenv()

    path = get_config_path(config_path)
    if path is None:
        return {}

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        return yaml.safe_load(f) or {}

