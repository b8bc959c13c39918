"""Process configuration from CLI args, env vars, and an optional YAML file."""

import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    path: str                        # directory holding one JSON file per target
    polling_frequency: float = 60.0  # seconds between two polls of a target
    nb_thread: int = 4               # accepted for compatibility; one thread runs per target
    type: str = "jmx"
    file_extension: str = ".json"
    output: str = "-"                # "-" writes events to stdout
    connect_attempts: int = 1
    request_timeout: float = 10.0
    log_level: str = "INFO"


# (field, env var, converter), in Config field order
_SOURCES = (
    ("path", "JMX_CONF_DIR", str),
    ("polling_frequency", "POLLING_FREQUENCY", float),
    ("nb_thread", "NB_THREAD", int),
    ("type", "EVENT_TYPE", str),
    ("file_extension", "FILE_EXTENSION", str),
    ("output", "OUTPUT", str),
    ("connect_attempts", "CONNECT_ATTEMPTS", int),
    ("request_timeout", "REQUEST_TIMEOUT", float),
    ("log_level", "LOG_LEVEL", str),
)


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(cli_args, yaml_data: dict, environ=None) -> Config:
    """Build Config from defaults <- YAML <- env vars <- CLI args (highest priority).

    Raises ValueError on a missing path or an out-of-range setting.
    """
    if environ is None:
        environ = os.environ

    kwargs: dict = {}
    for name, env_var, convert in _SOURCES:
        value = getattr(cli_args, name, None)
        if value is None:
            value = environ.get(env_var)
        if value is None:
            value = yaml_data.get(name)
        if value is not None:
            kwargs[name] = convert(value)

    if not kwargs.get("path"):
        raise ValueError("Missing required setting 'path' (--path or JMX_CONF_DIR)")

    config = Config(**kwargs)
    if config.polling_frequency <= 0:
        raise ValueError("polling_frequency must be positive")
    if config.connect_attempts < 1:
        raise ValueError("connect_attempts must be at least 1")
    if config.request_timeout <= 0:
        raise ValueError("request_timeout must be positive")
    return config
