"""Configuration loader for lovetown."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import constants


@dataclass(slots=True)
class IntifaceConfig:
    connect_address: str = constants.DEFAULT_CONNECT_ADDRESS
    client_name: str = constants.DEFAULT_CLIENT_NAME
    connect_timeout_seconds: float = 5.0
    request_timeout_seconds: float = 5.0


@dataclass(slots=True)
class ActionConfig:
    timeout_ms: float = constants.DEFAULT_TIMEOUT_MS
    linear_duration_ms: float = constants.DEFAULT_LINEAR_DURATION_MS
    scan_wait_seconds: float = 30.0  # How long the CLI waits for a device before giving up


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class LovetownConfig:
    intiface: IntifaceConfig = field(default_factory=IntifaceConfig)
    action: ActionConfig = field(default_factory=ActionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    raw: ConfigParser = field(default_factory=ConfigParser)
    path: Path = constants.DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None) -> LovetownConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "intiface": {
                "connect_address": constants.DEFAULT_CONNECT_ADDRESS,
                "client_name": constants.DEFAULT_CLIENT_NAME,
                "connect_timeout_seconds": "5.0",
                "request_timeout_seconds": "5.0",
            },
            "action": {
                "timeout_ms": str(constants.DEFAULT_TIMEOUT_MS),
                "linear_duration_ms": str(constants.DEFAULT_LINEAR_DURATION_MS),
                "scan_wait_seconds": "30.0",
            },
            "logging": {
                "level": "INFO",
                "path": "",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    intiface = IntifaceConfig(
        connect_address=parser.get("intiface", "connect_address").strip(),
        client_name=parser.get("intiface", "client_name").strip()
        or constants.DEFAULT_CLIENT_NAME,
        connect_timeout_seconds=parser.getfloat(
            "intiface", "connect_timeout_seconds", fallback=5.0
        ),
        request_timeout_seconds=parser.getfloat(
            "intiface", "request_timeout_seconds", fallback=5.0
        ),
    )

    action_defaults = ActionConfig()

    action = ActionConfig(
        timeout_ms=parser.getfloat(
            "action", "timeout_ms", fallback=action_defaults.timeout_ms
        ),
        linear_duration_ms=parser.getfloat(
            "action",
            "linear_duration_ms",
            fallback=action_defaults.linear_duration_ms,
        ),
        scan_wait_seconds=parser.getfloat(
            "action", "scan_wait_seconds", fallback=action_defaults.scan_wait_seconds
        ),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return LovetownConfig(
        intiface=intiface,
        action=action,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )
