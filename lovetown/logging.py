"""Root logger setup for the ``lovetown`` command."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Transport loggers, silenced unless [logging] log_network is set.
NETWORK_LOGGERS = ("aiohttp", "lovetown.adapters.buttplug.wire")


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(path: Path) -> logging.Handler:
    path = path.expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(settings: LoggingConfig) -> None:
    """Replace the root handlers according to the ``[logging]`` section.

    Records go to stderr and, when ``path`` is set, to that file as well.
    With ``log_network`` every websocket frame is logged at DEBUG whatever
    the root level is; without it the transport loggers only report
    warnings. An unknown level name falls back to INFO.
    """

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.path:
        handlers.append(_file_handler(settings.path))

    logging.basicConfig(
        level=_parse_level(settings.level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.captureWarnings(True)

    network_level = logging.DEBUG if settings.log_network else logging.WARNING
    for name in NETWORK_LOGGERS:
        logging.getLogger(name).setLevel(network_level)
