"""Constants used across the lovetown package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "lovetown"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_CLIENT_NAME = "Lovetown Client"
DEFAULT_CONNECT_ADDRESS = "ws://127.0.0.1:12345"

DEFAULT_TIMEOUT_MS = 3000
DEFAULT_LINEAR_DURATION_MS = 1000

BUTTPLUG_MESSAGE_VERSION = 3
