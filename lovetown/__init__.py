"""Trigger haptic actions on Intiface-managed devices."""

from .api import lovetown_connect, lovetown_send, open_session
from .core import ActionRequest, Capability, SessionState
from .errors import (
    ButtplugConnectionError,
    ButtplugError,
    DeviceCommandError,
    InvalidAddressError,
    LovetownError,
)
from .session import Session, parse_connect_address
from .version import __version__

__all__ = [
    "ActionRequest",
    "ButtplugConnectionError",
    "ButtplugError",
    "Capability",
    "DeviceCommandError",
    "InvalidAddressError",
    "LovetownError",
    "Session",
    "SessionState",
    "__version__",
    "lovetown_connect",
    "lovetown_send",
    "open_session",
    "parse_connect_address",
]
