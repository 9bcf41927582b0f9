"""Exception hierarchy for lovetown."""

from __future__ import annotations

from typing import Optional


class LovetownError(Exception):
    """Base class for all lovetown errors."""


class InvalidAddressError(LovetownError, ValueError):
    """Raised when a connect address is not a usable websocket URI."""


class ButtplugConnectionError(LovetownError):
    """Raised when the control server cannot be reached or the handshake fails."""


class ButtplugError(LovetownError):
    """Raised when the control server rejects a message or the transport drops."""

    def __init__(self, message: str, *, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class DeviceCommandError(LovetownError, ValueError):
    """Raised when a command payload does not fit the target device."""
