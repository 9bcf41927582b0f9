"""Core primitives for lovetown."""

from .events import EventBus, EventHandler, EventType
from .models import (
    ActionRequest,
    Capability,
    LinearPayload,
    SessionState,
    VibratePayload,
)
from .protocols import DeviceClient, DeviceHandle

__all__ = [
    "ActionRequest",
    "Capability",
    "DeviceClient",
    "DeviceHandle",
    "EventBus",
    "EventHandler",
    "EventType",
    "LinearPayload",
    "SessionState",
    "VibratePayload",
]
