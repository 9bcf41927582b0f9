"""Adapter modules for external integrations."""

from .buttplug import ActuatorAttribute, ButtplugClient, ButtplugDevice

__all__ = [
    "ActuatorAttribute",
    "ButtplugClient",
    "ButtplugDevice",
]
