"""Decide whether a discovered device can perform the requested action."""

from __future__ import annotations

from .core import ActionRequest, Capability, DeviceHandle


def classify(device: DeviceHandle, request: ActionRequest) -> Capability:
    """Match a device's declared actuators against the request.

    Vibration takes precedence when both payloads are present. A linear
    request without a movement duration never qualifies. Devices lacking
    the relevant actuators (gamepads, for instance) are ``UNSUPPORTED``.
    """

    if request.wants_vibrate:
        if len(device.vibrate_attributes) > 0:
            return Capability.VIBRATE
        return Capability.UNSUPPORTED

    if request.wants_linear and request.linear_duration is not None:
        if len(device.linear_attributes) > 0:
            return Capability.LINEAR

    return Capability.UNSUPPORTED
