"""Protocol definitions for device-control clients and discovered devices."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from .events import EventBus
from .models import LinearPayload, VibratePayload


@runtime_checkable
class DeviceHandle(Protocol):
    """A device announced by the control server.

    Handles are owned by the client and are only valid while the client
    connection is alive. Consumers should not keep them beyond the handling
    of the notification that delivered them.
    """

    index: int
    name: str

    @property
    def vibrate_attributes(self) -> Sequence[Any]:
        """Vibration actuators declared by the device."""
        ...

    @property
    def linear_attributes(self) -> Sequence[Any]:
        """Linear actuators declared by the device."""
        ...

    async def vibrate(self, speed: VibratePayload) -> None:
        """Run vibrators at the given intensity (or per-motor intensities)."""
        ...

    async def linear(
        self, position: LinearPayload, duration: Optional[float] = None
    ) -> None:
        """Move linear actuators to a position over ``duration`` milliseconds."""
        ...

    async def stop(self) -> None:
        """Halt every actuator on the device."""
        ...


class DeviceClient(Protocol):
    """Minimal contract for a control-server client used by a session."""

    @property
    def events(self) -> EventBus:
        """Notification channel for device and scanning events."""
        ...

    async def connect(self, address: str) -> None:
        """Open the connection and perform the protocol handshake."""
        ...

    async def start_scanning(self) -> None:
        ...

    async def stop_scanning(self) -> None:
        ...

    async def disconnect(self) -> None:
        """Close the connection and release transport resources."""
        ...
