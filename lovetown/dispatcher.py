"""Send one action command to a device and schedule its stop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .core import ActionRequest, Capability, DeviceHandle

LOGGER = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class CommandDispatcher:
    """Issues an action command followed by an unconditional delayed stop.

    The control protocol has no "action finished" signal that works for every
    actuator kind, so the stop always fires ``request.timeout`` milliseconds
    after the command was accepted. Stop tasks are tracked so callers that own
    the event loop (the CLI, tests) can wait for them with :meth:`drain`.
    """

    def __init__(self, *, sleep: Optional[SleepFunc] = None) -> None:
        self._sleep = sleep or asyncio.sleep
        self._stop_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_stops(self) -> int:
        return len(self._stop_tasks)

    async def dispatch(
        self, device: DeviceHandle, request: ActionRequest, capability: Capability
    ) -> bool:
        """Send the command matching ``capability`` and arm the stop.

        Returns True when the device accepted the command. Submission errors
        are logged and no stop is armed.
        """

        try:
            if capability is Capability.VIBRATE:
                await device.vibrate(request.vibrate)
            elif capability is Capability.LINEAR:
                await device.linear(request.linear, request.linear_duration)
            else:
                raise ValueError(f"Cannot dispatch {capability.value} action")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.warning(
                "Failed to send %s command to %s: %s", capability.value, device.name, exc
            )
            return False

        LOGGER.info(
            "Sent %s command to %s, stopping in %.0f ms",
            capability.value,
            device.name,
            request.timeout,
        )
        self._arm_stop(device, request.timeout_seconds)
        return True

    async def drain(self) -> None:
        """Wait until every armed stop has fired."""

        while self._stop_tasks:
            await asyncio.gather(*list(self._stop_tasks), return_exceptions=True)

    def _arm_stop(self, device: DeviceHandle, delay: float) -> None:
        task = asyncio.create_task(self._stop_later(device, delay))
        self._stop_tasks.add(task)
        task.add_done_callback(self._stop_tasks.discard)

    async def _stop_later(self, device: DeviceHandle, delay: float) -> None:
        await self._sleep(delay)
        try:
            await device.stop()
        except Exception as exc:
            LOGGER.warning("Failed to stop %s: %s", device.name, exc)
        else:
            LOGGER.debug("Stopped %s", device.name)
