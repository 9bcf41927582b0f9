"""Discovery start/stop bookkeeping for a single session."""

from __future__ import annotations

import asyncio
import logging

from .core import DeviceClient

LOGGER = logging.getLogger(__name__)


class ScanController:
    """Starts discovery and halts it once a candidate device was evaluated."""

    def __init__(self, client: DeviceClient) -> None:
        self._client = client
        self._scanning = False

    @property
    def scanning(self) -> bool:
        return self._scanning

    async def start(self) -> None:
        """Ask the server to start scanning.

        The flag is raised before the request goes out so that a device
        announced while the request is in flight can still halt discovery.
        Failures propagate to the caller.
        """

        self._scanning = True
        try:
            await self._client.start_scanning()
        except BaseException:
            self._scanning = False
            raise

    async def halt(self) -> None:
        """Ask the server to stop scanning if it still is."""

        if not self._scanning:
            return

        self._scanning = False
        try:
            await self._client.stop_scanning()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.warning("Failed to stop scanning: %s", exc)

    def on_finished(self) -> None:
        LOGGER.info("Scanning finished")
        self._scanning = False

    def on_disconnected(self) -> None:
        self._scanning = False
