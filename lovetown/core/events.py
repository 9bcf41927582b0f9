"""Publish/subscribe channel for control-server notifications.

Clients publish device and scanning notifications here; sessions subscribe
before connecting so that nothing announced during the handshake is lost.
Handlers for one publish run sequentially in subscription order, and a
failing handler is logged without affecting the others.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)


EventHandler = Callable[[Any], Awaitable[None] | None]


class EventType(str, Enum):
    DEVICE_ADDED = "device_added"
    """A device became available. Payload: the device handle."""

    SCANNING_FINISHED = "scanning_finished"
    """Every discovery backend stopped scanning. Payload: None."""

    DISCONNECTED = "disconnected"
    """The connection to the control server closed. Payload: optional exception."""


class EventBus:
    """Ordered fan-out of notifications to subscribed handlers."""

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = {}

    def subscribe(self, event: EventType, handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(event, [])
        if handler in handlers:
            raise ValueError("Handler already subscribed")
        handlers.append(handler)

    def unsubscribe(self, event: EventType, handler: EventHandler) -> None:
        with contextlib.suppress(ValueError):
            self._handlers.get(event, []).remove(handler)

    def has_subscribers(self, event: EventType) -> bool:
        return bool(self._handlers.get(event))

    async def publish(self, event: EventType, payload: Optional[Any] = None) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if asyncio.iscoroutine(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Handler for %s failed", event.value)
