"""Single connect-discover-dispatch-stop session."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from .classifier import classify
from .core import (
    ActionRequest,
    Capability,
    DeviceClient,
    DeviceHandle,
    EventType,
    SessionState,
)
from .dispatcher import CommandDispatcher
from .errors import InvalidAddressError
from .scanning import ScanController

LOGGER = logging.getLogger(__name__)

_WEBSOCKET_SCHEMES = ("ws", "wss")
_TERMINAL_STATES = (SessionState.CLOSED,)


def parse_connect_address(address: str) -> str:
    """Validate a websocket URI and return its normalised form.

    Raises:
        InvalidAddressError: If the address is not an absolute ws/wss URI.
    """

    if not isinstance(address, str) or not address.strip():
        raise InvalidAddressError(f"Invalid connect address: {address!r}")

    try:
        parsed = urlsplit(address.strip())
        parsed.port  # raises on a non-numeric or out-of-range port
    except ValueError as exc:
        raise InvalidAddressError(f"Invalid connect address {address!r}: {exc}") from exc

    scheme = parsed.scheme.lower()
    if scheme not in _WEBSOCKET_SCHEMES:
        raise InvalidAddressError(
            f"Connect address must use ws:// or wss://, got {address!r}"
        )
    if not parsed.hostname:
        raise InvalidAddressError(f"Connect address has no host: {address!r}")

    if any(char.isspace() for char in parsed.netloc):
        raise InvalidAddressError(f"Connect address host is malformed: {address!r}")

    return urlunsplit((scheme, parsed.netloc, parsed.path, parsed.query, ""))


class Session:
    """Drives one action request against a control-server client.

    States: ``idle -> connecting -> scanning -> (dispatched | exhausted) -> closed``.
    A connection failure, or losing the connection before anything was
    dispatched, goes straight to ``closed``. The session never
    disconnects the client itself; the owner of the client decides when the
    connection goes away.
    """

    def __init__(
        self,
        request: ActionRequest,
        client: DeviceClient,
        *,
        dispatcher: Optional[CommandDispatcher] = None,
    ) -> None:
        self.request = request
        self._client = client
        self._dispatcher = dispatcher or CommandDispatcher()
        self._scan = ScanController(client)
        self._state = SessionState.IDLE
        self._dispatched = False
        self._closed = asyncio.Event()
        self.transitions: list[SessionState] = [SessionState.IDLE]

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def dispatched(self) -> bool:
        return self._dispatched

    @property
    def scanning(self) -> bool:
        return self._scan.scanning

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    async def run(self) -> SessionState:
        """Connect and start discovery.

        Returns once scanning has started (or the session closed early). The
        rest of the session is driven by client notifications; use
        :meth:`wait_closed` to wait for the terminal state.

        Raises:
            InvalidAddressError: Before any network I/O if the address is malformed.
        """

        if self._state is not SessionState.IDLE:
            raise RuntimeError("Session already started")

        address = parse_connect_address(self.request.connect_address)
        self._transition(SessionState.CONNECTING)

        events = self._client.events
        events.subscribe(EventType.DEVICE_ADDED, self._on_device_added)
        events.subscribe(EventType.SCANNING_FINISHED, self._on_scanning_finished)
        events.subscribe(EventType.DISCONNECTED, self._on_disconnected)

        try:
            await self._client.connect(address)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.warning("Failed to connect to %s: %s", address, exc)
            self._close()
            return self._state

        # A device from the initial device list may already have settled the session.
        if self._state is SessionState.CONNECTING:
            self._transition(SessionState.SCANNING)

        if self._state is not SessionState.SCANNING:
            return self._state

        try:
            await self._scan.start()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.warning("Failed to start scanning: %s", exc)
            self._close()

        return self._state

    async def wait_closed(self) -> SessionState:
        await self._closed.wait()
        return self._state

    async def _on_device_added(self, device: DeviceHandle) -> None:
        if self._dispatched or self._state in _TERMINAL_STATES:
            return

        capability = classify(device, self.request)
        if capability is Capability.UNSUPPORTED:
            LOGGER.debug("Ignoring %s: no actuator for the requested action", device.name)
        else:
            self._dispatched = True
            self._transition(SessionState.DISPATCHED)
            await self._dispatcher.dispatch(device, self.request, capability)

        await self._scan.halt()

        if self._dispatched:
            self._close()

    def _on_scanning_finished(self, _payload: object = None) -> None:
        self._scan.on_finished()
        if self._dispatched or self._state in _TERMINAL_STATES:
            return
        self._transition(SessionState.EXHAUSTED)
        self._close()

    def _on_disconnected(self, error: Optional[BaseException] = None) -> None:
        if self._dispatched or self._state in _TERMINAL_STATES:
            return
        LOGGER.warning(
            "Connection to %s lost before a device was found: %s",
            self.request.connect_address,
            error or "closed by server",
        )
        self._scan.on_disconnected()
        self._close()

    def _close(self) -> None:
        if self._closed.is_set():
            return
        events = self._client.events
        events.unsubscribe(EventType.DEVICE_ADDED, self._on_device_added)
        events.unsubscribe(EventType.SCANNING_FINISHED, self._on_scanning_finished)
        events.unsubscribe(EventType.DISCONNECTED, self._on_disconnected)
        self._transition(SessionState.CLOSED)
        self._closed.set()

    def _transition(self, state: SessionState) -> None:
        if state is self._state:
            return
        LOGGER.debug("Session %s -> %s", self._state.value, state.value)
        self._state = state
        self.transitions.append(state)
