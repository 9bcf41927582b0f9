"""Buttplug (Intiface) client speaking message version 3 over a websocket."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from numbers import Real
from typing import Any, Mapping, Optional

import aiohttp

from .. import constants
from ..core import EventBus, EventType, LinearPayload, VibratePayload
from ..errors import ButtplugConnectionError, ButtplugError, DeviceCommandError

LOGGER = logging.getLogger(__name__)
WIRE_LOGGER = logging.getLogger(__name__ + ".wire")

# Id 0 is reserved for messages the server sends on its own.
SYSTEM_MESSAGE_ID = 0


@dataclass(slots=True, frozen=True)
class ActuatorAttribute:
    """One actuator entry from a device's ``DeviceMessages`` block.

    ``index`` is the position inside the command's attribute list, which is
    what the server expects in ``ScalarCmd``/``LinearCmd`` subcommands.
    """

    index: int
    actuator_type: str


def _parse_attributes(
    entries: Any, *, default_type: str, only: Optional[str] = None
) -> tuple[ActuatorAttribute, ...]:
    if not isinstance(entries, list):
        return ()

    attributes = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            continue
        entry_type = str(entry.get("ActuatorType") or default_type)
        if only is not None and entry_type != only:
            continue
        attributes.append(ActuatorAttribute(index=index, actuator_type=entry_type))
    return tuple(attributes)


def _unit(value: Any, label: str) -> float:
    if not isinstance(value, Real) or isinstance(value, bool) or not 0.0 <= value <= 1.0:
        raise DeviceCommandError(f"{label} must be in [0.0, 1.0], got {value!r}")
    return float(value)


class ButtplugDevice:
    """Device handle created from ``DeviceAdded`` / ``DeviceList`` entries."""

    def __init__(
        self,
        client: "ButtplugClient",
        index: int,
        name: str,
        messages: Mapping[str, Any],
    ) -> None:
        self._client = client
        self.index = index
        self.name = name or f"device {index}"
        self._vibrate_attributes = _parse_attributes(
            messages.get("ScalarCmd"), default_type="Vibrate", only="Vibrate"
        )
        self._linear_attributes = _parse_attributes(
            messages.get("LinearCmd"), default_type="Position"
        )

    def __repr__(self) -> str:
        return f"ButtplugDevice(index={self.index}, name={self.name!r})"

    @property
    def vibrate_attributes(self) -> tuple[ActuatorAttribute, ...]:
        return self._vibrate_attributes

    @property
    def linear_attributes(self) -> tuple[ActuatorAttribute, ...]:
        return self._linear_attributes

    async def vibrate(self, speed: VibratePayload) -> None:
        """Set vibration intensity.

        A single value drives every vibrator; a sequence drives vibrators by
        position and may be shorter than the vibrator count.
        """

        attributes = self._vibrate_attributes
        if not attributes:
            raise DeviceCommandError(f"{self.name} has no vibrators")

        if isinstance(speed, Real):
            speeds = [_unit(speed, "vibrate")] * len(attributes)
        else:
            speeds = [_unit(value, "vibrate") for value in speed]
            if len(speeds) > len(attributes):
                raise DeviceCommandError(
                    f"{len(speeds)} vibrate values given but {self.name} has "
                    f"{len(attributes)} vibrators"
                )

        scalars = [
            {"Index": attribute.index, "Scalar": value, "ActuatorType": attribute.actuator_type}
            for attribute, value in zip(attributes, speeds)
        ]
        await self._client.send("ScalarCmd", DeviceIndex=self.index, Scalars=scalars)

    async def linear(
        self, position: LinearPayload, duration: Optional[float] = None
    ) -> None:
        """Move linear actuators.

        A single position moves every actuator over ``duration`` milliseconds;
        a sequence of ``(position, duration)`` pairs drives actuators by position.
        """

        attributes = self._linear_attributes
        if not attributes:
            raise DeviceCommandError(f"{self.name} has no linear actuators")

        if isinstance(position, Real):
            if duration is None:
                raise DeviceCommandError("A duration is required for a single linear position")
            target = _unit(position, "linear position")
            vectors = [
                {"Index": attribute.index, "Duration": int(duration), "Position": target}
                for attribute in attributes
            ]
        else:
            pairs = list(position)
            if len(pairs) > len(attributes):
                raise DeviceCommandError(
                    f"{len(pairs)} linear values given but {self.name} has "
                    f"{len(attributes)} linear actuators"
                )
            vectors = [
                {
                    "Index": attribute.index,
                    "Duration": int(step_duration),
                    "Position": _unit(step_position, "linear position"),
                }
                for attribute, (step_position, step_duration) in zip(attributes, pairs)
            ]

        await self._client.send("LinearCmd", DeviceIndex=self.index, Vectors=vectors)

    async def stop(self) -> None:
        await self._client.send("StopDeviceCmd", DeviceIndex=self.index)


class ButtplugClient:
    """Non-blocking client for an Intiface/Buttplug control server.

    Replies are matched to requests by message id. Server-originated
    notifications (device added, scanning finished, disconnect) are
    queued and published on :attr:`events` from a dedicated task, so handlers
    can issue further requests without stalling the websocket reader.
    """

    def __init__(
        self,
        name: str = constants.DEFAULT_CLIENT_NAME,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        connect_timeout: float = 5.0,
        request_timeout: float = 5.0,
    ) -> None:
        self.name = name
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self.server_name: Optional[str] = None
        self.max_ping_time = 0

        self._events = EventBus()
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader_task: Optional[asyncio.Task[None]] = None
        self._notify_task: Optional[asyncio.Task[None]] = None
        self._ping_task: Optional[asyncio.Task[None]] = None
        self._notifications: asyncio.Queue[tuple[EventType, Any]] = asyncio.Queue()
        self._pending: dict[int, asyncio.Future[tuple[str, dict[str, Any]]]] = {}
        self._message_id = SYSTEM_MESSAGE_ID
        self._devices: dict[int, ButtplugDevice] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def devices(self) -> dict[int, ButtplugDevice]:
        return dict(self._devices)

    async def connect(self, address: str) -> None:
        """Open the websocket, handshake, and announce already-known devices."""

        if self.connected:
            raise ButtplugConnectionError("Client is already connected")

        session = self._ensure_session()
        try:
            async with asyncio.timeout(self.connect_timeout):
                self._ws = await session.ws_connect(address)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            await self._release_session()
            raise ButtplugConnectionError(
                f"Unable to reach control server at {address}: {exc or type(exc).__name__}"
            ) from exc

        self._notifications = asyncio.Queue()
        self._reader_task = asyncio.create_task(self._read_loop(self._ws))
        self._notify_task = asyncio.create_task(self._notify_loop(self._notifications))

        try:
            info = await self.send(
                "RequestServerInfo",
                expect="ServerInfo",
                ClientName=self.name,
                MessageVersion=constants.BUTTPLUG_MESSAGE_VERSION,
            )
            device_list = await self.send("RequestDeviceList", expect="DeviceList")
        except ButtplugError as exc:
            await self.disconnect()
            raise ButtplugConnectionError(f"Handshake with {address} failed: {exc}") from exc

        self.server_name = info.get("ServerName")
        self.max_ping_time = int(info.get("MaxPingTime") or 0)
        LOGGER.info(
            "Connected to %s at %s", self.server_name or "control server", address
        )

        if self.max_ping_time > 0:
            self._ping_task = asyncio.create_task(self._ping_loop())

        for entry in device_list.get("Devices") or []:
            if isinstance(entry, Mapping):
                self._add_device(entry)

    async def disconnect(self) -> None:
        """Close the websocket and release owned resources."""

        for task in (self._ping_task, self._reader_task, self._notify_task):
            if task is not None and task is not asyncio.current_task():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._ping_task = None
        self._reader_task = None
        self._notify_task = None

        if self._ws is not None:
            await self._ws.close()
            self._ws = None

        self._fail_pending(ButtplugError("Client disconnected"))
        self._devices.clear()
        await self._release_session()

    async def start_scanning(self) -> None:
        await self.send("StartScanning")

    async def stop_scanning(self) -> None:
        await self.send("StopScanning")

    async def send(
        self, message_type: str, *, expect: str = "Ok", **fields: Any
    ) -> dict[str, Any]:
        """Send one message and wait for its reply.

        Raises:
            ButtplugError: If the server answers with ``Error``, replies with
                an unexpected message, times out, or the connection drops.
        """

        ws = self._ws
        if ws is None or ws.closed:
            raise ButtplugError(f"Cannot send {message_type}: not connected")

        self._message_id += 1
        message_id = self._message_id
        future: asyncio.Future[tuple[str, dict[str, Any]]] = (
            asyncio.get_running_loop().create_future()
        )
        self._pending[message_id] = future
        body = {"Id": message_id, **fields}

        try:
            WIRE_LOGGER.debug(">> %s %s", message_type, body)
            await ws.send_json([{message_type: body}])
            async with asyncio.timeout(self.request_timeout):
                reply_type, reply = await future
        except asyncio.TimeoutError as exc:
            raise ButtplugError(
                f"{message_type} timed out after {self.request_timeout:.1f}s"
            ) from exc
        except (aiohttp.ClientError, ConnectionError) as exc:
            raise ButtplugError(f"Failed to send {message_type}: {exc}") from exc
        finally:
            self._pending.pop(message_id, None)

        if reply_type == "Error":
            raise ButtplugError(
                str(reply.get("ErrorMessage") or f"{message_type} rejected"),
                code=reply.get("ErrorCode"),
            )
        if reply_type != expect:
            raise ButtplugError(
                f"Unexpected reply to {message_type}: {reply_type} (wanted {expect})"
            )
        return reply

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _release_session(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        error: Optional[BaseException] = None
        try:
            async for message in ws:
                if message.type == aiohttp.WSMsgType.TEXT:
                    self._handle_frame(message.data)
                elif message.type == aiohttp.WSMsgType.ERROR:
                    error = ws.exception() or ButtplugError("Websocket error")
                    break
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = exc
            LOGGER.warning("Control server websocket error: %s", exc)
        finally:
            self._fail_pending(ButtplugError("Connection to control server closed"))

        LOGGER.info("Disconnected from control server")
        self._notifications.put_nowait((EventType.DISCONNECTED, error))

    async def _notify_loop(self, queue: asyncio.Queue[tuple[EventType, Any]]) -> None:
        while True:
            event, payload = await queue.get()
            await self._events.publish(event, payload)

    async def _ping_loop(self) -> None:
        interval = self.max_ping_time / 2000.0
        while True:
            await asyncio.sleep(interval)
            try:
                await self.send("Ping")
            except ButtplugError as exc:
                LOGGER.warning("Ping to control server failed: %s", exc)
                return

    def _handle_frame(self, raw_data: str) -> None:
        WIRE_LOGGER.debug("<< %s", raw_data)
        try:
            payload = json.loads(raw_data)
        except json.JSONDecodeError:
            LOGGER.debug("Discarding non-JSON frame from control server")
            return

        if isinstance(payload, Mapping):
            payload = [payload]
        if not isinstance(payload, list):
            return

        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            for message_type, body in entry.items():
                self._handle_message(
                    message_type, dict(body) if isinstance(body, Mapping) else {}
                )

    def _handle_message(self, message_type: str, body: dict[str, Any]) -> None:
        message_id = body.get("Id", SYSTEM_MESSAGE_ID)
        if message_id != SYSTEM_MESSAGE_ID:
            future = self._pending.get(message_id)
            if future is not None and not future.done():
                future.set_result((message_type, body))
            else:
                LOGGER.debug("Dropping reply %s for unknown id %s", message_type, message_id)
            return

        if message_type == "DeviceAdded":
            self._add_device(body)
        elif message_type == "DeviceRemoved":
            device = self._devices.pop(body.get("DeviceIndex"), None)
            if device is not None:
                LOGGER.info("Device removed: %s", device.name)
        elif message_type == "ScanningFinished":
            self._notifications.put_nowait((EventType.SCANNING_FINISHED, None))
        elif message_type == "Error":
            LOGGER.warning("Control server error: %s", body.get("ErrorMessage"))
        else:
            LOGGER.debug("Ignoring unsolicited %s message", message_type)

    def _add_device(self, body: Mapping[str, Any]) -> None:
        index = body.get("DeviceIndex")
        if not isinstance(index, int):
            LOGGER.warning("Ignoring device announcement without an index: %s", body)
            return

        messages = body.get("DeviceMessages")
        device = ButtplugDevice(
            self,
            index,
            str(body.get("DeviceDisplayName") or body.get("DeviceName") or ""),
            messages if isinstance(messages, Mapping) else {},
        )
        self._devices[index] = device
        LOGGER.info(
            "Device added: %s (%d vibrators, %d linear)",
            device.name,
            len(device.vibrate_attributes),
            len(device.linear_attributes),
        )
        self._notifications.put_nowait((EventType.DEVICE_ADDED, device))

    def _fail_pending(self, error: ButtplugError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
