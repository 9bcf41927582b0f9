"""Shared fakes for session tests."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from lovetown.core import EventBus, EventType
from lovetown.errors import ButtplugError


class FakeDevice:
    """Device handle that records every command into a shared trace."""

    def __init__(
        self,
        name: str = "Fake Vibrator",
        *,
        index: int = 0,
        vibrators: int = 1,
        linears: int = 0,
        trace: Optional[list[tuple[Any, ...]]] = None,
        fail_commands: bool = False,
    ) -> None:
        self.index = index
        self.name = name
        self.vibrate_attributes = list(range(vibrators))
        self.linear_attributes = list(range(linears))
        self.trace = trace if trace is not None else []
        self.fail_commands = fail_commands

    async def vibrate(self, speed: Any) -> None:
        self.trace.append(("vibrate", speed))
        if self.fail_commands:
            raise ButtplugError("Device rejected ScalarCmd")

    async def linear(self, position: Any, duration: Optional[float] = None) -> None:
        self.trace.append(("linear", position, duration))
        if self.fail_commands:
            raise ButtplugError("Device rejected LinearCmd")

    async def stop(self) -> None:
        self.trace.append(("stop", self.name))


class FakeClient:
    """Minimal stand-in for ButtplugClient used in session tests."""

    def __init__(
        self,
        *,
        connect_error: Optional[Exception] = None,
        trace: Optional[list[tuple[Any, ...]]] = None,
    ) -> None:
        self.events = EventBus()
        self.connect_error = connect_error
        self.trace = trace if trace is not None else []
        self.disconnect_count = 0

    async def connect(self, address: str) -> None:
        self.trace.append(("connect", address))
        if self.connect_error is not None:
            raise self.connect_error

    async def start_scanning(self) -> None:
        self.trace.append(("start_scanning",))

    async def stop_scanning(self) -> None:
        self.trace.append(("stop_scanning",))

    async def disconnect(self) -> None:
        self.disconnect_count += 1

    async def announce(self, device: FakeDevice) -> None:
        await self.events.publish(EventType.DEVICE_ADDED, device)

    async def finish_scanning(self) -> None:
        await self.events.publish(EventType.SCANNING_FINISHED, None)

    async def drop_connection(self, error: Optional[Exception] = None) -> None:
        await self.events.publish(EventType.DISCONNECTED, error)


class ManualSleep:
    """Replacement for asyncio.sleep that waits until the test releases it."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._gate = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await self._gate.wait()

    def release(self) -> None:
        self._gate.set()


@pytest.fixture
def trace() -> list[tuple[Any, ...]]:
    return []


@pytest.fixture
def fake_client(trace):
    return FakeClient(trace=trace)


@pytest.fixture
def manual_sleep():
    return ManualSleep()
