import asyncio
import logging

import pytest

from conftest import FakeDevice
from lovetown.core import ActionRequest, Capability
from lovetown.dispatcher import CommandDispatcher

ADDRESS = "ws://localhost:12345/buttplug"


@pytest.mark.asyncio
async def test_vibrate_then_stop_after_timeout(manual_sleep) -> None:
    device = FakeDevice()
    dispatcher = CommandDispatcher(sleep=manual_sleep)
    request = ActionRequest(ADDRESS, 3000, vibrate=0.7)

    accepted = await dispatcher.dispatch(device, request, Capability.VIBRATE)
    await asyncio.sleep(0)

    assert accepted is True
    assert device.trace == [("vibrate", 0.7)]
    assert manual_sleep.delays == [3.0]
    assert dispatcher.pending_stops == 1

    manual_sleep.release()
    await dispatcher.drain()

    assert device.trace == [("vibrate", 0.7), ("stop", device.name)]
    assert dispatcher.pending_stops == 0


@pytest.mark.asyncio
async def test_stop_does_not_fire_before_timeout() -> None:
    device = FakeDevice()
    dispatcher = CommandDispatcher()
    request = ActionRequest(ADDRESS, 80, vibrate=0.7)
    loop = asyncio.get_running_loop()

    started = loop.time()
    await dispatcher.dispatch(device, request, Capability.VIBRATE)
    await asyncio.sleep(0.02)

    assert ("stop", device.name) not in device.trace

    await dispatcher.drain()

    assert loop.time() - started >= 0.079
    assert device.trace[-1] == ("stop", device.name)


@pytest.mark.asyncio
async def test_linear_command_passes_duration(manual_sleep) -> None:
    device = FakeDevice(vibrators=0, linears=2)
    dispatcher = CommandDispatcher(sleep=manual_sleep)
    request = ActionRequest(ADDRESS, 2000, linear=[[0.5, 0], [1.0, 500]], linear_duration=1000)

    await dispatcher.dispatch(device, request, Capability.LINEAR)
    manual_sleep.release()
    await dispatcher.drain()

    assert device.trace == [
        ("linear", ((0.5, 0.0), (1.0, 500.0)), 1000),
        ("stop", device.name),
    ]
    assert manual_sleep.delays == [2.0]


@pytest.mark.asyncio
async def test_failed_command_is_logged_and_no_stop_is_armed(manual_sleep, caplog) -> None:
    device = FakeDevice(fail_commands=True)
    dispatcher = CommandDispatcher(sleep=manual_sleep)
    request = ActionRequest(ADDRESS, 3000, vibrate=1.0)

    with caplog.at_level(logging.WARNING, logger="lovetown.dispatcher"):
        accepted = await dispatcher.dispatch(device, request, Capability.VIBRATE)

    assert accepted is False
    assert dispatcher.pending_stops == 0
    assert manual_sleep.delays == []
    assert device.trace == [("vibrate", 1.0)]
    assert "Failed to send vibrate command" in caplog.text


@pytest.mark.asyncio
async def test_failed_stop_is_logged(manual_sleep, caplog) -> None:
    class StopFails(FakeDevice):
        async def stop(self) -> None:
            raise ConnectionError("socket closed")

    device = StopFails()
    dispatcher = CommandDispatcher(sleep=manual_sleep)
    request = ActionRequest(ADDRESS, 10, vibrate=0.5)

    with caplog.at_level(logging.WARNING, logger="lovetown.dispatcher"):
        await dispatcher.dispatch(device, request, Capability.VIBRATE)
        manual_sleep.release()
        await dispatcher.drain()

    assert "Failed to stop Fake Vibrator" in caplog.text


@pytest.mark.asyncio
async def test_unsupported_capability_is_not_dispatched(manual_sleep) -> None:
    device = FakeDevice()
    dispatcher = CommandDispatcher(sleep=manual_sleep)
    request = ActionRequest(ADDRESS, 10, vibrate=0.5)

    assert await dispatcher.dispatch(device, request, Capability.UNSUPPORTED) is False
    assert device.trace == []
    assert dispatcher.pending_stops == 0
