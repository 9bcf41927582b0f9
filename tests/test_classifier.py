import pytest

from conftest import FakeDevice
from lovetown.classifier import classify
from lovetown.core import ActionRequest, Capability

ADDRESS = "ws://localhost:12345/buttplug"


@pytest.mark.parametrize(
    "vibrators, linears, expected",
    [
        (1, 0, Capability.VIBRATE),
        (2, 1, Capability.VIBRATE),
        (0, 0, Capability.UNSUPPORTED),
        (0, 1, Capability.UNSUPPORTED),
    ],
)
def test_vibrate_request_needs_vibrators(vibrators, linears, expected) -> None:
    device = FakeDevice(vibrators=vibrators, linears=linears)
    request = ActionRequest(ADDRESS, 3000, vibrate=0.7)

    assert classify(device, request) is expected


@pytest.mark.parametrize(
    "vibrators, linears, expected",
    [
        (0, 1, Capability.LINEAR),
        (3, 2, Capability.LINEAR),
        (1, 0, Capability.UNSUPPORTED),
        (0, 0, Capability.UNSUPPORTED),
    ],
)
def test_linear_request_needs_linear_actuators(vibrators, linears, expected) -> None:
    device = FakeDevice(vibrators=vibrators, linears=linears)
    request = ActionRequest(ADDRESS, 2000, linear=0.5, linear_duration=1000)

    assert classify(device, request) is expected


@pytest.mark.parametrize("linear", [0.5, [[0.5, 0], [1.0, 500]]])
def test_linear_without_duration_never_qualifies(linear) -> None:
    device = FakeDevice(vibrators=4, linears=4)
    request = ActionRequest(ADDRESS, 2000, linear=linear)

    assert classify(device, request) is Capability.UNSUPPORTED


def test_request_without_action_is_unsupported() -> None:
    device = FakeDevice(vibrators=1, linears=1)
    request = ActionRequest(ADDRESS, 2000)

    assert classify(device, request) is Capability.UNSUPPORTED


def test_vibrate_wins_when_both_payloads_are_present() -> None:
    request = ActionRequest(ADDRESS, 2000, vibrate=0.4, linear=0.5, linear_duration=100)

    assert classify(FakeDevice(vibrators=0, linears=1), request) is Capability.UNSUPPORTED
    assert classify(FakeDevice(vibrators=1, linears=1), request) is Capability.VIBRATE
