"""Value types shared by the session components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, Mapping, Optional, Sequence, Union

VibratePayload = Union[float, tuple[float, ...]]
LinearPayload = Union[float, tuple[tuple[float, float], ...]]


class Capability(str, Enum):
    """Outcome of matching a device against a requested action."""

    VIBRATE = "vibrate"
    LINEAR = "linear"
    UNSUPPORTED = "unsupported"


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SCANNING = "scanning"
    DISPATCHED = "dispatched"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


# Option keys as sent by the host, mapped to field names.
_OPTION_ALIASES = {
    "connectAddress": "connect_address",
    "connect_address": "connect_address",
    "timeout": "timeout",
    "vibrate": "vibrate",
    "linear": "linear",
    "linearDuration": "linear_duration",
    "linear_duration": "linear_duration",
}


@dataclass(slots=True, frozen=True)
class ActionRequest:
    """Validated input for one session.

    Attributes:
        connect_address: Websocket URI of the control server.
        timeout: Milliseconds after dispatch at which the device is stopped.
        vibrate: Intensity for every vibrator, or one intensity per motor.
        linear: Target position for every linear actuator, or one
            ``(position, duration_ms)`` pair per actuator.
        linear_duration: Movement time in milliseconds for a scalar linear
            payload. A linear request without it never qualifies a device.
    """

    connect_address: str
    timeout: float
    vibrate: Optional[VibratePayload] = None
    linear: Optional[LinearPayload] = None
    linear_duration: Optional[float] = None

    def __post_init__(self) -> None:
        if not _is_number(self.timeout) or self.timeout <= 0:
            raise ValueError(f"timeout must be a positive number, got {self.timeout!r}")
        if self.vibrate is not None:
            object.__setattr__(self, "vibrate", _normalize_vibrate(self.vibrate))
        if self.linear is not None:
            object.__setattr__(self, "linear", _normalize_linear(self.linear))
        if self.linear_duration is not None and (
            not _is_number(self.linear_duration) or self.linear_duration <= 0
        ):
            raise ValueError(
                f"linear_duration must be a positive number, got {self.linear_duration!r}"
            )

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ActionRequest":
        """Build a request from host options (camelCase or snake_case keys)."""

        values: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key)
            if name is None:
                raise ValueError(f"Unknown option: {key!r}")
            if value is not None:
                values[name] = value

        for required in ("connect_address", "timeout"):
            if required not in values:
                raise ValueError(f"Missing required option: {required}")

        return cls(**values)

    @property
    def wants_vibrate(self) -> bool:
        # A zero intensity means "no vibration requested".
        return bool(self.vibrate)

    @property
    def wants_linear(self) -> bool:
        # Position 0.0 is a valid target, only an absent or empty payload is "none".
        if self.wants_vibrate or self.linear is None:
            return False
        return not isinstance(self.linear, tuple) or len(self.linear) > 0

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _check_unit(value: Any, label: str) -> float:
    if not _is_number(value) or not 0.0 <= value <= 1.0:
        raise ValueError(f"{label} must be a number in [0.0, 1.0], got {value!r}")
    return float(value)


def _normalize_vibrate(value: Any) -> VibratePayload:
    if _is_number(value):
        return _check_unit(value, "vibrate")
    if isinstance(value, Sequence) and not isinstance(value, str):
        return tuple(_check_unit(item, "vibrate") for item in value)
    raise ValueError(f"vibrate must be a number or a sequence of numbers, got {value!r}")


def _normalize_linear(value: Any) -> LinearPayload:
    if _is_number(value):
        return _check_unit(value, "linear")
    if isinstance(value, Sequence) and not isinstance(value, str):
        waypoints = []
        for item in value:
            if not isinstance(item, Sequence) or isinstance(item, str) or len(item) != 2:
                raise ValueError(
                    f"linear waypoints must be (position, duration) pairs, got {item!r}"
                )
            position, duration = item
            if not _is_number(duration) or duration < 0:
                raise ValueError(f"linear waypoint duration must be >= 0, got {duration!r}")
            waypoints.append((_check_unit(position, "linear position"), float(duration)))
        return tuple(waypoints)
    raise ValueError(f"linear must be a number or a sequence of pairs, got {value!r}")
