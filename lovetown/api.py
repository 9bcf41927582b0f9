"""Host-facing entry points.

Both functions are fire-and-forget: they return once the session has either
started scanning or given up, and leave the rest (dispatch, the delayed stop)
running on the event loop. Only a malformed request raises.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .adapters import ButtplugClient
from .config import IntifaceConfig
from .core import ActionRequest, DeviceClient, LinearPayload, VibratePayload
from .session import Session

LOGGER = logging.getLogger(__name__)


def build_client(config: Optional[IntifaceConfig] = None) -> ButtplugClient:
    config = config or IntifaceConfig()
    return ButtplugClient(
        config.client_name,
        connect_timeout=config.connect_timeout_seconds,
        request_timeout=config.request_timeout_seconds,
    )


async def open_session(
    request: ActionRequest,
    *,
    client: Optional[DeviceClient] = None,
    config: Optional[IntifaceConfig] = None,
) -> Session:
    """Start a session for ``request`` and return it once scanning has begun."""

    session = Session(request, client or build_client(config))
    state = await session.run()
    LOGGER.debug("Session for %s is %s", request.connect_address, state.value)
    return session


async def lovetown_connect(
    options: Mapping[str, Any],
    *,
    client: Optional[DeviceClient] = None,
    config: Optional[IntifaceConfig] = None,
) -> None:
    """Trigger one haptic action described by host ``options``.

    Recognised keys: ``connectAddress``, ``timeout`` (ms), ``vibrate``,
    ``linear`` and ``linearDuration`` (ms). Snake_case spellings work too.

    Raises:
        ValueError: If the options are malformed (including
            :class:`~lovetown.errors.InvalidAddressError`).
    """

    request = ActionRequest.from_options(options)
    await open_session(request, client=client, config=config)


async def lovetown_send(
    connect_address: str,
    timeout: float,
    vibrate: Optional[VibratePayload] = None,
    linear: Optional[LinearPayload] = None,
    linear_duration: Optional[float] = None,
    *,
    client: Optional[DeviceClient] = None,
    config: Optional[IntifaceConfig] = None,
) -> None:
    """Positional form of :func:`lovetown_connect`."""

    await lovetown_connect(
        {
            "connectAddress": connect_address,
            "timeout": timeout,
            "vibrate": vibrate,
            "linear": linear,
            "linearDuration": linear_duration,
        },
        client=client,
        config=config,
    )
