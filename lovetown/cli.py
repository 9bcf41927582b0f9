"""Command-line interface for lovetown."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .api import build_client
from .config import LovetownConfig, load_config
from .core import ActionRequest, SessionState
from .logging import configure_logging
from .session import Session
from .version import __version__

LOGGER = logging.getLogger(__name__)


def _waypoint(value: str) -> tuple[float, float]:
    position, sep, duration = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(
            f"waypoint must look like POSITION:MILLISECONDS, got {value!r}"
        )
    try:
        return float(position), float(duration)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid waypoint {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lovetown", description="Trigger one haptic action through Intiface"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", required=True)

    send_parser = subparsers.add_parser("send", help="Run one action and stop it")
    send_parser.add_argument(
        "--address", help="Intiface websocket address (default from config)"
    )
    send_parser.add_argument(
        "--timeout", type=float, help="Milliseconds before the device is stopped"
    )
    action = send_parser.add_mutually_exclusive_group(required=True)
    action.add_argument(
        "--vibrate",
        type=float,
        nargs="+",
        metavar="SPEED",
        help="Vibration speed in [0.0, 1.0], or one speed per motor",
    )
    action.add_argument(
        "--linear",
        type=float,
        metavar="POSITION",
        help="Target position in [0.0, 1.0] for every linear actuator",
    )
    action.add_argument(
        "--waypoint",
        type=_waypoint,
        nargs="+",
        metavar="POSITION:MS",
        help="One position/duration pair per linear actuator",
    )
    send_parser.add_argument(
        "--linear-duration",
        type=float,
        help="Movement time in milliseconds (default from config)",
    )

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def request_from_args(args: argparse.Namespace, config: LovetownConfig) -> ActionRequest:
    vibrate = None
    if args.vibrate:
        vibrate = args.vibrate[0] if len(args.vibrate) == 1 else tuple(args.vibrate)

    linear = args.linear
    if args.waypoint:
        linear = tuple(args.waypoint)

    linear_duration = None
    if linear is not None:
        linear_duration = args.linear_duration
        if linear_duration is None:
            linear_duration = config.action.linear_duration_ms

    timeout = args.timeout
    if timeout is None:
        timeout = config.action.timeout_ms

    return ActionRequest(
        connect_address=args.address or config.intiface.connect_address,
        timeout=timeout,
        vibrate=vibrate,
        linear=linear,
        linear_duration=linear_duration,
    )


async def run_send(request: ActionRequest, config: LovetownConfig) -> SessionState:
    """Run one session to completion, including the delayed stop."""

    client = build_client(config.intiface)
    session = Session(request, client)
    try:
        state = await session.run()
        if state is not SessionState.CLOSED:
            try:
                state = await asyncio.wait_for(
                    session.wait_closed(), timeout=config.action.scan_wait_seconds
                )
            except asyncio.TimeoutError:
                LOGGER.info(
                    "No matching device within %.0fs", config.action.scan_wait_seconds
                )
        await session.dispatcher.drain()
    finally:
        await client.disconnect()
    return state


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config.logging)

    if args.command == "send":
        try:
            request = request_from_args(args, config)
            asyncio.run(run_send(request, config))
        except ValueError as exc:
            LOGGER.error("Invalid request: %s", exc)
            return 2
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
