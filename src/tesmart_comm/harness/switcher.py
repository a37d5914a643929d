"""Switch control harness with structured logging and metrics."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from tesmart_comm.client import TesmartSwitch
from tesmart_comm.const import (
    SUPPORTED_INPUT_COUNTS,
    TESMART_DEBUG,
    TESMART_HOST,
    TESMART_MAX_INPUTS,
    TESMART_METRICS_PORT,
    TESMART_PORT,
)
from tesmart_comm.metrics import start_metrics_server
from tesmart_comm.protocol.exceptions import SwitchProtocolError

from .logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def run_command(switch: TesmartSwitch, args: argparse.Namespace) -> None:
    """Execute one sub-command against a connected switch."""
    command = args.command
    if command == "switch":
        active = await switch.switch_input(args.input)
        print(active)
    elif command == "get":
        print(await switch.get_current_input())
    elif command == "led":
        await switch.set_led_timeout(args.seconds)
    elif command == "mute":
        await switch.mute_buzzer()
    elif command == "unmute":
        await switch.unmute_buzzer()
    elif command == "auto-detect":
        if args.state == "on":
            await switch.enable_auto_input_detection()
        else:
            await switch.disable_auto_input_detection()
    elif command == "watch":
        # Runs until interrupted; input changes arrive via on_input_change
        await asyncio.Event().wait()
    else:
        msg = f"Unknown command: {command}"
        raise ValueError(msg)


async def main_async(args: argparse.Namespace) -> int:
    """Async main entry point."""
    if args.metrics_port:
        try:
            start_metrics_server(args.metrics_port)
            logger.info("Metrics server started on port %d", args.metrics_port)
        except OSError:
            logger.exception("Failed to start metrics server")
            return 1

    switch = TesmartSwitch(
        args.host,
        args.port,
        max_inputs=args.max_inputs,
        on_input_change=lambda n: print(n, flush=True),
    )
    try:
        await switch.connect()
        await run_command(switch, args)
    except SwitchProtocolError as e:
        logger.error("Command %s failed: %s", args.command, e, extra={"command": args.command})
        return 1
    finally:
        await switch.close()

    logger.info("Command %s completed", args.command, extra={"command": args.command})
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(description="Control a TESmart HDMI matrix switch over TCP")
    parser.add_argument(
        "--host",
        default=TESMART_HOST,
        required=TESMART_HOST is None,
        help="Switch IP address or hostname (env: TESMART_HOST)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=TESMART_PORT,
        help=f"Switch control port (default: {TESMART_PORT})",
    )
    parser.add_argument(
        "--max-inputs",
        type=int,
        choices=SUPPORTED_INPUT_COUNTS,
        default=TESMART_MAX_INPUTS,
        help=f"Number of inputs on the switch (default: {TESMART_MAX_INPUTS})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=TESMART_METRICS_PORT,
        help="Serve Prometheus metrics on this port, 0 disables (env: TESMART_METRICS_PORT)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    switch_cmd = commands.add_parser("switch", help="Select an input")
    switch_cmd.add_argument("input", type=int, help="Input number (1-based)")
    commands.add_parser("get", help="Print the current input")
    led_cmd = commands.add_parser("led", help="Set LED timeout in seconds (0 disables)")
    led_cmd.add_argument("seconds", type=int)
    commands.add_parser("mute", help="Mute the buzzer")
    commands.add_parser("unmute", help="Unmute the buzzer")
    auto_cmd = commands.add_parser("auto-detect", help="Toggle auto input detection (8 port model)")
    auto_cmd.add_argument("state", choices=["on", "off"])
    commands.add_parser("watch", help="Print input changes pushed by the switch")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level, force_debug=TESMART_DEBUG)

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
