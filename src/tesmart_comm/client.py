"""High-level client for a TESmart HDMI matrix switch.

Validates parameters, builds command frames, and hands them to the
connection supervisor. Only queries that the device answers wait for a
reply; configuration commands are fire-and-forget writes.

Usage:
    >>> async with TesmartSwitch("192.168.1.10") as switch:
    ...     await switch.switch_input(3)
    ...     current = await switch.get_current_input()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType

from tesmart_comm.const import (
    LED_TIMEOUT_MAX_SECONDS,
    SUPPORTED_INPUT_COUNTS,
    TESMART_MAX_INPUTS,
    TESMART_PORT,
)
from tesmart_comm.metrics import record_decode_error
from tesmart_comm.protocol import frames
from tesmart_comm.protocol.exceptions import FrameDecodeError, InvalidParameterError
from tesmart_comm.transport.connection_manager import ConnectionFactory, ConnectionManager
from tesmart_comm.transport.retry_policy import RetryPolicy, TimeoutConfig


InputChangeHandler = Callable[[int], None]


class TesmartSwitch:
    """Public façade over one switch connection.

    Attributes:
        host: Switch host
        port: Switch control port
        max_inputs: Port count of the hardware variant (8 or 16)
        on_input_change: Called with the input number of each unsolicited status push
        manager: Underlying ConnectionManager
    """

    def __init__(
        self,
        host: str,
        port: int = TESMART_PORT,
        max_inputs: int = TESMART_MAX_INPUTS,
        on_input_change: InputChangeHandler | None = None,
        timeout_config: TimeoutConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        logger: logging.Logger | None = None,
        connection_factory: ConnectionFactory | None = None,
    ):
        if max_inputs not in SUPPORTED_INPUT_COUNTS:
            msg = f"max_inputs must be one of {SUPPORTED_INPUT_COUNTS}, got {max_inputs}"
            raise ValueError(msg)

        self.host = host
        self.port = port
        self.max_inputs = max_inputs
        self.on_input_change = on_input_change
        self.logger = logger or logging.getLogger(__name__)
        self.manager = ConnectionManager(
            host,
            port,
            timeout_config=timeout_config,
            retry_policy=retry_policy,
            on_unsolicited=self._handle_unsolicited,
            logger=logger,
            connection_factory=connection_factory,
        )

    @classmethod
    async def open(
        cls,
        host: str,
        port: int = TESMART_PORT,
        max_inputs: int = TESMART_MAX_INPUTS,
        on_input_change: InputChangeHandler | None = None,
        timeout_config: TimeoutConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        logger: logging.Logger | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> TesmartSwitch:
        """Create a client and connect it.

        Raises:
            SwitchConnectionError: The initial dial failed
        """
        switch = cls(
            host,
            port,
            max_inputs=max_inputs,
            on_input_change=on_input_change,
            timeout_config=timeout_config,
            retry_policy=retry_policy,
            logger=logger,
            connection_factory=connection_factory,
        )
        await switch.connect()
        return switch

    async def connect(self) -> None:
        """Dial the switch and start background reconnection."""
        await self.manager.start()

    async def close(self) -> None:
        """Close the connection; no further reconnects are attempted."""
        await self.manager.close()

    async def __aenter__(self) -> TesmartSwitch:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self.manager.is_connected

    def _handle_unsolicited(self, frame: bytes) -> None:
        """Decode a device-initiated status push and notify the observer."""
        try:
            input_number = frames.decode_status(frame)
        except FrameDecodeError as e:
            record_decode_error(self.host, e.reason)
            self.logger.warning(
                "Ignoring invalid unsolicited frame: %s (%s)",
                frames.format_frame(frame),
                e.reason,
                extra={"host": self.host, "frame": frame.hex(), "reason": e.reason},
            )
            return

        self.logger.info(
            "Input changed to %d",
            input_number,
            extra={"host": self.host, "input": input_number},
        )
        if self.on_input_change is not None:
            self.on_input_change(input_number)

    def _decode_reply(self, frame: bytes | None) -> int:
        try:
            return frames.decode_status(frame or b"")
        except FrameDecodeError as e:
            record_decode_error(self.host, e.reason)
            self.logger.error(
                "Invalid response: %s (%s)",
                frames.format_frame(frame or b""),
                e.reason,
                extra={"host": self.host, "reason": e.reason},
            )
            raise

    async def switch_input(self, input_number: int) -> int:
        """Select an input and return the input number the switch reports.

        Raises:
            InvalidParameterError: ``input_number`` outside 1..max_inputs
            FrameDecodeError: The reply was not a valid status frame
        """
        if input_number < 1 or input_number > self.max_inputs:
            raise InvalidParameterError("input", input_number, 1, self.max_inputs)

        command = frames.encode_command(frames.SWITCH_INPUT, input_number - 1)
        reply = await self.manager.request(command, expect_response=True)
        return self._decode_reply(reply)

    async def get_current_input(self) -> int:
        """Query the active input.

        Raises:
            FrameDecodeError: The reply was not a valid status frame
        """
        reply = await self.manager.request(frames.GET_CURRENT_INPUT, expect_response=True)
        return self._decode_reply(reply)

    async def set_led_timeout(self, seconds: int) -> None:
        """Set the front-panel LED timeout; 0 disables it."""
        if seconds < 0 or seconds > LED_TIMEOUT_MAX_SECONDS:
            raise InvalidParameterError("LED timeout", seconds, 0, LED_TIMEOUT_MAX_SECONDS)

        command = frames.encode_command(frames.SET_LED_TIMEOUT, seconds)
        await self.manager.request(command, expect_response=False)

    async def mute_buzzer(self) -> None:
        await self.manager.request(frames.MUTE_BUZZER, expect_response=False)

    async def unmute_buzzer(self) -> None:
        await self.manager.request(frames.UNMUTE_BUZZER, expect_response=False)

    async def enable_auto_input_detection(self) -> None:
        """Turn on automatic input detection (8 port model only)."""
        self._warn_auto_detect_unsupported()
        await self.manager.request(frames.ENABLE_AUTO_INPUT_DETECTION, expect_response=False)

    async def disable_auto_input_detection(self) -> None:
        """Turn off automatic input detection (8 port model only)."""
        self._warn_auto_detect_unsupported()
        await self.manager.request(frames.DISABLE_AUTO_INPUT_DETECTION, expect_response=False)

    def _warn_auto_detect_unsupported(self) -> None:
        if self.max_inputs != 8:
            self.logger.warning(
                "Auto input detection is only supported on the 8 port model (max_inputs=%d)",
                self.max_inputs,
                extra={"host": self.host, "max_inputs": self.max_inputs},
            )

    def __repr__(self) -> str:
        return f"TesmartSwitch({self.host}:{self.port}, inputs={self.max_inputs})"
