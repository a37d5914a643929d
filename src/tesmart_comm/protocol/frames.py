"""Fixed-length frame codec for the TESmart matrix switch.

Every frame on the wire is exactly six bytes::

    +------+------+--------+--------+-------+-----------+
    | 0xAA | 0xBB |  0x03  | opcode | value | sentinel  |
    +------+------+--------+--------+-------+-----------+

Commands end in 0xEE. The status response the device sends back carries
the zero-based input index in byte 4 and ``index + 0x16`` in byte 5, so
byte 5 minus byte 4 is always 0x16 for a valid status frame.
"""

from __future__ import annotations

from typing import Final

from tesmart_comm.protocol.exceptions import FrameDecodeError

FRAME_LENGTH: Final = 6
FRAME_MARKER: Final = bytes([0xAA, 0xBB, 0x03])
FRAME_TERMINATOR: Final = 0xEE
STATUS_CHECKSUM_OFFSET: Final = 0x16
VALUE_INDEX: Final = 4

OPCODE_SWITCH_INPUT: Final = 0x01
OPCODE_BUZZER: Final = 0x02
OPCODE_LED_TIMEOUT: Final = 0x03
OPCODE_GET_CURRENT_INPUT: Final = 0x10
OPCODE_STATUS: Final = 0x11
OPCODE_AUTO_INPUT_DETECTION: Final = 0x81

SWITCH_INPUT: Final = FRAME_MARKER + bytes([OPCODE_SWITCH_INPUT, 0x00, FRAME_TERMINATOR])
SET_LED_TIMEOUT: Final = FRAME_MARKER + bytes([OPCODE_LED_TIMEOUT, 0x00, FRAME_TERMINATOR])
MUTE_BUZZER: Final = FRAME_MARKER + bytes([OPCODE_BUZZER, 0x00, FRAME_TERMINATOR])
UNMUTE_BUZZER: Final = FRAME_MARKER + bytes([OPCODE_BUZZER, 0x01, FRAME_TERMINATOR])
# Only on the 8 port model
ENABLE_AUTO_INPUT_DETECTION: Final = FRAME_MARKER + bytes(
    [OPCODE_AUTO_INPUT_DETECTION, 0x01, FRAME_TERMINATOR],
)
DISABLE_AUTO_INPUT_DETECTION: Final = FRAME_MARKER + bytes(
    [OPCODE_AUTO_INPUT_DETECTION, 0x00, FRAME_TERMINATOR],
)
GET_CURRENT_INPUT: Final = FRAME_MARKER + bytes([OPCODE_GET_CURRENT_INPUT, 0x00, FRAME_TERMINATOR])

STATUS_RESPONSE_PREFIX: Final = FRAME_MARKER + bytes([OPCODE_STATUS])


def encode_command(template: bytes, value: int) -> bytes:
    """Copy a command template and place ``value`` in the parameter byte.

    The caller range-checks ``value``; anything outside 0-255 is a
    programming error and raises ValueError.

    Example:
        >>> encode_command(SWITCH_INPUT, 2).hex(" ")
        'aa bb 03 01 02 ee'
    """
    command = bytearray(template[:FRAME_LENGTH].ljust(FRAME_LENGTH, b"\x00"))
    command[VALUE_INDEX] = value
    return bytes(command)


def _status_failure(frame: bytes) -> str | None:
    """Return the first validation failure for a status frame, or None."""
    if len(frame) != FRAME_LENGTH:
        return "wrong_length"
    if frame[:3] != FRAME_MARKER:
        return "bad_marker"
    if frame[3] != OPCODE_STATUS:
        return "bad_opcode"
    if (frame[5] - frame[4]) & 0xFF != STATUS_CHECKSUM_OFFSET:
        return "bad_checksum"
    return None


def is_status_frame(frame: bytes) -> bool:
    """Check whether ``frame`` is a well-formed status response."""
    return _status_failure(frame) is None


def decode_status(frame: bytes) -> int:
    """Decode a status response into a one-based input number.

    Raises:
        FrameDecodeError: Frame length, marker, opcode or checksum is wrong
    """
    reason = _status_failure(frame)
    if reason is not None:
        raise FrameDecodeError(reason, frame)
    # Wire index is zero-based
    return frame[VALUE_INDEX] + 1


def build_status_frame(input_number: int) -> bytes:
    """Build the status frame a device reports for ``input_number`` (one-based)."""
    index = input_number - 1
    return STATUS_RESPONSE_PREFIX + bytes([index, (index + STATUS_CHECKSUM_OFFSET) & 0xFF])


def format_frame(frame: bytes) -> str:
    """Render a frame as upper-case hex for logs, e.g. ``AA BB 03 11 02 18``."""
    return frame.hex(" ").upper()
