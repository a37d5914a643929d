"""Switch protocol package - fixed-length frame encoding and decoding.

Public API:
- Command templates and frame constants
- encode_command / decode_status codec functions
- Protocol exception types
"""

from tesmart_comm.protocol.exceptions import (
    FrameDecodeError,
    InvalidParameterError,
    SwitchProtocolError,
)
from tesmart_comm.protocol.frames import (
    DISABLE_AUTO_INPUT_DETECTION,
    ENABLE_AUTO_INPUT_DETECTION,
    FRAME_LENGTH,
    GET_CURRENT_INPUT,
    MUTE_BUZZER,
    SET_LED_TIMEOUT,
    STATUS_CHECKSUM_OFFSET,
    STATUS_RESPONSE_PREFIX,
    SWITCH_INPUT,
    UNMUTE_BUZZER,
    build_status_frame,
    decode_status,
    encode_command,
    format_frame,
    is_status_frame,
)

__all__ = [
    # Codec
    "encode_command",
    "decode_status",
    "is_status_frame",
    "build_status_frame",
    "format_frame",
    # Constants
    "FRAME_LENGTH",
    "STATUS_CHECKSUM_OFFSET",
    "STATUS_RESPONSE_PREFIX",
    "SWITCH_INPUT",
    "SET_LED_TIMEOUT",
    "MUTE_BUZZER",
    "UNMUTE_BUZZER",
    "ENABLE_AUTO_INPUT_DETECTION",
    "DISABLE_AUTO_INPUT_DETECTION",
    "GET_CURRENT_INPUT",
    # Exceptions
    "SwitchProtocolError",
    "FrameDecodeError",
    "InvalidParameterError",
]
