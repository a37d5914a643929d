"""Exception types for switch protocol errors.

Errors raise exceptions instead of returning sentinel values. Everything
derives from SwitchProtocolError so callers can catch the whole family.
"""

from __future__ import annotations


class SwitchProtocolError(Exception):
    """Base exception for all switch protocol errors."""


class FrameDecodeError(SwitchProtocolError):
    """Inbound frame failed marker, opcode, length or checksum validation.

    Attributes:
        reason: Failure reason ("wrong_length", "bad_marker", "bad_opcode", "bad_checksum")
        data_preview: First 16 bytes of the offending data
    """

    def __init__(self, reason: str, data: bytes = b""):
        self.reason = reason
        self.data_preview = bytes(data[:16]) if data else b""
        super().__init__(f"Invalid response: {reason}")


class InvalidParameterError(SwitchProtocolError, ValueError):
    """Command parameter outside the range the device accepts.

    Raised before any I/O takes place; never retried.

    Attributes:
        name: Parameter name
        value: Rejected value
        minimum: Lowest accepted value
        maximum: Highest accepted value
    """

    def __init__(self, name: str, value: int, minimum: int, maximum: int):
        self.name = name
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(f"Invalid {name} value: {value} (expected {minimum}-{maximum})")
