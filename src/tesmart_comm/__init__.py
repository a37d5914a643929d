"""TESmart HDMI matrix switch client over TCP.

Public API:
- TesmartSwitch client façade
- Exception types raised by the client
"""

from tesmart_comm.client import TesmartSwitch
from tesmart_comm.protocol.exceptions import (
    FrameDecodeError,
    InvalidParameterError,
    SwitchProtocolError,
)
from tesmart_comm.transport.exceptions import (
    ResponseTimeoutError,
    SendError,
    SwitchConnectionError,
)

__version__ = "0.1.0"

__all__ = [
    "TesmartSwitch",
    "SwitchProtocolError",
    "FrameDecodeError",
    "InvalidParameterError",
    "SwitchConnectionError",
    "SendError",
    "ResponseTimeoutError",
]
