"""Transport package - TCP connection, supervision and response correlation."""

from .connection_manager import ConnectionManager
from .correlator import ResponseCorrelator
from .exceptions import (
    CorrelatorBusyError,
    ResponseTimeoutError,
    SendError,
    SwitchConnectionError,
)
from .retry_policy import RetryPolicy, TimeoutConfig
from .socket_abstraction import TCPConnection
from .types import ConnectionState, PendingRequest

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "CorrelatorBusyError",
    "PendingRequest",
    "ResponseCorrelator",
    "ResponseTimeoutError",
    "RetryPolicy",
    "SendError",
    "SwitchConnectionError",
    "TCPConnection",
    "TimeoutConfig",
]
