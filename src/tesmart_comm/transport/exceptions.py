"""Exception types for transport layer errors.

Extends the protocol exception hierarchy with connection, send and
response-correlation failures.
"""

from __future__ import annotations

from tesmart_comm.protocol.exceptions import SwitchProtocolError


class SwitchConnectionError(SwitchProtocolError):
    """Connection state error (dial failed, not connected, connection lost).

    Raised when:
    - The initial dial fails (fatal at startup)
    - A command is issued while the supervisor is reconnecting
    - The connection drops while a caller awaits a response

    Named SwitchConnectionError to avoid shadowing the built-in ConnectionError.

    Attributes:
        reason: Specific failure reason
        state: Connection state when error occurred
    """

    def __init__(self, reason: str, state: str = "unknown"):
        self.reason = reason
        self.state = state
        super().__init__(f"Connection error: {reason} (state: {state})")


class SendError(SwitchProtocolError):
    """Command frame could not be written in full.

    Attributes:
        reason: "short_write" (frame is not 6 bytes), "write_timeout" or "write_failed"
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Send failed: {reason}")


class ResponseTimeoutError(SwitchProtocolError):
    """No response frame arrived within the response timeout.

    Attributes:
        timeout_seconds: Timeout value that was exceeded
        correlation_id: Correlation ID of the abandoned request
    """

    def __init__(self, timeout_seconds: float, correlation_id: str = ""):
        self.timeout_seconds = timeout_seconds
        self.correlation_id = correlation_id
        super().__init__(f"No response after {timeout_seconds}s")


class CorrelatorBusyError(SwitchProtocolError):
    """A second request was registered while one is still pending.

    Attributes:
        correlation_id: Correlation ID of the request already in flight
    """

    def __init__(self, correlation_id: str):
        self.correlation_id = correlation_id
        super().__init__(f"Request {correlation_id} is still awaiting a response")
