"""Core dataclasses and enums for the transport layer."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum


class ConnectionState(Enum):
    """Supervisor connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass
class PendingRequest:
    """Marks a caller awaiting the next inbound frame.

    Attributes:
        correlation_id: UUID v7 for log correlation (never sent on the wire)
        frame: Command frame that was written
        sent_at: Timestamp when the frame was written (time.perf_counter())
        future: Resolved with the first frame read after the write
    """

    correlation_id: str
    frame: bytes
    sent_at: float
    future: asyncio.Future[bytes] = field(repr=False)
