"""In-memory stand-ins for TCPConnection used by supervisor tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from tesmart_comm.transport.exceptions import SendError, SwitchConnectionError
from tesmart_comm.transport.retry_policy import TimeoutConfig


class FakeConnection:
    """Duck-typed TCPConnection backed by an asyncio.Queue of inbound frames."""

    def __init__(self, host: str, port: int, connect_ok: bool = True, gate: asyncio.Event | None = None):
        self.host = host
        self.port = port
        self.connect_ok = connect_ok
        self.gate = gate
        self.send_ok = True
        self.sent: list[bytes] = []
        self.inbound: asyncio.Queue[bytes | Exception] = asyncio.Queue()
        self.on_send: Callable[[FakeConnection, bytes], None] | None = None
        self.closed = False
        self._connected = False

    async def connect(self) -> bool:
        if self.gate is not None:
            await self.gate.wait()
        self._connected = self.connect_ok
        return self.connect_ok

    async def send(self, data: bytes) -> None:
        if len(data) != 6:
            raise SendError("short_write")
        if not self._connected or not self.send_ok:
            raise SendError("write_failed")
        self.sent.append(data)
        # on_send may raise SendError to fail a write the peer already saw
        if self.on_send is not None:
            self.on_send(self, data)

    async def recv_frame(self, deadline: float, size: int = 6) -> bytes | None:
        if not self._connected:
            raise SwitchConnectionError("not_connected", "disconnected")
        try:
            item = await asyncio.wait_for(self.inbound.get(), timeout=deadline)
        except TimeoutError:
            return None
        if isinstance(item, Exception):
            self._connected = False
            raise item
        return item

    def push(self, frame: bytes) -> None:
        """Queue a frame as if the switch had sent it."""
        self.inbound.put_nowait(frame)

    def drop(self, reason: str = "eof") -> None:
        """Simulate the peer closing the connection."""
        self.inbound.put_nowait(SwitchConnectionError(reason, "connected"))

    async def close(self) -> None:
        self._connected = False
        self.closed = True

    @property
    def is_connected(self) -> bool:
        return self._connected


class FakeNetwork:
    """Connection factory that records every dial.

    ``connect_results`` is consumed one entry per dial; when empty, dials succeed.
    ``on_send`` is installed on every connection created.
    """

    def __init__(self, connect_results: list[bool] | None = None):
        self.connect_results = list(connect_results or [])
        self.connections: list[FakeConnection] = []
        self.gate: asyncio.Event | None = None
        self.on_send: Callable[[FakeConnection, bytes], None] | None = None

    def __call__(self, host: str, port: int, timeout_config: TimeoutConfig) -> FakeConnection:
        ok = self.connect_results.pop(0) if self.connect_results else True
        conn = FakeConnection(host, port, connect_ok=ok, gate=self.gate)
        conn.on_send = self.on_send
        self.connections.append(conn)
        return conn

    @property
    def current(self) -> FakeConnection:
        return self.connections[-1]


def reply_with_status(conn: FakeConnection, _data: bytes) -> None:
    """Answer the n-th command on a connection with a status frame for index n."""
    index = len(conn.sent) - 1
    conn.push(bytes([0xAA, 0xBB, 0x03, 0x11, index, (index + 0x16) & 0xFF]))
