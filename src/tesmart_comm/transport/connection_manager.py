"""Connection supervisor: one live TCP link to the switch, kept alive.

State machine::

    DISCONNECTED -> CONNECTING -> CONNECTED -> RECONNECTING -> CONNECTING -> ...
                                      \\
                                       -> CLOSED (explicit shutdown, terminal)

A single supervisor task runs the read loop for the current connection.
When the loop reports a fault (EOF, socket error, failed write) the
supervisor tears the connection down, fails any pending request, and
redials with exponential backoff until it succeeds or shutdown is
requested. Idle read deadlines are not faults.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import time
import uuid
from collections.abc import Callable
from typing import cast

from uuid_extensions import uuid7

from tesmart_comm.metrics import (
    record_connection_state,
    record_frame_recv,
    record_frame_sent,
    record_reconnection,
    record_request_latency,
    record_response_timeout,
)
from tesmart_comm.protocol.frames import format_frame

from .correlator import ResponseCorrelator, UnsolicitedHandler
from .exceptions import ResponseTimeoutError, SendError, SwitchConnectionError
from .retry_policy import RetryPolicy, TimeoutConfig
from .socket_abstraction import TCPConnection
from .types import ConnectionState

ConnectionFactory = Callable[[str, int, TimeoutConfig], TCPConnection]


def default_connection_factory(
    host: str,
    port: int,
    timeout_config: TimeoutConfig,
    logger: logging.Logger | None = None,
) -> TCPConnection:
    """Build a TCPConnection from a timeout configuration."""
    return TCPConnection(
        host,
        port,
        connect_timeout=timeout_config.connect_timeout_seconds,
        io_timeout=timeout_config.write_timeout_seconds,
        logger=logger,
    )


class ConnectionManager:
    """Owns the switch socket, its read loop, and reconnection.

    Usage:
        >>> mgr = ConnectionManager("192.168.1.10", 5000, on_unsolicited=print)
        >>> await mgr.start()  # raises SwitchConnectionError if the first dial fails
        >>> reply = await mgr.request(GET_CURRENT_INPUT, expect_response=True)
        >>> await mgr.close()

    Attributes:
        host: Switch host
        port: Switch control port
        timeout_config: Dial, read-deadline and response timeouts
        retry_policy: Backoff between reconnect attempts
        state: Current ConnectionState
        generation: Incremented on every successful dial
        conn: Current TCPConnection, None while disconnected
        correlator: ResponseCorrelator bound to the current connection
    """

    def __init__(
        self,
        host: str,
        port: int,
        timeout_config: TimeoutConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        on_unsolicited: UnsolicitedHandler | None = None,
        logger: logging.Logger | None = None,
        connection_factory: ConnectionFactory | None = None,
    ):
        self.host = host
        self.port = port
        self.timeout_config = timeout_config or TimeoutConfig()
        self.retry_policy = retry_policy or RetryPolicy()
        self.on_unsolicited = on_unsolicited
        self.logger = logger or logging.getLogger(__name__)
        self.connection_factory: ConnectionFactory = connection_factory or functools.partial(
            default_connection_factory,
            logger=self.logger,
        )

        self.state = ConnectionState.DISCONNECTED
        self.generation = 0
        self.conn: TCPConnection | None = None
        self.correlator = ResponseCorrelator(on_unsolicited, self.logger)
        self.supervisor_task: asyncio.Task[None] | None = None

        self._request_lock = asyncio.Lock()
        self._shutdown = asyncio.Event()
        self._connected = asyncio.Event()

    @property
    def is_connected(self) -> bool:
        """Whether a live connection is current."""
        return (
            self.state is ConnectionState.CONNECTED
            and self.conn is not None
            and self.conn.is_connected
        )

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        self.logger.info(
            "Connection state %s -> %s",
            self.state.value,
            state.value,
            extra={"host": self.host, "port": self.port, "state": state.value},
        )
        self.state = state
        if state is ConnectionState.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()
        record_connection_state(self.host, state.value)

    async def _dial(self) -> bool:
        """Dial once; on success install a fresh connection and correlator."""
        self._set_state(ConnectionState.CONNECTING)
        conn = self.connection_factory(self.host, self.port, self.timeout_config)
        if not await conn.connect():
            await conn.close()
            return False

        self.conn = conn
        self.generation += 1
        self.correlator = ResponseCorrelator(self.on_unsolicited, self.logger)
        self._set_state(ConnectionState.CONNECTED)
        return True

    async def start(self) -> None:
        """Dial the switch and start the supervisor.

        Raises:
            SwitchConnectionError: The initial dial failed, or the manager was closed
        """
        if self.state is ConnectionState.CLOSED:
            raise SwitchConnectionError("closed", self.state.value)
        if self.supervisor_task is not None:
            return

        if not await self._dial():
            self._set_state(ConnectionState.DISCONNECTED)
            raise SwitchConnectionError(
                f"failed to connect to {self.host}:{self.port}",
                ConnectionState.CONNECTING.value,
            )

        self.supervisor_task = asyncio.create_task(
            self._supervise(),
            name=f"tesmart-supervisor-{self.host}:{self.port}",
        )

    async def wait_connected(self, timeout: float | None = None) -> bool:
        """Wait until a connection is current.

        Returns:
            True if connected within ``timeout``, False otherwise
        """
        try:
            await asyncio.wait_for(self._connected.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def _supervise(self) -> None:
        """Run read loops and reconnect after faults until shutdown."""
        while not self._shutdown.is_set():
            conn = self.conn
            if conn is None:
                break
            reason = await self._read_loop(conn, self.correlator, self.generation)
            if self._shutdown.is_set():
                break

            self.logger.warning(
                "Disconnected from %s:%d (%s)",
                self.host,
                self.port,
                reason,
                extra={"host": self.host, "port": self.port, "reason": reason},
            )
            await self._teardown(conn, self.correlator, reason)
            await self._reconnect(reason)

    async def _read_loop(
        self,
        conn: TCPConnection,
        correlator: ResponseCorrelator,
        generation: int,
    ) -> str:
        """Read frames until the connection faults.

        Returns:
            The fault reason
        """
        deadline = self.timeout_config.read_deadline_seconds
        while not self._shutdown.is_set():
            if generation != self.generation:
                return "stale"
            if not conn.is_connected:
                return "connection_closed"
            try:
                frame = await conn.recv_frame(deadline)
            except SwitchConnectionError as e:
                return e.reason
            if frame is None:
                continue
            if generation != self.generation:
                # Connection was replaced while this read was in flight
                return "stale"
            delivered = correlator.dispatch(frame)
            record_frame_recv(self.host, "response" if delivered else "unsolicited")
        return "shutdown"

    async def _teardown(
        self,
        conn: TCPConnection,
        correlator: ResponseCorrelator,
        reason: str,
    ) -> None:
        self._set_state(ConnectionState.RECONNECTING)
        correlator.fail_pending(
            SwitchConnectionError(f"connection lost ({reason})", ConnectionState.RECONNECTING.value),
        )
        await conn.close()
        if self.conn is conn:
            self.conn = None

    async def _reconnect(self, reason: str) -> None:
        """Redial with backoff until connected or shut down."""
        attempt = 0
        while not self._shutdown.is_set():
            record_reconnection(self.host, reason)
            if await self._dial():
                self.logger.info(
                    "Reconnected to %s:%d after %d failed attempts",
                    self.host,
                    self.port,
                    attempt,
                    extra={"host": self.host, "port": self.port, "attempts": attempt},
                )
                return

            self._set_state(ConnectionState.RECONNECTING)
            delay = self.retry_policy.get_delay(attempt)
            attempt += 1
            self.logger.warning(
                "Reconnect to %s:%d failed, retrying in %.2fs (attempt %d)",
                self.host,
                self.port,
                delay,
                attempt,
                extra={"host": self.host, "port": self.port, "delay": delay, "attempt": attempt},
            )
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._shutdown.wait(), timeout=delay)

    async def _fault(self, conn: TCPConnection, reason: str) -> None:
        """Close a connection the command path found broken; the read loop reconnects."""
        self.logger.warning(
            "Closing faulted connection to %s:%d (%s)",
            self.host,
            self.port,
            reason,
            extra={"host": self.host, "port": self.port, "reason": reason},
        )
        await conn.close()

    async def request(
        self,
        frame: bytes,
        expect_response: bool = True,
        timeout: float | None = None,
    ) -> bytes | None:
        """Write one command frame and optionally await the next inbound frame.

        Requests are serialized: the protocol cannot tell two outstanding
        requests apart. A command is written at most once.

        Args:
            frame: Six-byte command frame
            expect_response: Wait for the correlated reply
            timeout: Response timeout override in seconds

        Returns:
            The reply frame, or None for fire-and-forget commands

        Raises:
            SwitchConnectionError: Not connected, or the link dropped while waiting
            SendError: The frame could not be written in full
            ResponseTimeoutError: No reply within the response timeout
        """
        async with self._request_lock:
            conn = self.conn
            if not self.is_connected or conn is None:
                raise SwitchConnectionError("not connected", self.state.value)

            correlation_id = str(cast(uuid.UUID, uuid7()))
            correlator = self.correlator
            pending = correlator.begin(correlation_id, frame) if expect_response else None

            try:
                self.logger.debug(
                    "→ Sending %s",
                    format_frame(frame),
                    extra={
                        "host": self.host,
                        "correlation_id": correlation_id,
                        "expect_response": expect_response,
                    },
                )
                try:
                    await conn.send(frame)
                except SendError as e:
                    record_frame_sent(self.host, e.reason)
                    if e.reason != "short_write":
                        await self._fault(conn, e.reason)
                    raise
                record_frame_sent(self.host, "success")

                if pending is None:
                    return None

                wait_seconds = timeout if timeout is not None else self.timeout_config.response_timeout_seconds
                try:
                    response = await asyncio.wait_for(pending.future, timeout=wait_seconds)
                except TimeoutError:
                    self.logger.warning(
                        "✗ No response within %.2fs",
                        wait_seconds,
                        extra={"host": self.host, "correlation_id": correlation_id},
                    )
                    record_response_timeout(self.host)
                    raise ResponseTimeoutError(wait_seconds, correlation_id) from None

                elapsed = time.perf_counter() - pending.sent_at
                record_request_latency(self.host, elapsed)
                self.logger.debug(
                    "✓ Response %s in %.1fms",
                    format_frame(response),
                    elapsed * 1000,
                    extra={"host": self.host, "correlation_id": correlation_id},
                )
                return response
            finally:
                if pending is not None:
                    correlator.cancel(pending)
                    # Link failure may have resolved the future while we never awaited it
                    if pending.future.done() and not pending.future.cancelled():
                        pending.future.exception()

    async def close(self) -> None:
        """Shut down: stop the read loop, fail any waiter, close the socket.

        No reconnect is attempted afterwards. Safe to call more than once.
        """
        if self.state is ConnectionState.CLOSED:
            return
        self._shutdown.set()

        task = self.supervisor_task
        self.supervisor_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self.correlator.fail_pending(SwitchConnectionError("closed", ConnectionState.CLOSED.value))
        if self.conn is not None:
            await self.conn.close()
            self.conn = None
        self._set_state(ConnectionState.CLOSED)

    def __repr__(self) -> str:
        return f"ConnectionManager({self.host}:{self.port}, {self.state.value}, generation={self.generation})"
