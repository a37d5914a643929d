"""Framed TCP stream to a switch.

The switch sends 6-byte frames with no length prefix. Some firmware appends
a trailing 0xEE to its status replies, so a single stray byte would shift
every later frame. Reads therefore realign on the ``AA BB 03`` marker
before returning a frame.
"""

from __future__ import annotations

import asyncio
import logging

from tesmart_comm.protocol.frames import FRAME_LENGTH, FRAME_MARKER, format_frame

from .exceptions import SendError, SwitchConnectionError


def _partial_marker_length(buffer: bytearray) -> int:
    """Length of the longest marker prefix the buffer ends with."""
    for length in range(len(FRAME_MARKER) - 1, 0, -1):
        if buffer.endswith(FRAME_MARKER[:length]):
            return length
    return 0


class TCPConnection:
    """One TCP stream to a switch, read and written in whole frames.

    Attributes:
        host: Switch host
        port: Switch control port
        connect_timeout: Bound on the dial in seconds
        io_timeout: Bound on flushing one frame in seconds
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 5.0,
        io_timeout: float = 2.0,
        logger: logging.Logger | None = None,
    ):
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.logger = logger or logging.getLogger(__name__)
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self._buffer = bytearray()
        self._connected = False

    @property
    def _log_extra(self) -> dict[str, object]:
        return {"host": self.host, "port": self.port}

    async def connect(self) -> bool:
        """Dial the switch.

        Returns:
            True if connected, False on timeout or socket error
        """
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except TimeoutError:
            self.logger.warning(
                "Dial to %s:%d timed out after %.1fs",
                self.host,
                self.port,
                self.connect_timeout,
                extra={**self._log_extra, "error": "timeout"},
            )
            return False
        except OSError as e:
            self.logger.warning(
                "Dial to %s:%d failed: %s",
                self.host,
                self.port,
                e,
                extra={**self._log_extra, "error": str(e)},
            )
            return False

        self._buffer.clear()
        self._connected = True
        self.logger.info("Connected to %s:%d", self.host, self.port, extra=self._log_extra)
        return True

    async def send(self, frame: bytes) -> None:
        """Write one command frame and flush it.

        Raises:
            SendError: ``short_write`` if the frame is not FRAME_LENGTH bytes,
                ``write_timeout`` or ``write_failed`` if the socket did not take it
        """
        if len(frame) != FRAME_LENGTH:
            self.logger.error(
                "Wrong amount of bytes to send: %d. Expected %d",
                len(frame),
                FRAME_LENGTH,
                extra={**self._log_extra, "bytes": len(frame)},
            )
            raise SendError("short_write")
        if not self._connected or self.writer is None:
            raise SendError("write_failed")

        try:
            self.writer.write(frame)
            await asyncio.wait_for(self.writer.drain(), timeout=self.io_timeout)
        except TimeoutError:
            self.logger.warning(
                "Write of %s stalled for %.1fs",
                format_frame(frame),
                self.io_timeout,
                extra={**self._log_extra, "frame": frame.hex()},
            )
            raise SendError("write_timeout") from None
        except OSError as e:
            self._connected = False
            self.logger.warning(
                "Write of %s failed: %s",
                format_frame(frame),
                e,
                extra={**self._log_extra, "frame": frame.hex(), "error": str(e)},
            )
            raise SendError("write_failed") from e

    async def recv_frame(self, deadline: float, size: int = FRAME_LENGTH) -> bytes | None:
        """Read one marker-aligned frame, waiting at most ``deadline`` seconds.

        Bytes received before the deadline stay buffered for the next call,
        so a frame split over several TCP segments is still read whole.

        Returns:
            The frame, or None if the deadline elapsed (idle, still alive)

        Raises:
            SwitchConnectionError: Peer closed the connection or the socket failed
        """
        if not self._connected or self.reader is None:
            raise SwitchConnectionError("not_connected", "disconnected")

        try:
            return await asyncio.wait_for(self._read_aligned(self.reader, size), timeout=deadline)
        except TimeoutError:
            return None
        except asyncio.IncompleteReadError as e:
            self._connected = False
            self.logger.warning(
                "Connection closed by %s:%d mid-frame (%d bytes pending)",
                self.host,
                self.port,
                len(self._buffer) + len(e.partial),
                extra={**self._log_extra, "partial": (bytes(self._buffer) + e.partial).hex()},
            )
            raise SwitchConnectionError("eof", "connected") from e
        except OSError as e:
            self._connected = False
            self.logger.warning(
                "Read from %s:%d failed: %s",
                self.host,
                self.port,
                e,
                extra={**self._log_extra, "error": str(e)},
            )
            raise SwitchConnectionError("read_failed", "connected") from e

    async def _read_aligned(self, reader: asyncio.StreamReader, size: int) -> bytes:
        # Each readexactly either appends whole or not at all, so a cancelled
        # deadline never loses bytes already moved into self._buffer
        while True:
            missing = size - len(self._buffer)
            if missing > 0:
                self._buffer += await reader.readexactly(missing)

            start = self._buffer.find(FRAME_MARKER)
            if start == 0:
                frame = bytes(self._buffer[:size])
                del self._buffer[:size]
                self.logger.debug("← %s", format_frame(frame), extra=self._log_extra)
                return frame

            if start < 0:
                start = len(self._buffer) - _partial_marker_length(self._buffer)
            self.logger.warning(
                "Discarding %d unaligned bytes: %s",
                start,
                format_frame(bytes(self._buffer[:start])),
                extra={**self._log_extra, "discarded": self._buffer[:start].hex()},
            )
            del self._buffer[:start]

    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        writer = self.writer
        self._connected = False
        self.writer = None
        self.reader = None
        self._buffer.clear()
        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except (OSError, ConnectionError) as e:
            self.logger.debug("Socket already broken on close: %s", e, extra=self._log_extra)
        self.logger.info("Closed connection to %s:%d", self.host, self.port, extra=self._log_extra)

    @property
    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"TCPConnection({self.host}:{self.port}, {status})"
