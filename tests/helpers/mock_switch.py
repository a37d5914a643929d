"""Mock TESmart switch served over a real TCP socket."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from tesmart_comm.protocol.frames import FRAME_LENGTH, build_status_frame

logger = logging.getLogger(__name__)


class ResponseMode(Enum):
    """Response mode for the mock switch."""

    NORMAL = "normal"  # Status reply to switch and query commands
    SILENT = "silent"  # Never reply (simulates lost responses)
    CORRUPT = "corrupt"  # Reply with a bad checksum


class MockSwitchServer:
    """Mock TESmart switch speaking the 6-byte frame protocol over TCP."""

    def __init__(
        self,
        response_mode: ResponseMode = ResponseMode.NORMAL,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        """Initialize mock switch.

        Args:
            response_mode: How the switch answers commands
            host: Host to bind to
            port: Port to bind to (0 = OS assigns)

        """
        self.response_mode = response_mode
        self.host = host
        self.port = port
        self.server: asyncio.Server | None = None
        self.received_frames: list[bytes] = []
        self.connection_count = 0
        self.active_input = 1
        self.writers: list[asyncio.StreamWriter] = []
        self.connected = asyncio.Event()
        self._next_reply_suffix = b""

    async def start(self) -> None:
        """Start the mock switch."""
        self.server = await asyncio.start_server(self._handle_client, self.host, self.port)
        if self.port == 0:
            self.port = self.server.sockets[0].getsockname()[1]
        logger.info("Mock switch started on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the mock switch and drop all clients."""
        await self.drop_clients()
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            logger.info("Mock switch stopped")

    async def drop_clients(self) -> None:
        """Close every client connection (simulates a power blip)."""
        for writer in self.writers:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.warning("Error closing writer: %s", e)
        self.writers.clear()
        self.connected.clear()

    async def push_input_change(self, input_number: int) -> None:
        """Send an unsolicited status frame to every client."""
        self.active_input = input_number
        for writer in self.writers:
            writer.write(build_status_frame(input_number))
            await writer.drain()

    def append_to_next_reply(self, data: bytes) -> None:
        """Send ``data`` right after the next reply, as a misbehaving firmware would."""
        self._next_reply_suffix = data

    def _reply_for(self, frame: bytes) -> bytes | None:
        opcode = frame[3]
        if opcode == 0x01:
            self.active_input = frame[4] + 1
        elif opcode != 0x10:
            return None

        if self.response_mode is ResponseMode.SILENT:
            return None
        reply = build_status_frame(self.active_input)
        if self.response_mode is ResponseMode.CORRUPT:
            reply = reply[:5] + bytes([reply[5] ^ 0x01])
        return reply

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Handle one client connection."""
        self.connection_count += 1
        self.writers.append(writer)
        self.connected.set()
        logger.info("Connection #%d from %s", self.connection_count, writer.get_extra_info("peername"))

        try:
            while True:
                frame = await reader.readexactly(FRAME_LENGTH)
                self.received_frames.append(frame)
                reply = self._reply_for(frame)
                if reply is not None:
                    writer.write(reply + self._next_reply_suffix)
                    self._next_reply_suffix = b""
                    await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            logger.info("Client disconnected")
        finally:
            if writer in self.writers:
                self.writers.remove(writer)
            writer.close()
