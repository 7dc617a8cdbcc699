"""
asyncio stream pair exposed as a duplex byte-stream connection.
"""

import asyncio
import logging
import socket
from typing import Any, Optional

from .errors import ConnectionClosedError
from .utils import format_peer

logger = logging.getLogger("sectunnel.stream")


class StreamConnection:
    """
    Duplex connection over an asyncio ``StreamReader``/``StreamWriter`` pair.

    ``read`` fills a caller-provided writable buffer and returns the number
    of bytes stored, with 0 meaning end of stream. ``write`` sends the whole
    buffer and returns its length. Transport errors propagate unchanged.

    Timeouts play the role of deadlines: each read or write is bounded by
    the configured timeout, and ``None`` means no deadline.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        read_timeout: Optional[float] = None,
        write_timeout: Optional[float] = None
    ):
        self._reader = reader
        self._writer = writer
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def socket(self) -> Optional[Any]:
        """Underlying socket, if the transport exposes one."""
        return self._writer.get_extra_info("socket")

    @property
    def peername(self) -> Any:
        return self._writer.get_extra_info("peername")

    def set_read_timeout(self, timeout: Optional[float]):
        self.read_timeout = timeout

    def set_write_timeout(self, timeout: Optional[float]):
        self.write_timeout = timeout

    def set_timeout(self, timeout: Optional[float]):
        """Set both read and write timeouts."""
        self.read_timeout = timeout
        self.write_timeout = timeout

    async def read(self, buffer) -> int:
        if self._closed:
            raise ConnectionClosedError("read on closed connection")
        data = await self._bounded(self._reader.read(len(buffer)), self.read_timeout)
        n = len(data)
        buffer[:n] = data
        return n

    async def write(self, buffer) -> int:
        if self._closed or self._writer.is_closing():
            raise ConnectionClosedError("write on closed connection")
        # The transport may queue the object it is given, and callers reuse
        # their buffers, so hand over a copy.
        self._writer.write(bytes(buffer))
        await self._bounded(self._writer.drain(), self.write_timeout)
        return len(buffer)

    async def close(self):
        """Close both directions; closing twice is harmless."""
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing {format_peer(self.peername)}: {e}")

    def close_read(self):
        """Shut down the receiving side of the socket, if there is one."""
        sock = self.socket
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RD)
        except OSError as e:
            logger.debug(f"close_read on {format_peer(self.peername)}: {e}")

    def close_write(self):
        """Send EOF to the peer when the transport supports half-close."""
        if self._writer.can_write_eof():
            self._writer.write_eof()

    @staticmethod
    async def _bounded(awaitable, timeout: Optional[float]):
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout)


async def open_connection(
    host: str,
    port: int,
    connect_timeout: Optional[float] = None
) -> StreamConnection:
    """Dial ``host:port`` and wrap the resulting streams."""
    reader, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port),
        timeout=connect_timeout
    )
    logger.debug(f"Connected to {host}:{port}")
    return StreamConnection(reader, writer)


def accept(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter
) -> StreamConnection:
    """Wrap the streams handed to an ``asyncio.start_server`` callback."""
    conn = StreamConnection(reader, writer)
    logger.debug(f"Accepted connection from {format_peer(conn.peername)}")
    return conn
