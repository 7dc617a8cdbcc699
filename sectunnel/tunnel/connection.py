"""
Connection wrapper adding stream encryption and traffic digests.
"""

import hashlib
import logging
import socket
from typing import Any, Optional

from ..config import get_settings
from .errors import DigestError
from .utils import format_peer

logger = logging.getLogger("sectunnel.connection")


class SecureConnection:
    """
    Duplex connection decorated with an optional cipher and digests.

    Wraps an owned connection exposing ``read(buffer) -> int``,
    ``write(buffer) -> int`` and ``close()``. Every buffer passing through
    must be writable (``bytearray`` or a ``memoryview`` of one): the cipher
    transforms it in place.

    The pipeline order is fixed so the digests always cover wire bytes:

    - read: underlying read, fold into read digest, decrypt
    - write: encrypt, fold into write digest, underlying write

    Digests are used while fingerprinting the plaintext handshake; the
    cipher once the session switches to encrypted bulk transfer. Nothing
    prevents combining them.

    Example:
        conn = SecureConnection.with_digest(raw)
        ... handshake ...
        fingerprint = conn.read_digest() + conn.write_digest()
        secure = SecureConnection.with_cipher(raw, cipher)
    """

    def __init__(
        self,
        conn: Any,
        cipher: Optional[Any] = None,
        read_digest: Optional[Any] = None,
        write_digest: Optional[Any] = None,
        identifier: Optional[str] = None
    ):
        self.conn = conn
        self.cipher = cipher
        self._read_digest = read_digest
        self._write_digest = write_digest
        self._identifier = identifier

    @classmethod
    def with_digest(
        cls,
        conn: Any,
        algorithm: Optional[str] = None
    ) -> "SecureConnection":
        """Wrap ``conn`` with fresh read and write digests and no cipher."""
        algorithm = algorithm or get_settings().digest_algorithm
        return cls(
            conn,
            read_digest=hashlib.new(algorithm),
            write_digest=hashlib.new(algorithm)
        )

    @classmethod
    def with_cipher(cls, conn: Any, cipher: Any) -> "SecureConnection":
        """Wrap ``conn`` with a stream cipher and no digests."""
        return cls(conn, cipher=cipher)

    async def read(self, buffer) -> int:
        n = await self.conn.read(buffer)
        if n > 0:
            if self._read_digest is not None:
                self._read_digest.update(buffer[:n])
            if self.cipher is not None:
                self.cipher.decrypt(memoryview(buffer)[:n])
        return n

    async def write(self, buffer) -> int:
        if self.cipher is not None:
            self.cipher.encrypt(buffer)
        if self._write_digest is not None:
            self._write_digest.update(buffer)
        return await self.conn.write(buffer)

    async def close(self):
        await self.conn.close()

    def close_read(self):
        close_read = getattr(self.conn, "close_read", None)
        if close_read is not None:
            close_read()

    def close_write(self):
        close_write = getattr(self.conn, "close_write", None)
        if close_write is not None:
            close_write()

    def set_read_timeout(self, timeout: Optional[float]):
        setter = getattr(self.conn, "set_read_timeout", None)
        if setter is not None:
            setter(timeout)

    def set_write_timeout(self, timeout: Optional[float]):
        setter = getattr(self.conn, "set_write_timeout", None)
        if setter is not None:
            setter(timeout)

    def set_timeout(self, timeout: Optional[float]):
        self.set_read_timeout(timeout)
        self.set_write_timeout(timeout)

    def set_sock_opt(
        self,
        disable_deadline: int = -1,
        keep_alive: int = -1,
        no_delay: int = -1
    ):
        """
        Tune the underlying connection.

        Each argument is tri-state: negative leaves the setting alone, zero
        disables it, positive enables it. A positive ``disable_deadline``
        removes read and write timeouts. Keep-alive and no-delay are applied
        only to TCP sockets and ignored for anything else.
        """
        if disable_deadline > 0:
            self.set_timeout(None)

        sock = getattr(self.conn, "socket", None)
        if sock is None or sock.family not in (socket.AF_INET, socket.AF_INET6):
            return
        if keep_alive >= 0:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, int(keep_alive > 0))
        if no_delay >= 0:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(no_delay > 0))

    @property
    def has_digests(self) -> bool:
        return self._read_digest is not None or self._write_digest is not None

    def free_digests(self):
        """Drop both digest accumulators."""
        self._read_digest = None
        self._write_digest = None

    def read_digest(self) -> bytes:
        """Finalize the read digest. The accumulator is discarded."""
        if self._read_digest is None:
            raise DigestError("read digest is not active")
        value = self._read_digest.digest()
        self._read_digest = None
        return value

    def write_digest(self) -> bytes:
        """Finalize the write digest. The accumulator is discarded."""
        if self._write_digest is None:
            raise DigestError("write digest is not active")
        value = self._write_digest.digest()
        self._write_digest = None
        return value

    @property
    def peername(self) -> Any:
        return getattr(self.conn, "peername", None)

    @property
    def identifier(self) -> str:
        """Explicit identifier if one was set, else the remote address."""
        if self._identifier:
            return self._identifier
        return format_peer(self.peername)

    @identifier.setter
    def identifier(self, value: Optional[str]):
        self._identifier = value

    def __repr__(self) -> str:
        return (
            f"SecureConnection({self.identifier}, "
            f"cipher={'on' if self.cipher is not None else 'off'}, "
            f"digests={'on' if self.has_digests else 'off'})"
        )


def connection_identifier(conn: Any) -> str:
    """Identity of any connection, honouring explicit identifiers."""
    identifier = getattr(conn, "identifier", None)
    if identifier:
        return identifier
    return format_peer(getattr(conn, "peername", None))
