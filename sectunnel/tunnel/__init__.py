"""Tunnel data path: connection wrapper and relays."""

from .connection import SecureConnection, connection_identifier
from .errors import (
    ConnectionClosedError,
    DigestError,
    ShortWriteError,
    TunnelError,
    is_closed_error,
)
from .relay import RelayOutcome, relay, relay_bidirectional
from .stream import StreamConnection, accept, open_connection

__all__ = [
    "SecureConnection",
    "connection_identifier",
    "ConnectionClosedError",
    "DigestError",
    "ShortWriteError",
    "TunnelError",
    "is_closed_error",
    "RelayOutcome",
    "relay",
    "relay_bidirectional",
    "StreamConnection",
    "accept",
    "open_connection",
]
