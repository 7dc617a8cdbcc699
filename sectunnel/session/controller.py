"""
Session tracking and liveness for relayed tunnels.
"""

import time
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..config import get_settings
from ..tunnel.connection import SecureConnection
from ..tunnel.relay import RelayOutcome, relay_bidirectional

logger = logging.getLogger("sectunnel.session")


@dataclass
class TunnelSession:
    """A tunneled session; doubles as the liveness sink for its relays."""
    session_id: int
    client: str = ""
    created_at: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)
    bytes_up: int = 0
    bytes_down: int = 0

    def active(self, timestamp: float):
        """Record activity. Called from both relay directions."""
        if timestamp > self.last_active:
            self.last_active = timestamp

    def idle_for(self, now: Optional[float] = None) -> float:
        """Seconds since the last recorded activity."""
        if now is None:
            now = time.time()
        return max(0.0, now - self.last_active)

    def to_dict(self, now: Optional[float] = None) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "session_id": self.session_id,
            "client": self.client,
            "created_at": self.created_at,
            "last_active": self.last_active,
            "idle_seconds": round(self.idle_for(now), 3),
            "bytes_up": self.bytes_up,
            "bytes_down": self.bytes_down
        }


class SessionController:
    """Registry of live sessions, with idle cleanup and relay wiring."""

    def __init__(self, idle_timeout: Optional[float] = None):
        if idle_timeout is None:
            idle_timeout = get_settings().session_idle_timeout
        self.idle_timeout = idle_timeout
        self._sessions: Dict[int, TunnelSession] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def create_session(self, client: str = "") -> TunnelSession:
        """Register a new session with a fresh id."""
        async with self._lock:
            session = TunnelSession(session_id=next(self._ids), client=client)
            self._sessions[session.session_id] = session
        logger.info(f"Session SID#{session.session_id:X} created for {client or 'unknown'}")
        return session

    def get_session(self, session_id: int) -> Optional[TunnelSession]:
        return self._sessions.get(session_id)

    async def remove_session(self, session_id: int) -> bool:
        """Remove a session."""
        async with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                logger.info(f"Session SID#{session_id:X} removed")
                return True
        return False

    def list_sessions(self) -> List[TunnelSession]:
        return list(self._sessions.values())

    def active(self, session_id: int, timestamp: float):
        """Forward a liveness notification to a session, if it still exists."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.active(timestamp)

    async def cleanup_idle(self, now: Optional[float] = None) -> int:
        """Remove sessions idle for longer than ``idle_timeout``."""
        if now is None:
            now = time.time()
        async with self._lock:
            idle = [
                sid for sid, session in self._sessions.items()
                if session.idle_for(now) > self.idle_timeout
            ]
            for sid in idle:
                del self._sessions[sid]
        if idle:
            logger.info(f"Cleaned up {len(idle)} idle sessions")
        return len(idle)

    async def serve(
        self,
        session: TunnelSession,
        client: SecureConnection,
        upstream: SecureConnection,
        **relay_options
    ) -> Tuple[RelayOutcome, RelayOutcome]:
        """
        Relay a session in both directions until both sides are done.

        The session is removed once both relays have finished.
        """
        settings = get_settings()
        for conn in (client, upstream):
            conn.set_sock_opt(
                disable_deadline=1,
                keep_alive=settings.keep_alive,
                no_delay=settings.no_delay
            )
        try:
            outbound, inbound = await relay_bidirectional(
                client, upstream, session.session_id, session, **relay_options
            )
            session.bytes_up += outbound.written
            session.bytes_down += inbound.written
        finally:
            await self.remove_session(session.session_id)
        return outbound, inbound

    @property
    def count(self) -> int:
        """Get count of live sessions."""
        return len(self._sessions)
