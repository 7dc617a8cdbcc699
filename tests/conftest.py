"""
Pytest configuration for sectunnel tests.
"""

import os
import sys
from typing import List, Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables
os.environ["SECTUNNEL_LOG_LEVEL"] = "DEBUG"
os.environ["SECTUNNEL_RELAY_BUFFER_SIZE"] = "16384"
os.environ["SECTUNNEL_LIVENESS_INTERVAL"] = "2.0"


class ChunkedSource:
    """Readable fake connection handing out pre-set chunks, then EOF or an error."""

    def __init__(
        self,
        chunks: List[bytes],
        error: Optional[Exception] = None,
        peername=("10.0.0.1", 5000)
    ):
        self._chunks = [bytes(c) for c in chunks]
        self.error = error
        self.peername = peername
        self.reads = 0
        self.read_timeout = 30.0
        self.closed = False

    def set_read_timeout(self, timeout):
        self.read_timeout = timeout

    async def read(self, buffer) -> int:
        self.reads += 1
        if not self._chunks:
            if self.error is not None:
                raise self.error
            return 0
        chunk = self._chunks[0]
        n = min(len(buffer), len(chunk))
        buffer[:n] = chunk[:n]
        if n < len(chunk):
            self._chunks[0] = chunk[n:]
        else:
            self._chunks.pop(0)
        return n

    async def close(self):
        self.closed = True


class RecordingSink:
    """Writable fake connection recording everything it accepts."""

    def __init__(
        self,
        accept_limit: Optional[int] = None,
        error: Optional[Exception] = None,
        peername=("10.0.0.2", 6000)
    ):
        self.accept_limit = accept_limit
        self.error = error
        self.peername = peername
        self.data = bytearray()
        self.writes = []
        self.write_timeout = 30.0
        self.closed = False

    def set_write_timeout(self, timeout):
        self.write_timeout = timeout

    async def write(self, buffer) -> int:
        if self.error is not None:
            raise self.error
        n = len(buffer)
        if self.accept_limit is not None:
            n = min(n, self.accept_limit)
        self.writes.append(bytes(buffer[:n]))
        self.data += buffer[:n]
        return n

    async def close(self):
        self.closed = True


class LivenessRecorder:
    """Liveness sink recording every notification."""

    def __init__(self):
        self.calls = []

    def active(self, timestamp):
        self.calls.append(timestamp)


class StepClock:
    """Clock advancing by a fixed step each time it is read."""

    def __init__(self, step: float, start: float = 1_000_000.0):
        self.step = step
        self.now = start

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def source_factory():
    """Build chunked source connections."""
    return ChunkedSource


@pytest.fixture
def sink_factory():
    """Build recording destination connections."""
    return RecordingSink


@pytest.fixture
def liveness():
    """Provide a liveness recorder."""
    return LivenessRecorder()


@pytest.fixture
def step_clock():
    """Build fake clocks."""
    return StepClock


@pytest.fixture
def secret():
    """Provide a 32-byte shared secret."""
    from sectunnel.crypto import generate_secret
    return generate_secret()


@pytest.fixture
def cipher_pair(secret):
    """Provide matching (initiator, responder) ciphers."""
    from sectunnel.crypto import StreamCipher
    return StreamCipher.pair(secret)


@pytest.fixture
def session_controller():
    """Provide a session controller."""
    from sectunnel.session import SessionController
    return SessionController(idle_timeout=60)
