"""
One-way and two-way byte relays between tunnel connections.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from ..config import get_settings
from .connection import connection_identifier
from .errors import ShortWriteError, is_closed_error
from .utils import human_size

logger = logging.getLogger("sectunnel.relay")

SessionId = Union[int, str]


@dataclass(frozen=True)
class RelayOutcome:
    """Summary of a finished relay, for logging and stats."""
    session_id: SessionId
    source: str
    destination: str
    written: int
    error: Optional[BaseException] = None

    @property
    def graceful(self) -> bool:
        """True when the relay ended at EOF or because a side was closed."""
        return self.error is None or is_closed_error(self.error)

    def describe(self) -> str:
        if isinstance(self.session_id, int):
            sid = f"{self.session_id:X}"
        else:
            sid = str(self.session_id)
        line = (
            f"SID#{sid}  {self.source} --- "
            f"{human_size(self.written)} --> {self.destination}"
        )
        if not self.graceful:
            line += f" Error={self.error!r}"
        return line


def _clear_timeout(conn: Any, setter_name: str):
    setter = getattr(conn, setter_name, None)
    if setter is not None:
        setter(None)


async def _close_quietly(conn: Any):
    try:
        await conn.close()
    except Exception as e:
        logger.debug(f"Error closing {connection_identifier(conn)}: {e}")


async def relay(
    destination: Any,
    source: Any,
    session_id: SessionId,
    liveness_sink: Optional[Any],
    *,
    buffer_size: Optional[int] = None,
    liveness_interval: Optional[float] = None,
    clock: Callable[[], float] = time.time
) -> RelayOutcome:
    """
    Copy bytes from ``source`` to ``destination`` until EOF or an error.

    Meant to run as a background task, one per direction. Transport errors
    never escape: they end the loop and are reported in the returned
    ``RelayOutcome``. ``destination`` is always closed on the way out,
    which also ends a sibling relay reading from it.

    Args:
        destination: Connection written to
        source: Connection read from
        session_id: Opaque id used to correlate log lines
        liveness_sink: Object with ``active(timestamp)``, or None
        buffer_size: Size of the reused copy buffer
        liveness_interval: Minimum seconds between liveness notifications
        clock: Wall-clock source in seconds

    Returns:
        RelayOutcome with the byte count and terminal error, if any
    """
    settings = get_settings()
    if buffer_size is None:
        buffer_size = settings.relay_buffer_size
    if liveness_interval is None:
        liveness_interval = settings.liveness_interval

    src_id = connection_identifier(source)
    dst_id = connection_identifier(destination)

    # Idle timeouts only guard the handshake.
    _clear_timeout(source, "set_read_timeout")
    _clear_timeout(destination, "set_write_timeout")

    buf = memoryview(bytearray(buffer_size))
    written = 0
    error: Optional[BaseException] = None
    last_active = clock()

    try:
        while True:
            read_error: Optional[Exception] = None
            try:
                nr = await source.read(buf)
            except Exception as e:
                nr, read_error = 0, e

            if nr > 0:
                try:
                    nw = await destination.write(buf[:nr])
                except Exception as e:
                    error = e
                    break
                if nw > 0:
                    written += nw
                if nw != nr:
                    error = ShortWriteError(nr, nw)
                    break

            # Throttled so a saturated link does not call the sink per read.
            now = clock()
            if read_error is None and now - last_active > liveness_interval:
                last_active = now
                if liveness_sink is not None:
                    liveness_sink.active(now)

            if read_error is not None:
                error = read_error
                break
            if nr == 0:
                break
    finally:
        await _close_quietly(destination)

    outcome = RelayOutcome(
        session_id=session_id,
        source=src_id,
        destination=dst_id,
        written=written,
        error=error
    )
    if outcome.graceful:
        logger.info(outcome.describe())
    else:
        logger.warning(outcome.describe())
    return outcome


async def relay_bidirectional(
    client: Any,
    upstream: Any,
    session_id: SessionId,
    liveness_sink: Optional[Any],
    **kwargs
) -> Tuple[RelayOutcome, RelayOutcome]:
    """
    Run both relay directions concurrently until each has finished.

    Returns:
        (client -> upstream outcome, upstream -> client outcome)
    """
    outbound, inbound = await asyncio.gather(
        relay(upstream, client, session_id, liveness_sink, **kwargs),
        relay(client, upstream, session_id, liveness_sink, **kwargs)
    )
    return outbound, inbound
