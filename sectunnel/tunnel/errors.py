"""
Error taxonomy for the tunnel data path.
"""


class TunnelError(Exception):
    """Base class for errors raised by the tunnel core."""


class ShortWriteError(TunnelError):
    """Destination accepted fewer bytes than were handed to it."""

    def __init__(self, expected: int, written: int):
        super().__init__(f"short write: {written} of {expected} bytes")
        self.expected = expected
        self.written = written


class DigestError(TunnelError):
    """A digest accumulator was used after being finalized or released."""


class ConnectionClosedError(ConnectionError):
    """I/O attempted on a connection that was already closed locally."""


# Conditions raised when one side of the pipe has already gone away.
CLOSED_ERRORS = (ConnectionClosedError, BrokenPipeError, ConnectionAbortedError)


def is_closed_error(error: BaseException) -> bool:
    """
    Tell whether an error only reports that a connection was closing or closed.

    Structured exception types are checked first. Errors from transports that
    offer no such type fall back to matching "closed" in their message, which
    can misclassify unrelated errors that happen to mention the word.
    """
    if isinstance(error, CLOSED_ERRORS):
        return True
    return "closed" in str(error).lower()
