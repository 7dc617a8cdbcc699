"""Session tracking for sectunnel."""

from .controller import SessionController, TunnelSession

__all__ = ["SessionController", "TunnelSession"]
