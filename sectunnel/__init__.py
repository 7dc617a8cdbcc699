"""sectunnel: encrypted connection wrapper and duplex relay for tunnels."""

__version__ = "0.1.0"
