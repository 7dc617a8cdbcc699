"""
Formatting helpers for tunnel logging.
"""

from typing import Any

_UNITS = ("KB", "MB", "GB", "TB")


def human_size(size: int) -> str:
    """Render a byte count as a short human readable string, e.g. '48.8KB'."""
    if size < 1024:
        return f"{size}B"
    value = float(size)
    for unit in _UNITS:
        value /= 1024
        if value < 1024 or unit == _UNITS[-1]:
            return f"{value:.1f}{unit}"


def format_peer(peername: Any) -> str:
    """Render a socket peer name as 'host:port' ('[host]:port' for IPv6)."""
    if not peername:
        return "unknown"
    if isinstance(peername, (tuple, list)) and len(peername) >= 2:
        host, port = peername[0], peername[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(peername)
