"""Presentation helpers shared by the CLI commands."""

from datetime import datetime, timezone

_BYTE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def bytes_to_human(size: int) -> str:
    """Format a byte count using binary multiples (e.g. ``1.5 KB``)."""
    value = float(size)
    for unit in _BYTE_UNITS:
        if abs(value) < 1024.0 or unit == _BYTE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.2f} {unit}"
        value /= 1024.0
    return f"{size} B"


def format_mtime(mtime: int) -> str:
    """Format a POSIX timestamp as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(mtime, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
