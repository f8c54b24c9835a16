"""Byte/KB conversion and human-readable formatting (1 KB = 1024 bytes)."""

from __future__ import annotations

KB: int = 1024
MB: int = 1024 * 1024

_UNITS = ("B", "KB", "MB", "GB", "TB")


def kb_to_bytes(kb: float) -> float:
    return kb * KB


def bytes_to_kb(n: float) -> float:
    return n / KB


def format_bytes(n: float) -> str:
    """Format a (possibly negative) byte count, e.g. ``-1.50 KB``."""
    if n == 0:
        return "0 B"
    value = abs(float(n))
    unit = 0
    while value >= KB and unit < len(_UNITS) - 1:
        value /= KB
        unit += 1
    sign = "-" if n < 0 else ""
    return f"{sign}{value:.2f} {_UNITS[unit]}"


def format_signed_bytes(n: float) -> str:
    """Like :func:`format_bytes` but always carries a sign for non-negatives."""
    prefix = "+" if n >= 0 else ""
    return f"{prefix}{format_bytes(n)}"


def format_percent(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.2f}%"
