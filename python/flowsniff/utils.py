"""Utility helpers shared by the capture, display and log layers."""

from __future__ import annotations

import ipaddress
from typing import Union

NANOS_PER_SECOND = 1_000_000_000

ANSI_HIGHLIGHT = "\x1b[1;31m"
ANSI_RESET = "\x1b[0m"


def format_ip(value: Union[bytes, bytearray, str, ipaddress.IPv4Address, ipaddress.IPv6Address]) -> str:
    """Convert a raw IP buffer or address object into a printable string."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) == 4:
            return ".".join(str(b & 0xFF) for b in value)
        if len(value) == 16:
            return str(ipaddress.IPv6Address(bytes(value)))
    return str(value)


def format_mac(value: Union[bytes, bytearray]) -> str:
    # Octets are printed without zero padding, e.g. "0:1b:21:a:3c:ff".
    return ":".join(f"{b:x}" for b in value)


def truncate_domain(name: str, fallback: str) -> str:
    """Reduce a resolved hostname to its last two dot-separated labels.

    Names without any usable label, and IPv6 literals handed back by the
    resolver, are replaced by *fallback* (the numeric address string).
    """
    if ":" in name:
        return fallback
    labels = [label for label in name.split(".") if label]
    if not labels:
        return fallback
    return ".".join(labels[-2:])


def elapsed_seconds(timestamp_ns: int, start_time_ns: int) -> float:
    return (timestamp_ns - start_time_ns) / NANOS_PER_SECOND


__all__ = [
    "NANOS_PER_SECOND",
    "ANSI_HIGHLIGHT",
    "ANSI_RESET",
    "format_ip",
    "format_mac",
    "truncate_domain",
    "elapsed_seconds",
]
