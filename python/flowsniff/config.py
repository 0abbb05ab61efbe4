"""Immutable display, filter and logging policy built once at startup."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from .addresses import AddressMatcher, ConfigError, MacAddress, Protocol


@dataclass(frozen=True)
class Config:
    verbose: bool = False
    log_file: Optional[Path] = None
    exclude_ips: Optional[FrozenSet[AddressMatcher]] = None
    exclude_macs: Optional[FrozenSet[MacAddress]] = None
    filter_ips: Optional[FrozenSet[AddressMatcher]] = None
    filter_macs: Optional[FrozenSet[MacAddress]] = None
    highlight_ips: Optional[FrozenSet[AddressMatcher]] = None
    highlight_macs: Optional[FrozenSet[MacAddress]] = None
    protocol: Optional[Protocol] = None
    load_from_file: Optional[Path] = None
    real_time_playback: bool = False
    hostnames: bool = False


def _split(value: str) -> Iterable[str]:
    return [item for item in (part.strip() for part in value.split(",")) if item]


def parse_mac_list(value: str) -> FrozenSet[MacAddress]:
    """Parse a comma-delimited MAC list such as ``aa:bb:cc:dd:ee:ff,0:1:2:3:4:5``."""
    return frozenset(MacAddress.parse(item) for item in _split(value))


def parse_address_list(value: str) -> FrozenSet[AddressMatcher]:
    """Parse a comma-delimited list of IP literals and hostnames."""
    return frozenset(AddressMatcher.parse(item) for item in _split(value))


def parse_protocol(value: Optional[str]) -> Optional[Protocol]:
    if value is None:
        return None
    return Protocol.from_name(value)


__all__ = [
    "Config",
    "ConfigError",
    "parse_mac_list",
    "parse_address_list",
    "parse_protocol",
]
