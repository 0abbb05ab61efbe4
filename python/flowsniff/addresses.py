"""Address and protocol value types used across frames, flows and config."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Optional, Union

from .utils import format_ip, format_mac

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_MAC_OCTET = re.compile(r"[0-9A-Fa-f]{1,2}")


class ConfigError(ValueError):
    """Raised when a user supplied address or option value cannot be parsed."""


@unique
class Protocol(Enum):
    TCP = "Tcp"
    UDP = "Udp"
    ICMP = "Icmp"
    UNKNOWN = "Unknown"

    @classmethod
    def from_number(cls, number: int) -> "Protocol":
        return _PROTOCOL_NUMBERS.get(number, cls.UNKNOWN)

    @classmethod
    def from_name(cls, name: str) -> Optional["Protocol"]:
        """Map a CLI protocol name; anything unrecognised disables the filter."""
        protocol = _PROTOCOL_NAMES.get(name.strip().lower())
        if protocol is cls.UNKNOWN:
            return None
        return protocol

    def __str__(self) -> str:
        return _PROTOCOL_LABELS[self]


_PROTOCOL_NUMBERS = {1: Protocol.ICMP, 6: Protocol.TCP, 17: Protocol.UDP}
_PROTOCOL_NAMES = {"tcp": Protocol.TCP, "udp": Protocol.UDP, "icmp": Protocol.ICMP}
_PROTOCOL_LABELS = {
    Protocol.TCP: "TCP",
    Protocol.UDP: "UDP",
    Protocol.ICMP: "ICMP",
    Protocol.UNKNOWN: "???",
}


@dataclass(frozen=True)
class MacAddress:
    octets: bytes

    def __post_init__(self) -> None:
        if len(self.octets) != 6:
            raise ValueError(f"MAC address needs 6 octets, got {len(self.octets)}")
        object.__setattr__(self, "octets", bytes(self.octets))

    @classmethod
    def parse(cls, text: str) -> "MacAddress":
        parts = text.strip().split(":")
        if len(parts) != 6 or not all(_MAC_OCTET.fullmatch(part) for part in parts):
            raise ConfigError(f"Invalid MAC address: {text!r}")
        return cls(bytes(int(part, 16) for part in parts))

    def __str__(self) -> str:
        return format_mac(self.octets)


def ip_from_bytes(raw: bytes) -> IpAddress:
    if len(raw) == 4:
        return ipaddress.IPv4Address(bytes(raw))
    if len(raw) == 16:
        return ipaddress.IPv6Address(bytes(raw))
    raise ValueError(f"IP address needs 4 or 16 octets, got {len(raw)}")


@dataclass(frozen=True)
class AddressMatcher:
    """An IP literal or hostname compared against displayed endpoint strings.

    Equality only looks at ``text``, so a matcher built from a display string
    can be used directly for set membership. IP literals are stored in the
    same canonical form the display layer produces.
    """

    text: str
    literal: Optional[IpAddress] = field(default=None, compare=False)

    @classmethod
    def parse(cls, value: str) -> "AddressMatcher":
        text = value.strip()
        if not text:
            raise ConfigError("Empty address in list")
        if ":" in text:
            try:
                address: IpAddress = ipaddress.IPv6Address(text)
            except ipaddress.AddressValueError as exc:
                raise ConfigError(f"Invalid IP address: {text!r}") from exc
            return cls(format_ip(address), literal=address)
        if all(part.isdigit() for part in text.split(".")):
            try:
                address = ipaddress.IPv4Address(text)
            except ipaddress.AddressValueError as exc:
                raise ConfigError(f"Invalid IP address: {text!r}") from exc
            return cls(format_ip(address), literal=address)
        return cls(text)

    @property
    def is_literal(self) -> bool:
        return self.literal is not None

    def __str__(self) -> str:
        return self.text


__all__ = [
    "IpAddress",
    "ConfigError",
    "Protocol",
    "MacAddress",
    "AddressMatcher",
    "ip_from_bytes",
]
