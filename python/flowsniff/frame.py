"""Canonical representation of one captured link-layer frame."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .addresses import IpAddress, MacAddress, Protocol


@dataclass(frozen=True)
class Frame:
    src_mac: MacAddress
    dst_mac: MacAddress
    protocol: Protocol
    src_ip: IpAddress
    dst_ip: IpAddress
    payload: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", bytes(self.payload))

    @property
    def mac_pair(self) -> Tuple[MacAddress, MacAddress]:
        return (self.src_mac, self.dst_mac)


__all__ = ["Frame"]
