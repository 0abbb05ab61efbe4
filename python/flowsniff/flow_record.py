"""Finalised flow records and their JSON log representation."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any, Dict

from .addresses import IpAddress, MacAddress, Protocol, ip_from_bytes
from .utils import NANOS_PER_SECOND


@dataclass(frozen=True)
class FlowRecord:
    """One closed group of consecutive frames sharing a MAC pair."""

    protocol: Protocol
    src_ip: IpAddress
    src_mac: MacAddress
    dst_ip: IpAddress
    dst_mac: MacAddress
    bytes: int
    packets: int
    timestamp: int
    raw: bytes = b""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol.value,
            "orig_ip": ip_to_json(self.src_ip),
            "orig_mac": {"octets": list(self.src_mac.octets)},
            "dest_ip": ip_to_json(self.dst_ip),
            "dest_mac": {"octets": list(self.dst_mac.octets)},
            "bytes": self.bytes,
            "packets": self.packets,
            "timestamp": time_to_json(self.timestamp),
            "raw": list(self.raw),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowRecord":
        return cls(
            protocol=Protocol(data["protocol"]),
            src_ip=ip_from_json(data["orig_ip"]),
            src_mac=MacAddress(bytes(data["orig_mac"]["octets"])),
            dst_ip=ip_from_json(data["dest_ip"]),
            dst_mac=MacAddress(bytes(data["dest_mac"]["octets"])),
            bytes=int(data["bytes"]),
            packets=int(data["packets"]),
            timestamp=time_from_json(data["timestamp"]),
            raw=bytes(data.get("raw", [])),
        )


# Wire helpers ----------------------------------------------------------
def ip_to_json(address: IpAddress) -> Dict[str, Any]:
    variant = "V4" if isinstance(address, ipaddress.IPv4Address) else "V6"
    return {variant: {"octets": list(address.packed)}}


def ip_from_json(data: Dict[str, Any]) -> IpAddress:
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Unrecognised IP address entry: {data!r}")
    (variant, body), = data.items()
    address = ip_from_bytes(bytes(body["octets"]))
    expected = ipaddress.IPv4Address if variant == "V4" else ipaddress.IPv6Address
    if variant not in ("V4", "V6") or not isinstance(address, expected):
        raise ValueError(f"IP variant {variant!r} does not match its octets")
    return address


def time_to_json(timestamp_ns: int) -> Dict[str, int]:
    secs, nanos = divmod(int(timestamp_ns), NANOS_PER_SECOND)
    return {"secs_since_epoch": secs, "nanos_since_epoch": nanos}


def time_from_json(data: Dict[str, Any]) -> int:
    return int(data["secs_since_epoch"]) * NANOS_PER_SECOND + int(data["nanos_since_epoch"])


__all__ = [
    "FlowRecord",
    "ip_to_json",
    "ip_from_json",
    "time_to_json",
    "time_from_json",
]
