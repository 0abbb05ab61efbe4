"""Interface discovery and live capture factory."""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .live_capture import LiveCapture, LiveCaptureError

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional dependency discovered at runtime
    import psutil  # type: ignore
except Exception:  # pragma: no cover - any import failure disables psutil usage
    psutil = None  # type: ignore


@dataclass(frozen=True)
class PcapDevice:
    """A network interface as reported by the host, in enumeration order."""

    name: str
    addresses: Sequence[str] = ()
    is_loopback: bool = False
    is_up: bool = True


def list_devices() -> List[PcapDevice]:
    """Return the host's interfaces in the order the OS enumerates them.

    psutil supplies addresses and link state; ``socket.if_nameindex`` is
    used when psutil is unavailable or reports nothing.
    """
    devices = _psutil_devices() if psutil is not None else []
    if devices:
        return devices

    try:
        names = [name for _, name in socket.if_nameindex()]
    except OSError:  # pragma: no cover - platform dependent
        logger.debug("socket.if_nameindex() failed", exc_info=True)
        return []
    return [PcapDevice(name=name, is_loopback=_is_loopback(name, ())) for name in names]


def select_capture_interface(devices: Optional[Sequence[PcapDevice]] = None) -> PcapDevice:
    """Return the first interface that is up and not a loopback device."""

    candidates = list_devices() if devices is None else devices
    for device in candidates:
        if device.is_up and not device.is_loopback:
            logger.info("Selected capture interface %s", device.name)
            return device
    raise LiveCaptureError("Failed to find a suitable network interface")


def open_live(interface: Optional[str] = None) -> LiveCapture:
    """Return a LiveCapture on *interface*, or on the first suitable one when omitted."""

    if interface is None:
        interface = select_capture_interface().name
    return LiveCapture(interface)


def _psutil_devices() -> List[PcapDevice]:
    try:
        addrs = psutil.net_if_addrs()  # type: ignore[union-attr]
    except Exception:  # pragma: no cover - enumeration failures fall through to the socket module
        logger.debug("Failed to enumerate interfaces via psutil", exc_info=True)
        return []
    try:
        stats = psutil.net_if_stats()  # type: ignore[union-attr]
    except Exception:  # pragma: no cover - depends on platform support
        logger.debug("psutil.net_if_stats() lookup failed", exc_info=True)
        stats = {}

    ip_families = (socket.AF_INET, socket.AF_INET6)
    devices = []
    for name, entries in addrs.items():
        ips = tuple(
            entry.address
            for entry in entries
            if getattr(entry, "family", None) in ip_families and entry.address
        )
        devices.append(
            PcapDevice(
                name=name,
                addresses=ips,
                is_loopback=_is_loopback(name, ips),
                is_up=bool(getattr(stats.get(name), "isup", True)),
            )
        )
    return devices


def _is_loopback(name: str, addresses: Sequence[str]) -> bool:
    for text in addresses:
        try:
            if ipaddress.ip_address(text.split("%", 1)[0]).is_loopback:
                return True
        except ValueError:
            continue
    return name.lower().startswith(("lo", "loopback"))


__all__ = [
    "PcapDevice",
    "list_devices",
    "select_capture_interface",
    "open_live",
]
