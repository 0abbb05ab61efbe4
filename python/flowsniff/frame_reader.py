"""Frame normalisation and offline PCAP ingestion."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Iterator, Optional, Tuple, Union

import dpkt
from dpkt.ethernet import VLANtag8021Q

from .addresses import MacAddress, Protocol, ip_from_bytes
from .frame import Frame

logger = logging.getLogger(__name__)


def normalize_frame(buf: bytes) -> Optional[Frame]:
    """Decode an Ethernet frame into a :class:`Frame`, or ``None`` to skip it."""
    try:
        ethernet = dpkt.ethernet.Ethernet(buf)
    except (dpkt.UnpackError, ValueError):
        logger.debug("Skipping undecodable Ethernet frame", exc_info=True)
        return None

    payload = ethernet.data
    if isinstance(payload, VLANtag8021Q):
        payload = payload.data

    if isinstance(payload, dpkt.ip.IP):
        protocol = Protocol.from_number(payload.p)
    elif isinstance(payload, dpkt.ip6.IP6):
        protocol = Protocol.from_number(getattr(payload, "p", payload.nxt))
    else:
        # Non-IP ethertypes and IP headers dpkt could not parse both end up here.
        logger.debug("Skipping frame with ethertype 0x%04x", ethernet.type)
        return None

    try:
        src_ip = ip_from_bytes(payload.src)
        dst_ip = ip_from_bytes(payload.dst)
    except ValueError:
        logger.debug("Skipping frame with unparsable address", exc_info=True)
        return None

    return Frame(
        src_mac=MacAddress(ethernet.src),
        dst_mac=MacAddress(ethernet.dst),
        protocol=protocol,
        src_ip=src_ip,
        dst_ip=dst_ip,
        payload=bytes(payload.data),
    )


class FrameReader:
    """Iterates over normalised frames read from a PCAP or PCAPNG capture."""

    def __init__(self, pcap_path: Union[str, Path]) -> None:
        path = Path(pcap_path)
        if not path.is_file():
            raise FileNotFoundError(f"PCAP file does not exist: {path}")

        self.path = path
        self._file: Optional[IO[bytes]] = None
        self._pcap = None
        self._packet_iter: Optional[Iterator[Tuple[float, bytes]]] = None
        self.skipped_frames = 0

    # ------------------------------------------------------------------
    def __enter__(self) -> "FrameReader":
        self._open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    # ------------------------------------------------------------------
    def close(self) -> None:
        self._pcap = None
        if self._file is not None:
            try:
                self._file.close()
            except OSError:
                logger.debug("Failed to close PCAP file", exc_info=True)
            finally:
                self._file = None
        self._packet_iter = None

    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Frame]:
        while True:
            frame = self.next_frame()
            if frame is None:
                break
            yield frame

    def next_frame(self) -> Optional[Frame]:
        self._ensure_iter()
        assert self._packet_iter is not None

        for _ts, buf in self._packet_iter:
            frame = normalize_frame(buf)
            if frame is not None:
                return frame
            self.skipped_frames += 1
        return None

    # ------------------------------------------------------------------
    def _ensure_iter(self) -> None:
        if self._pcap is None or self._packet_iter is None:
            self._open()
            assert self._pcap is not None
            self._packet_iter = iter(self._pcap)

    def _open(self) -> None:
        if self._pcap is not None:
            return
        try:
            self._file = self.path.open("rb")
            if self.path.suffix.lower() == ".pcapng":
                self._pcap = dpkt.pcapng.Reader(self._file)
            else:
                self._pcap = dpkt.pcap.Reader(self._file)
        except (OSError, ValueError, dpkt.dpkt.NeedData) as exc:
            self.close()
            raise RuntimeError(f"Failed to open PCAP file: {self.path}") from exc


__all__ = ["normalize_frame", "FrameReader"]
