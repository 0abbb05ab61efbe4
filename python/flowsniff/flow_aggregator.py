"""Groups consecutive frames sharing a MAC pair into flow records."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from .addresses import IpAddress
from .flow_record import FlowRecord
from .frame import Frame
from .listeners import FlowListener

logger = logging.getLogger(__name__)


class FlowAggregator:
    """Tracks a single open group of frames and closes it when the MAC pair changes.

    A group is finalised when a frame with a different (src MAC, dst MAC)
    pair arrives. The resulting record takes protocol and MACs from the
    group's first frame but its IP addresses from the breaking frame, and is
    stamped with the wall-clock time of finalisation.
    """

    def __init__(
        self,
        listener: Optional[FlowListener] = None,
        *,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._listener = listener
        self._clock = clock
        self._group: List[Frame] = []
        self.finished_flow_count = 0

    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return bool(self._group)

    @property
    def pending_frames(self) -> int:
        return len(self._group)

    # ------------------------------------------------------------------
    def add_frame(self, frame: Optional[Frame]) -> Optional[FlowRecord]:
        """Feed one frame; returns the record finalised by it, if any."""
        if frame is None:
            return None

        if not self._group or self._group[0].mac_pair == frame.mac_pair:
            self._group.append(frame)
            return None

        record = self._build_record(self._group, frame.src_ip, frame.dst_ip)
        self._group = [frame]
        self._emit(record)
        return record

    def finalize(self) -> Optional[FlowRecord]:
        """Flush the trailing open group at end of stream."""
        if not self._group:
            return None
        group, self._group = self._group, []
        last = group[-1]
        record = self._build_record(group, last.src_ip, last.dst_ip)
        self._emit(record)
        return record

    # ------------------------------------------------------------------
    def _build_record(self, group: List[Frame], src_ip: IpAddress, dst_ip: IpAddress) -> FlowRecord:
        first = group[0]
        return FlowRecord(
            protocol=first.protocol,
            src_ip=src_ip,
            src_mac=first.src_mac,
            dst_ip=dst_ip,
            dst_mac=first.dst_mac,
            bytes=sum(len(frame.payload) for frame in group),
            packets=len(group),
            timestamp=self._clock(),
            raw=b"".join(frame.payload for frame in group),
        )

    def _emit(self, record: FlowRecord) -> None:
        self.finished_flow_count += 1
        logger.debug(
            "Closed flow %s -> %s: packets=%d bytes=%d",
            record.src_mac,
            record.dst_mac,
            record.packets,
            record.bytes,
        )
        if self._listener is not None:
            self._listener.on_flow_generated(record)


__all__ = ["FlowAggregator"]
