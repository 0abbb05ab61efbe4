"""Filtering, highlighting and rendering of finalised flow records."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import IO, FrozenSet, Optional, Tuple

from .addresses import AddressMatcher, IpAddress, MacAddress
from .config import Config
from .flow_record import FlowRecord
from .log_store import FlowLog
from .resolver import HostnameResolver, Resolver
from .utils import ANSI_HIGHLIGHT, ANSI_RESET, elapsed_seconds, format_ip, truncate_domain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedFlow:
    text: str
    highlighted: bool = False

    def styled(self) -> str:
        prefix = ANSI_HIGHLIGHT if self.highlighted else ANSI_RESET
        return prefix + self.text


class FlowPipeline:
    """Applies a :class:`Config` to flow records and prints the survivors.

    Records that pass the protocol gate are appended to the configured log
    before any exclude or allow-list check runs, so a log always holds every
    record of the selected protocol. IP lists are matched against the
    displayed string, which means hostname mode and numeric mode can filter
    the same traffic differently.
    """

    def __init__(
        self,
        config: Config,
        *,
        resolver: Optional[Resolver] = None,
        output: Optional[IO[str]] = None,
    ) -> None:
        self.config = config
        self.resolver = resolver if resolver is not None else HostnameResolver()
        self.output = output
        self.printed = 0

    # ------------------------------------------------------------------
    def process(self, record: FlowRecord, start_time: int) -> Optional[RenderedFlow]:
        rendered = self.evaluate(record, start_time)
        if rendered is not None:
            stream = self.output if self.output is not None else sys.stdout
            stream.write(rendered.styled() + "\n")
            stream.flush()
            self.printed += 1
        return rendered

    def evaluate(self, record: FlowRecord, start_time: int) -> Optional[RenderedFlow]:
        """Run every pipeline stage except the final write to the output stream."""
        config = self.config

        if config.protocol is not None and record.protocol is not config.protocol:
            logger.debug("Dropping %s flow outside protocol filter", record.protocol)
            return None

        src = self.display_address(record.src_ip)
        dst = self.display_address(record.dst_ip)

        if config.log_file is not None:
            FlowLog(config.log_file, start_time).append(record)

        if _matches_ip(config.exclude_ips, src, dst) or _matches_mac(
            config.exclude_macs, record.src_mac, record.dst_mac
        ):
            return None

        if config.filter_ips is not None and not _matches_ip(config.filter_ips, src, dst):
            return None
        if config.filter_macs is not None and not _matches_mac(
            config.filter_macs, record.src_mac, record.dst_mac
        ):
            return None

        if config.highlight_macs is not None:
            highlighted = _matches_mac(config.highlight_macs, record.src_mac, record.dst_mac)
        elif config.highlight_ips is not None:
            highlighted = _matches_ip(config.highlight_ips, src, dst)
        else:
            highlighted = False

        return RenderedFlow(self.render(record, start_time, (src, dst)), highlighted)

    # ------------------------------------------------------------------
    def display_address(self, address: IpAddress) -> str:
        numeric = format_ip(address)
        if not self.config.hostnames:
            return numeric
        name = self.resolver.resolve(address)
        if name is None or name == numeric:
            return numeric
        return truncate_domain(name, numeric)

    def render(self, record: FlowRecord, start_time: int, display: Tuple[str, str]) -> str:
        src, dst = display
        elapsed = elapsed_seconds(record.timestamp, start_time)
        if self.config.verbose:
            plural = "" if record.packets == 1 else "s"
            return (
                f"{record.protocol} ({record.packets} packet{plural}) at {elapsed:.2f}s: "
                f"{src} ({record.src_mac}) -> {dst} ({record.dst_mac}) {record.bytes}B"
            )
        return f"{record.protocol} at {elapsed:.2f}s: {src} -> {dst}: {record.bytes} bytes"


def _matches_ip(entries: Optional[FrozenSet[AddressMatcher]], src: str, dst: str) -> bool:
    if not entries:
        return False
    return AddressMatcher(src) in entries or AddressMatcher(dst) in entries


def _matches_mac(entries: Optional[FrozenSet[MacAddress]], src: MacAddress, dst: MacAddress) -> bool:
    if not entries:
        return False
    return src in entries or dst in entries


__all__ = ["RenderedFlow", "FlowPipeline"]
