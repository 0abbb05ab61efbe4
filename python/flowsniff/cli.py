"""Command-line entry point for live flow display, logging and log replay."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from .addresses import ConfigError
from .config import Config, parse_address_list, parse_mac_list, parse_protocol
from .flow_aggregator import FlowAggregator
from .flow_record import FlowRecord
from .frame_reader import FrameReader, normalize_frame
from .live_capture import LiveCaptureError
from .log_store import LogFormatError, load_document
from .pcap_compat import open_live
from .pipeline import FlowPipeline
from .replay import replay

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineListener:
    """Forwards every finalised flow to the display pipeline."""

    def __init__(self, pipeline: FlowPipeline, start_time: int) -> None:
        self.pipeline = pipeline
        self.start_time = start_time

    def on_flow_generated(self, record: FlowRecord) -> None:
        self.pipeline.process(record, self.start_time)


def _list_option(parse: Callable[[str], T]) -> Callable[[str], T]:
    def _parse(value: str) -> T:
        try:
            return parse(value)
        except ConfigError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    _parse.__name__ = parse.__name__
    return _parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowsniff",
        description="Group live link-layer traffic into flows, filter and highlight them, "
        "and optionally log or replay them.",
    )
    parser.add_argument(
        "protocol",
        nargs="?",
        help="Protocol to show (tcp, udp or icmp); omit for no filter.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose mode: print MAC addresses and packet counts.",
    )
    parser.add_argument(
        "-l",
        "--log-file",
        type=Path,
        metavar="PATH",
        help="Append every flow of the selected protocol to this JSON log.",
    )
    parser.add_argument(
        "-X",
        "--exclude-ips",
        type=_list_option(parse_address_list),
        metavar="LIST",
        help="Comma-separated IP addresses or hostnames to hide.",
    )
    parser.add_argument(
        "-x",
        "--exclude-macs",
        type=_list_option(parse_mac_list),
        metavar="LIST",
        help="Comma-separated MAC addresses to hide.",
    )
    parser.add_argument(
        "-F",
        "--filter-ips",
        type=_list_option(parse_address_list),
        metavar="LIST",
        help="Only show flows touching one of these IP addresses or hostnames.",
    )
    parser.add_argument(
        "-f",
        "--filter-macs",
        type=_list_option(parse_mac_list),
        metavar="LIST",
        help="Only show flows touching one of these MAC addresses.",
    )
    parser.add_argument(
        "-I",
        "--highlight-ips",
        type=_list_option(parse_address_list),
        metavar="LIST",
        help="Highlight flows touching these IP addresses or hostnames.",
    )
    parser.add_argument(
        "-i",
        "--highlight-macs",
        type=_list_option(parse_mac_list),
        metavar="LIST",
        help="Highlight flows touching these MAC addresses (takes precedence over --highlight-ips).",
    )
    parser.add_argument(
        "-L",
        "--load-from-file",
        type=Path,
        metavar="PATH",
        help="Replay a previously saved log instead of capturing.",
    )
    parser.add_argument(
        "-r",
        "--real-time-playback",
        action="store_true",
        help="Replay the log with its original timing.",
    )
    parser.add_argument(
        "-H",
        "--hostnames",
        action="store_true",
        help="Print hostnames instead of IP addresses.",
    )
    parser.add_argument(
        "--interface",
        metavar="NAME",
        help="Capture on this interface instead of the first non-loopback one that is up.",
    )
    parser.add_argument(
        "--read-pcap",
        type=Path,
        metavar="PATH",
        help="Read frames from a PCAP file instead of a live interface.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Log level for diagnostic output.",
    )
    return parser


def build_config(args: argparse.Namespace) -> Config:
    return Config(
        verbose=args.verbose,
        log_file=args.log_file,
        exclude_ips=args.exclude_ips,
        exclude_macs=args.exclude_macs,
        filter_ips=args.filter_ips,
        filter_macs=args.filter_macs,
        highlight_ips=args.highlight_ips,
        highlight_macs=args.highlight_macs,
        protocol=parse_protocol(args.protocol),
        load_from_file=args.load_from_file,
        real_time_playback=args.real_time_playback,
        hostnames=args.hostnames,
    )


def run_replay(config: Config, pipeline: FlowPipeline) -> int:
    assert config.load_from_file is not None
    try:
        document = load_document(config.load_from_file)
    except LogFormatError as exc:
        logger.error("Cannot replay %s: %s", config.load_from_file, exc)
        return 1

    if config.log_file is not None and config.log_file.resolve() == config.load_from_file.resolve():
        logger.warning("Replaying into the log being replayed; records will be appended again")

    replay(document, pipeline, real_time=config.real_time_playback)
    return 0


def run_capture(
    config: Config,
    pipeline: FlowPipeline,
    *,
    interface: Optional[str] = None,
    read_pcap: Optional[Path] = None,
) -> int:
    start_time = time.time_ns()
    aggregator = FlowAggregator(PipelineListener(pipeline, start_time))

    try:
        try:
            if read_pcap is not None:
                with FrameReader(read_pcap) as reader:
                    for frame in reader:
                        aggregator.add_frame(frame)
            else:
                capture = open_live(interface)
                capture.run(lambda buf: aggregator.add_frame(normalize_frame(buf)))
        except KeyboardInterrupt:
            logger.info("Capture interrupted")
        aggregator.finalize()
    except LiveCaptureError as exc:
        logger.error("Capture failed: %s", exc)
        return 1
    except (OSError, RuntimeError) as exc:
        logger.error("Cannot process flows: %s", exc)
        return 1

    logger.info("Finished capture: flows=%d", aggregator.finished_flow_count)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    if args.real_time_playback and args.load_from_file is None:
        parser.error("--real-time-playback requires --load-from-file.")
    if args.read_pcap is not None and args.interface is not None:
        parser.error("--read-pcap and --interface are mutually exclusive.")

    config = build_config(args)
    pipeline = FlowPipeline(config)

    try:
        if config.load_from_file is not None:
            return run_replay(config, pipeline)
        return run_capture(
            config,
            pipeline,
            interface=args.interface,
            read_pcap=args.read_pcap,
        )
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
