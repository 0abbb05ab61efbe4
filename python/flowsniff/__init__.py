"""Link-layer flow aggregation, filtering and JSON log replay."""

from .addresses import AddressMatcher, ConfigError, MacAddress, Protocol
from .frame import Frame
from .frame_reader import FrameReader, normalize_frame
from .flow_record import FlowRecord
from .flow_aggregator import FlowAggregator
from .config import Config
from .resolver import HostnameResolver
from .pipeline import FlowPipeline, RenderedFlow
from .log_store import FlowLog, LogDocument, LogFormatError, load_document
from .replay import replay
from .live_capture import LiveCapture, LiveCaptureError
from .pcap_compat import (
    PcapDevice,
    list_devices,
    open_live,
    select_capture_interface,
)

__all__ = [
    "AddressMatcher",
    "ConfigError",
    "MacAddress",
    "Protocol",
    "Frame",
    "FrameReader",
    "normalize_frame",
    "FlowRecord",
    "FlowAggregator",
    "Config",
    "HostnameResolver",
    "FlowPipeline",
    "RenderedFlow",
    "FlowLog",
    "LogDocument",
    "LogFormatError",
    "load_document",
    "replay",
    "LiveCapture",
    "LiveCaptureError",
    "PcapDevice",
    "list_devices",
    "open_live",
    "select_capture_interface",
]
