"""Real-time frame capture on a network interface via Scapy."""

from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

try:  # pragma: no cover - exercised only when Scapy is available at runtime
    from scapy.all import sniff  # type: ignore
    from scapy.error import Scapy_Exception  # type: ignore
except ImportError:  # pragma: no cover - import guard for optional dependency
    sniff = None  # type: ignore[assignment]
    Scapy_Exception = None  # type: ignore[assignment,misc]


class LiveCaptureError(RuntimeError):
    """Raised when live capture cannot be started or operated."""


FrameHandler = Callable[[bytes], None]


class LiveCapture:
    """Capture raw link-layer frames from one interface in promiscuous mode.

    :meth:`run` blocks in the calling thread and hands every frame's raw
    bytes to the handler in arrival order until Ctrl-C. Errors raised by the
    handler propagate unchanged.
    """

    def __init__(self, interface: str) -> None:
        self.interface = interface
        self.frames_seen = 0

    def run(self, handler: FrameHandler) -> int:
        """Deliver frames to *handler*; returns the number delivered."""
        if sniff is None:  # pragma: no cover - requires Scapy at runtime
            raise LiveCaptureError(
                "Live capture requires the dependency 'scapy'. Install with `pip install scapy`."
            )

        logger.info("Live capture listening on %s", self.interface)
        handler_errors: List[Exception] = []

        def _deliver(packet) -> None:
            self.frames_seen += 1
            try:
                handler(bytes(packet))
            except Exception as exc:
                handler_errors.append(exc)
                raise

        try:
            sniff(iface=self.interface, prn=_deliver, store=False, promisc=True)
        except (OSError, Scapy_Exception) as exc:
            if exc in handler_errors:
                raise
            raise LiveCaptureError(
                f"Failed to receive frames on interface '{self.interface}': {exc}"
            ) from exc

        logger.info("Live capture stopped on %s after %d frames", self.interface, self.frames_seen)
        return self.frames_seen


__all__ = ["LiveCapture", "LiveCaptureError", "FrameHandler"]
