"""Listener interfaces for flow aggregation events."""

from __future__ import annotations

from typing import Protocol

from .flow_record import FlowRecord


class FlowListener(Protocol):
    def on_flow_generated(self, record: FlowRecord) -> None:  # pragma: no cover - protocol definition
        ...


__all__ = ["FlowListener"]
