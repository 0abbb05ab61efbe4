"""Persistence of flow records to a single JSON log document.

Every append reads the whole document, adds one record and rewrites the
file from offset zero. The cost of an append therefore grows with the size
of the log; an append-only record format would remove that ceiling but
would break compatibility with existing log files.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .flow_record import FlowRecord, time_from_json, time_to_json

logger = logging.getLogger(__name__)


class LogFormatError(ValueError):
    """Raised when a log document cannot be read for replay."""


@dataclass
class LogDocument:
    start_time: int
    records: List[FlowRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packets": [record.to_dict() for record in self.records],
            "start_time": time_to_json(self.start_time),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogDocument":
        return cls(
            start_time=time_from_json(data["start_time"]),
            records=[FlowRecord.from_dict(item) for item in data["packets"]],
        )

    @classmethod
    def from_json(cls, text: str) -> "LogDocument":
        try:
            return cls.from_dict(json.loads(text))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise LogFormatError(f"Malformed flow log: {exc}") from exc

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def load_document(path: Union[str, Path]) -> LogDocument:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LogFormatError(f"Cannot read flow log {path}: {exc}") from exc
    document = LogDocument.from_json(text)
    logger.info("Loaded %d flow records from %s", len(document.records), path)
    return document


class FlowLog:
    """Appends flow records to a JSON log file, one whole-file rewrite per record."""

    def __init__(self, path: Union[str, Path], start_time: Optional[int] = None) -> None:
        self.path = Path(path)
        # Anchor used only when the file holds no usable document yet.
        self.start_time = time.time_ns() if start_time is None else int(start_time)

    def append(self, record: FlowRecord) -> LogDocument:
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        with os.fdopen(fd, "r+", encoding="utf-8", errors="replace") as handle:
            document = self._parse_existing(handle.read())
            document.records.append(record)
            handle.seek(0)
            handle.write(document.to_json())
            handle.truncate()
        return document

    def _parse_existing(self, text: str) -> LogDocument:
        if not text.strip():
            return LogDocument(start_time=self.start_time)
        try:
            return LogDocument.from_json(text)
        except LogFormatError:
            logger.warning("Discarding unreadable flow log %s and starting a new one", self.path)
            return LogDocument(start_time=self.start_time)


__all__ = ["LogDocument", "LogFormatError", "FlowLog", "load_document"]
