"""Replays a saved flow log through the display pipeline."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from .log_store import LogDocument
from .pipeline import FlowPipeline, RenderedFlow
from .utils import elapsed_seconds

logger = logging.getLogger(__name__)


def replay(
    document: LogDocument,
    pipeline: FlowPipeline,
    *,
    real_time: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Optional[RenderedFlow]]:
    """Feed every stored record to *pipeline* in stored order.

    In real-time mode the gap before each record is the record's offset from
    ``document.start_time`` minus the time already slept, so the original
    spacing is reproduced without relying on the wall clock of the capture.
    Out-of-order timestamps produce no wait rather than an error.
    """
    results: List[Optional[RenderedFlow]] = []
    slept = 0.0

    for record in document.records:
        if real_time:
            delay = max(elapsed_seconds(record.timestamp, document.start_time) - slept, 0.0)
            if delay > 0:
                sleep(delay)
            slept += delay
        results.append(pipeline.process(record, document.start_time))

    logger.debug("Replayed %d flow records", len(results))
    return results


__all__ = ["replay"]
