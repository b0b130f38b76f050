"""Turn latency timings."""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from contextlib import contextmanager
from time import perf_counter
from typing import Deque, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class LatencyProbe:
    """Keeps the most recent durations (ms) recorded for each named stage."""

    def __init__(self, history: int = 50) -> None:
        self._timings: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=history))

    @contextmanager
    def track(self, stage: str) -> Iterator[None]:
        """Time the enclosed block, including awaits inside it."""
        started = perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (perf_counter() - started) * 1000.0
            self._timings[stage].append(elapsed_ms)
            logger.debug("[LATENCY] %s: %.2fms", stage, elapsed_ms)

    def last(self, stage: str) -> Optional[float]:
        timings = self._timings.get(stage)
        return timings[-1] if timings else None
