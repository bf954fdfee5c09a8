"""
Performance monitoring utilities for Enhanced Search system
"""

import time
import logging
from typing import Dict, Any
from collections import defaultdict
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Request-scoped timer for pipeline stages.

    A fresh monitor is created per call so concurrent queries never share state.
    """

    def __init__(self, name: str = "pipeline"):
        self.name = name
        self.timings_ms: Dict[str, float] = defaultdict(float)
        self.counters: Dict[str, int] = defaultdict(int)
        self._started = time.perf_counter()

    def record_metric(self, metric_name: str, value: float):
        """Record (accumulate) a duration in milliseconds"""
        self.timings_ms[metric_name] += value

    def increment_counter(self, counter_name: str, amount: int = 1):
        """Increment a counter"""
        self.counters[counter_name] += amount

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000

    @contextmanager
    def span(self, name: str):
        """Usage:  with monitor.span('stage'): ..."""
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = (time.perf_counter() - start) * 1000
            self.record_metric(name, duration)
            logger.debug(f"{self.name}.{name} took {duration:.2f}ms")

    def get_metrics(self) -> Dict[str, Any]:
        """Get timings and counters recorded so far"""
        return {
            'timings_ms': {k: round(v, 3) for k, v in self.timings_ms.items()},
            'counters': dict(self.counters),
            'elapsed_ms': round(self.elapsed_ms(), 3),
        }
