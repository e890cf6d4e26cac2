from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Optional


class MetricsCollector:
    """Per-question counters and timings; timers accumulate across repeated keys."""

    def __init__(self, values: Optional[dict[str, float]] = None):
        self.values: dict[str, float] = dict(values or {})

    @contextmanager
    def timer(self, key: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.increment(key, time.perf_counter() - start)

    def set_value(self, key: str, value: float) -> None:
        self.values[key] = value

    def increment(self, key: str, amount: float = 1) -> None:
        self.values[key] = self.values.get(key, 0) + amount
