"""Per-tick timing statistics for the simulation runner."""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator


@dataclass
class PerfStats:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def record(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        if duration_ms > self.max_ms:
            self.max_ms = duration_ms

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0


class PerfTracker:
    """Tracks timing statistics for named operations (advance, publish)."""

    def __init__(self, enable_logging: bool = True):
        self._enable_logging = enable_logging
        self._stats: Dict[str, PerfStats] = {}

    @property
    def enabled(self) -> bool:
        return self._enable_logging

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Time the wrapped block under ``name``."""
        if not self._enable_logging:
            yield
            return
        start = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            self._stats.setdefault(name, PerfStats()).record(duration_ms)

    def get_summary_and_reset(self) -> str:
        """Get a loggable summary string of all stats and reset them."""
        parts = []
        for name, stat in self._stats.items():
            if stat.count > 0:
                parts.append(f"{name}={stat.avg_ms:.2f}ms(max {stat.max_ms:.2f})")
        self._stats.clear()

        if not parts:
            return ""
        return " | " + " ".join(parts)

    def stats_for(self, name: str) -> PerfStats:
        """Peek at the current stats for one operation."""
        stat = self._stats.get(name, PerfStats())
        return PerfStats(count=stat.count, total_ms=stat.total_ms, max_ms=stat.max_ms)
