"""
Fetch health metrics.

Latency gauges and error counters for remote code retrieval, keyed by
ecosystem and failure reason. No addresses or code contents recorded.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator

from codeverify.errors import RemoteReadError


@dataclass
class Metrics:
    """Counters and last-observed gauges for one process."""

    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)

    def inc(self, name: str, by: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + by

    def observe(self, name: str, value: float) -> None:
        self.gauges[name] = float(value)

    @contextmanager
    def track_fetch(self, ecosystem: str) -> Iterator[None]:
        """
        Time a remote fetch and count its outcome.

        Records:
            <ecosystem>_fetch_ms: Wall time of the last fetch
            <ecosystem>_fetch_total: Fetches attempted
            <ecosystem>_fetch_errors_total: Fetches that raised RemoteReadError
            <ecosystem>_fetch_<reason>_total: Same, split by failure reason
        """
        t0 = time.time()
        self.inc(f"{ecosystem}_fetch_total")
        try:
            yield
        except RemoteReadError as e:
            self.inc(f"{ecosystem}_fetch_errors_total")
            self.inc(f"{ecosystem}_fetch_{e.reason.value.lower()}_total")
            raise
        finally:
            self.observe(f"{ecosystem}_fetch_ms", (time.time() - t0) * 1000.0)

    def snapshot(self) -> dict:
        return {
            "counters": dict(self.counters),
            "gauges": dict(self.gauges),
        }
