"""
Performance monitoring for the Binance exporter.

Tracks request counts and refresh outcomes so they can be exported
alongside the wallet balances.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of the latest refresh of one cache partition."""
    success: bool
    timestamp: float
    asset_count: int = 0


class PerformanceMonitor:
    """Monitors request counts and refresh outcomes."""

    def __init__(self):
        """Initialize performance monitor."""
        self._lock = threading.Lock()
        self._request_counts: Dict[Tuple[str, str], List[int]] = defaultdict(lambda: [0, 0])
        self._refreshes: Dict[str, RefreshOutcome] = {}
        self._last_success: Dict[str, float] = {}

    def record_request(self, endpoint: str, method: str, status_code: int) -> None:
        """Record a completed request. Statuses outside 2xx/3xx count as failed."""
        with self._lock:
            counts = self._request_counts[(method, endpoint)]
            counts[0] += 1
            if not 200 <= status_code < 400:
                counts[1] += 1

    def record_refresh(self, partition: str, success: bool, asset_count: int = 0) -> None:
        """Record the outcome of a partition refresh."""
        now = time.time()
        with self._lock:
            self._refreshes[partition] = RefreshOutcome(success, now, asset_count)
            if success:
                self._last_success[partition] = now

    def get_request_counts(self) -> Dict[Tuple[str, str], Tuple[int, int]]:
        """Get cumulative (total, failed) request counts per (method, endpoint)."""
        with self._lock:
            return {key: (total, failed) for key, (total, failed) in self._request_counts.items()}

    def get_refresh_outcome(self, partition: str) -> Optional[RefreshOutcome]:
        """Get the latest refresh outcome of a partition, if any."""
        with self._lock:
            return self._refreshes.get(partition)

    def get_last_success(self, partition: str) -> Optional[float]:
        """Get the time of the last successful refresh of a partition."""
        with self._lock:
            return self._last_success.get(partition)
