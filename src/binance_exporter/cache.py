"""
Asset snapshot cache.

Two independently locked partitions ("funding" and "spot") each hold the
complete asset list of the latest successful refresh. Writers replace the
whole list under a write lock, readers get a copy taken under a read lock.
Locks are threading primitives so readers may live on any thread, e.g. a
metrics collector outside the event loop.
"""

import asyncio
import logging
import threading
from contextlib import contextmanager
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Optional

import aiohttp

from .constants import FUNDING_PARTITION, SPOT_PARTITION
from .errors import ExporterError
from .models.asset import Asset
from .monitoring import PerformanceMonitor

logger = logging.getLogger(__name__)

AssetFetcher = Callable[[], Awaitable[List[Asset]]]


class ReadWriteLock:
    """
    Multiple-reader / single-writer lock.

    A waiting writer blocks new readers, so a steady stream of readers can
    not starve writers. Not reentrant and no upgrade from read to write.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class AssetPartition:
    """A named snapshot of assets guarded by its own reader/writer lock."""

    def __init__(self, name: str):
        self.name = name
        self._assets: List[Asset] = []
        self._lock = ReadWriteLock()

    def replace(self, assets: Iterable[Asset]) -> None:
        """Replace the whole snapshot."""
        # Build the new list before taking the lock to keep the critical section short
        new_assets = list(assets)
        with self._lock.write_locked():
            self._assets = new_assets

    def snapshot(self) -> List[Asset]:
        """Return a copy of the current snapshot, owned by the caller."""
        with self._lock.read_locked():
            return list(self._assets)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._assets)

    def __repr__(self) -> str:
        return f"AssetPartition(name={self.name!r}, assets={len(self)})"


class AssetCache:
    """Holds the funding and spot partitions."""

    def __init__(self, monitor: Optional[PerformanceMonitor] = None):
        self._partitions: Dict[str, AssetPartition] = {
            FUNDING_PARTITION: AssetPartition(FUNDING_PARTITION),
            SPOT_PARTITION: AssetPartition(SPOT_PARTITION),
        }
        self._monitor = monitor

    @property
    def funding(self) -> AssetPartition:
        return self._partitions[FUNDING_PARTITION]

    @property
    def spot(self) -> AssetPartition:
        return self._partitions[SPOT_PARTITION]

    def partition(self, name: str) -> AssetPartition:
        """Look up a partition by name."""
        try:
            return self._partitions[name]
        except KeyError:
            raise KeyError(f"Unknown asset partition: {name!r}") from None

    def read(self, name: str) -> List[Asset]:
        """Return a copy of the named partition's snapshot."""
        return self.partition(name).snapshot()

    async def refresh(self, name: str, fetcher: AssetFetcher) -> bool:
        """
        Fetch a new snapshot and store it in the named partition.

        Failures are logged and leave the previous snapshot in place.

        Args:
            name: Partition name
            fetcher: Coroutine function returning the complete asset list

        Returns:
            True if the partition was replaced, False otherwise
        """
        partition = self.partition(name)

        try:
            assets = await fetcher()
        except (ExporterError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to refresh {name} assets, keeping previous snapshot: {e}")
            self._record(name, False)
            return False

        partition.replace(assets)
        logger.info(f"Refreshed {name} assets: {len(assets)} entries")
        self._record(name, True, len(assets))
        return True

    def _record(self, name: str, success: bool, asset_count: int = 0) -> None:
        if self._monitor is not None:
            self._monitor.record_refresh(name, success, asset_count)
