# -*- coding: utf-8 -*-
"""
Tests for the asset snapshot cache.
"""

import asyncio
import threading
import pytest
import aiohttp
from unittest.mock import AsyncMock

from binance_exporter.cache import AssetCache, AssetPartition, ReadWriteLock
from binance_exporter.errors import DecodeError, HttpClientError
from binance_exporter.models import Asset
from binance_exporter.monitoring import PerformanceMonitor


def _snapshot(tag: int, size: int = 5):
    """A snapshot whose every element carries the same tag."""
    return [Asset(asset=f"A{i}", free=str(tag)) for i in range(size)]


class TestReadWriteLock:
    """Test the reader/writer lock."""

    def test_multiple_readers(self):
        """Test readers do not exclude each other."""
        lock = ReadWriteLock()
        lock.acquire_read()
        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        thread = threading.Thread(target=reader)
        thread.start()
        assert acquired.wait(timeout=2)
        thread.join()
        lock.release_read()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        lock.acquire_write()
        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        thread = threading.Thread(target=reader)
        thread.start()
        assert not acquired.wait(timeout=0.1)
        lock.release_write()
        assert acquired.wait(timeout=2)
        thread.join()

    def test_waiting_writer_blocks_new_readers(self):
        """Test writers are not starved by a stream of readers."""
        lock = ReadWriteLock()
        lock.acquire_read()
        order = []

        def writer():
            with lock.write_locked():
                order.append("writer")

        def late_reader():
            with lock.read_locked():
                order.append("reader")

        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        # Wait until the writer is queued
        for _ in range(200):
            if lock._writers_waiting:
                break
            threading.Event().wait(0.01)
        assert lock._writers_waiting == 1

        reader_thread = threading.Thread(target=late_reader)
        reader_thread.start()
        assert not order

        lock.release_read()
        writer_thread.join(timeout=2)
        reader_thread.join(timeout=2)
        assert order == ["writer", "reader"]


class TestAssetPartition:
    """Test snapshot replacement and defensive reads."""

    def test_starts_empty(self):
        partition = AssetPartition("funding")
        assert partition.snapshot() == []
        assert len(partition) == 0

    def test_replace_and_snapshot(self, btc_asset):
        partition = AssetPartition("spot")
        partition.replace([btc_asset])
        assert partition.snapshot() == [btc_asset]

    def test_snapshot_is_a_copy(self, btc_asset):
        """Test mutating a read result does not change the cache."""
        partition = AssetPartition("funding")
        partition.replace([btc_asset])

        first = partition.snapshot()
        first.append(Asset(asset="ETH"))
        first[0] = Asset(asset="DOGE")

        assert partition.snapshot() == [btc_asset]

    def test_replace_copies_input(self, btc_asset):
        """Test the caller's list is not retained by the cache."""
        assets = [btc_asset]
        partition = AssetPartition("funding")
        partition.replace(assets)
        assets.clear()
        assert partition.snapshot() == [btc_asset]

    def test_repr(self):
        assert repr(AssetPartition("spot")) == "AssetPartition(name='spot', assets=0)"


class TestAssetCache:
    """Test the two-partition cache and its refresh operation."""

    def test_partitions(self):
        cache = AssetCache()
        assert cache.partition("funding") is cache.funding
        assert cache.partition("spot") is cache.spot

    def test_unknown_partition(self):
        with pytest.raises(KeyError, match="margin"):
            AssetCache().partition("margin")

    @pytest.mark.asyncio
    async def test_refresh_success(self, btc_asset):
        cache = AssetCache()
        fetcher = AsyncMock(return_value=[btc_asset])

        assert await cache.refresh("funding", fetcher) is True

        fetcher.assert_awaited_once()
        assert cache.read("funding") == [btc_asset]
        assert cache.read("spot") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        HttpClientError("HTTP 500", status_code=500),
        HttpClientError("timed out"),
        DecodeError("bad body"),
        aiohttp.ClientConnectionError("reset"),
        asyncio.TimeoutError(),
    ])
    async def test_refresh_failure_keeps_previous_snapshot(self, btc_asset, error):
        """Test a failed refresh leaves the previous snapshot untouched."""
        cache = AssetCache()
        await cache.refresh("spot", AsyncMock(return_value=[btc_asset]))

        assert await cache.refresh("spot", AsyncMock(side_effect=error)) is False
        assert cache.read("spot") == [btc_asset]

    @pytest.mark.asyncio
    async def test_refresh_failure_on_empty_partition(self):
        cache = AssetCache()
        assert await cache.refresh("funding", AsyncMock(side_effect=DecodeError("x"))) is False
        assert cache.read("funding") == []

    @pytest.mark.asyncio
    async def test_refresh_with_empty_result_replaces(self, btc_asset):
        """Test an empty wallet is a valid snapshot."""
        cache = AssetCache()
        await cache.refresh("funding", AsyncMock(return_value=[btc_asset]))
        assert await cache.refresh("funding", AsyncMock(return_value=[])) is True
        assert cache.read("funding") == []

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self):
        with pytest.raises(RuntimeError):
            await AssetCache().refresh("funding", AsyncMock(side_effect=RuntimeError("closed")))

    @pytest.mark.asyncio
    async def test_refresh_records_outcome(self, btc_asset):
        monitor = PerformanceMonitor()
        cache = AssetCache(monitor)

        await cache.refresh("spot", AsyncMock(return_value=[btc_asset]))
        outcome = monitor.get_refresh_outcome("spot")
        assert outcome.success is True
        assert outcome.asset_count == 1

        await cache.refresh("spot", AsyncMock(side_effect=DecodeError("x")))
        assert monitor.get_refresh_outcome("spot").success is False
        assert monitor.get_last_success("spot") == outcome.timestamp

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_all_dial_out(self, btc_asset):
        """Test concurrent refreshes are not coalesced, last writer wins."""
        cache = AssetCache()
        calls = []

        async def fetcher(tag, delay):
            calls.append(tag)
            await asyncio.sleep(delay)
            return _snapshot(tag)

        await asyncio.gather(
            cache.refresh("funding", lambda: fetcher(1, 0.05)),
            cache.refresh("funding", lambda: fetcher(2, 0.0)),
        )

        assert sorted(calls) == [1, 2]
        # The slower refresh finished last and overwrote the faster one
        assert cache.read("funding") == _snapshot(1)

    def test_write_to_one_partition_does_not_block_the_other(self, btc_asset):
        cache = AssetCache()
        cache.spot.replace([btc_asset])
        cache.funding._lock.acquire_write()
        try:
            result = []
            thread = threading.Thread(target=lambda: result.append(cache.read("spot")))
            thread.start()
            thread.join(timeout=2)
            assert result == [[btc_asset]]
        finally:
            cache.funding._lock.release_write()

    def test_concurrent_readers_and_writers(self):
        """Test every read observes one complete written snapshot."""
        partition = AssetPartition("funding")
        written = {tag: _snapshot(tag) for tag in range(1, 21)}
        errors = []
        stop = threading.Event()

        def writer(tags):
            for tag in tags:
                partition.replace(written[tag])

        def reader():
            while not stop.is_set():
                snapshot = partition.snapshot()
                if not snapshot:
                    continue
                tags = {asset.free for asset in snapshot}
                if len(tags) != 1 or len(snapshot) != 5 or snapshot != written[int(tags.pop())]:
                    errors.append(snapshot)

        readers = [threading.Thread(target=reader) for _ in range(8)]
        writers = [threading.Thread(target=writer, args=(range(i, 21, 4),)) for i in range(1, 5)]
        for thread in readers + writers:
            thread.start()
        for thread in writers:
            thread.join(timeout=5)
        stop.set()
        for thread in readers:
            thread.join(timeout=5)

        assert errors == []
        assert partition.snapshot() in written.values()
