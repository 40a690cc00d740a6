"""
Binance Client - Main orchestration module.

The client owns the credentials, the signer, the request builder and the
asset cache, and exposes the operations the metrics server consumes:

- check_status / ensure_online: the startup gate
- refresh_funding / refresh_spot: fetch wallets into the cache
- get_funding_assets / get_spot_assets: copies of the cached snapshots
"""

import asyncio
import logging
from typing import Callable, List

from .auth import BinanceSigner
from .cache import AssetCache
from .constants import (
    DEFAULT_BASE_URL, FUNDING_ASSET_PATH, FUNDING_PARTITION, REQUEST_TIMEOUT,
    SPOT_PARTITION, SYSTEM_STATUS_PATH, USER_ASSET_PATH,
)
from .errors import DecodeError, ExchangeUnavailableError, ExporterError, StatusCheckError
from .http_client import HttpClient, RequestBuilder, now_millis
from .models import Asset, ExporterConfig, ServiceStatus, StatusResponse, parse_assets
from .monitoring import PerformanceMonitor
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class BinanceClient:
    """
    Exchange client for the wallet exporter.

    Safe to share between concurrent tasks: the signer and the request
    builder hold no mutable state and each cache partition has its own lock.
    Concurrent refreshes of the same partition are not coalesced, every call
    performs its own request and the last one to finish wins.
    """

    def __init__(
        self,
        config: ExporterConfig,
        clock: Callable[[], int] = now_millis,
    ):
        """Initialize Binance client with configuration."""
        self._config = config
        self._signer = BinanceSigner(config.credentials)
        self._builder = RequestBuilder(
            self._signer,
            base_url=config.base_url,
            timeout=config.timeout,
            clock=clock,
        )
        self._monitor = PerformanceMonitor()
        self._http_client = HttpClient(self._monitor)
        self._session_manager = SessionManager(config)
        self._cache = AssetCache(self._monitor)
        self._closed = False

    @classmethod
    def from_env(cls) -> "BinanceClient":
        """
        Create client from environment variables.

        Raises:
            CredentialsError: If B_PUBLIC_KEY or B_PRIVATE_KEY is not set
        """
        return cls(ExporterConfig.from_env())

    @property
    def config(self) -> ExporterConfig:
        return self._config

    @property
    def cache(self) -> AssetCache:
        return self._cache

    @property
    def monitor(self) -> PerformanceMonitor:
        return self._monitor

    # Status gate
    async def check_status(self) -> ServiceStatus:
        """
        Query the exchange system status.

        Returns:
            The status reported by the exchange

        Raises:
            StatusCheckError: On transport or decode failure. Its status is
                always MAINTENANCE.
        """
        logger.debug("Checking system status")
        request = self._builder.build_get(SYSTEM_STATUS_PATH)

        try:
            session = await self._get_session()
            data = await self._http_client.request_json(session, request)
            status = StatusResponse.from_dict(data)
        except (ExporterError, ValueError) as e:
            logger.error(f"Failed to get system status: {e}")
            raise StatusCheckError(str(e), ServiceStatus.MAINTENANCE) from e

        logger.info(f"System status: {status.status!s}")
        return status.status

    async def ensure_online(self) -> None:
        """
        Startup gate: pass only if the exchange reports ONLINE.

        Raises:
            StatusCheckError: If the status could not be determined
            ExchangeUnavailableError: If the exchange is under maintenance
        """
        status = await self.check_status()
        if status != ServiceStatus.ONLINE:
            raise ExchangeUnavailableError(status)

    # Wallet refresh
    async def refresh_funding(self) -> bool:
        """Refresh the funding wallet snapshot. Returns True on success."""
        return await self._cache.refresh(FUNDING_PARTITION, self.fetch_funding_assets)

    async def refresh_spot(self) -> bool:
        """Refresh the spot wallet snapshot. Returns True on success."""
        return await self._cache.refresh(SPOT_PARTITION, self.fetch_spot_assets)

    async def refresh_all(self) -> bool:
        """Refresh both wallets concurrently. Returns True if both succeeded."""
        results = await asyncio.gather(self.refresh_funding(), self.refresh_spot())
        return all(results)

    async def fetch_funding_assets(self) -> List[Asset]:
        """Fetch the funding wallet without touching the cache."""
        return await self._fetch_assets(FUNDING_ASSET_PATH)

    async def fetch_spot_assets(self) -> List[Asset]:
        """Fetch the spot wallet without touching the cache."""
        return await self._fetch_assets(USER_ASSET_PATH)

    # Cached reads
    def get_funding_assets(self) -> List[Asset]:
        """Copy of the latest funding wallet snapshot (possibly empty)."""
        return self._cache.read(FUNDING_PARTITION)

    def get_spot_assets(self) -> List[Asset]:
        """Copy of the latest spot wallet snapshot (possibly empty)."""
        return self._cache.read(SPOT_PARTITION)

    async def close(self) -> None:
        """Close client and cleanup resources."""
        if not self._closed:
            await self._session_manager.close_session()
            self._closed = True
            logger.info("Binance client closed")

    async def _fetch_assets(self, path: str) -> List[Asset]:
        request = self._builder.build_post(path)
        session = await self._get_session()
        data = await self._http_client.request_json(session, request)

        try:
            return parse_assets(data)
        except ValueError as e:
            raise DecodeError(f"Invalid asset list from {path}: {e}") from e

    async def _get_session(self):
        if self._closed:
            raise RuntimeError("Client is closed")
        return await self._session_manager.create_session()

    # Context manager support
    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def create_binance_client(
    api_key: str,
    api_secret: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = REQUEST_TIMEOUT,
    clock: Callable[[], int] = now_millis,
) -> BinanceClient:
    """
    Factory function to create a Binance client.

    Args:
        api_key: API key sent in the X-MBX-APIKEY header
        api_secret: API secret used to sign requests
        base_url: Exchange host
        timeout: Per-request deadline in seconds
        clock: Millisecond clock used for request timestamps

    Returns:
        Configured BinanceClient instance

    Raises:
        CredentialsError: If either credential is empty
    """
    config = ExporterConfig(
        api_key=api_key,
        api_secret=api_secret,
        base_url=base_url,
        timeout=timeout,
    )
    return BinanceClient(config, clock=clock)
