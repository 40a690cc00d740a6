"""
Session management for the Binance exporter.

Handles connection lifecycle, session creation, and resource cleanup.
"""

import aiohttp
from typing import Optional

from .models.config import ExporterConfig


class SessionManager:
    """Manages the shared HTTP session of the exchange client."""

    def __init__(self, config: ExporterConfig):
        """Initialize session manager with configuration."""
        self._config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def create_session(self) -> aiohttp.ClientSession:
        """Create and configure HTTP session, or return the open one."""
        if self._session is not None and not self._session.closed:
            return self._session

        connector = aiohttp.TCPConnector(
            limit=20,
            ttl_dns_cache=300,
            use_dns_cache=True,
        )

        # Requests carry their own deadline, this is the upper bound
        timeout = aiohttp.ClientTimeout(total=self._config.timeout)

        headers = {
            "User-Agent": "binance-exporter/1.0",
            "Accept": "application/json",
        }

        self._session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers=headers,
        )

        return self._session

    async def close_session(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def session(self) -> Optional[aiohttp.ClientSession]:
        """Get current session without creating one."""
        return self._session

