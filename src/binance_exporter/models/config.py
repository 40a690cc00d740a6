"""
Configuration models for the Binance exporter.

Immutable configuration structures, validated on construction.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from ..auth import ApiCredentials
from ..constants import (
    DEFAULT_BASE_URL, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_REFRESH_INTERVAL,
    PRIVATE_KEY_ENV, PUBLIC_KEY_ENV, REQUEST_TIMEOUT,
)
from ..errors import CredentialsError


@dataclass(frozen=True)
class ExporterConfig:
    """Configuration for the exchange client and the metrics server."""
    api_key: str
    api_secret: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout: float = REQUEST_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_credentials()

        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must be a valid HTTP/HTTPS URL, got {self.base_url!r}")

        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")

        if self.refresh_interval <= 0:
            raise ValueError("Refresh interval must be positive")

        if not 0 < self.port < 65536:
            raise ValueError(f"Port out of range: {self.port}")

    def _validate_credentials(self):
        if not self.api_secret:
            raise CredentialsError(f"{PRIVATE_KEY_ENV} variable was not set")

        if not self.api_key:
            raise CredentialsError(f"{PUBLIC_KEY_ENV} variable was not set")

    @property
    def credentials(self) -> ApiCredentials:
        """API credentials for signing requests."""
        return ApiCredentials(api_key=self.api_key, api_secret=self.api_secret)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        load_dotenv_file: bool = True,
    ) -> "ExporterConfig":
        """
        Create configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)
            load_dotenv_file: Load a .env file found from the working directory
                into os.environ first. Variables already set win.

        Raises:
            CredentialsError: If B_PUBLIC_KEY or B_PRIVATE_KEY is missing
            ValueError: If a numeric setting cannot be parsed
        """
        if load_dotenv_file:
            load_dotenv(find_dotenv(usecwd=True))
        if environ is None:
            environ = os.environ

        return cls(
            api_key=environ.get(PUBLIC_KEY_ENV, ""),
            api_secret=environ.get(PRIVATE_KEY_ENV, ""),
            base_url=environ.get("BINANCE_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            host=environ.get("BINANCE_EXPORTER_HOST", DEFAULT_HOST),
            port=int(environ.get("BINANCE_EXPORTER_PORT", DEFAULT_PORT)),
            refresh_interval=float(environ.get("BINANCE_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL)),
        )
