"""
Binance Exporter - Prometheus exporter for Binance wallet balances.

This package provides a signed, concurrency-safe client for the Binance
wallet endpoints, a snapshot cache for concurrent readers, and the
metrics server exposing that cache.
"""

from .auth import ApiCredentials, BinanceSigner, sign
from .cache import AssetCache, AssetPartition, ReadWriteLock
from .client import BinanceClient, create_binance_client
from .errors import (
    CredentialsError,
    DecodeError,
    ExchangeUnavailableError,
    ExporterError,
    HttpClientError,
    RequestBuildError,
    StatusCheckError,
)
from .exporter import AssetCollector, create_app
from .http_client import HttpClient, PreparedRequest, RequestBuilder
from .models import (
    Asset,
    ExporterConfig,
    ServiceStatus,
    StatusResponse,
)

__all__ = [
    # Main Client
    "BinanceClient",
    "create_binance_client",
    "ExporterConfig",
    # Signing and requests
    "ApiCredentials",
    "BinanceSigner",
    "sign",
    "RequestBuilder",
    "PreparedRequest",
    "HttpClient",
    # Cache
    "AssetCache",
    "AssetPartition",
    "ReadWriteLock",
    # Models
    "Asset",
    "ServiceStatus",
    "StatusResponse",
    # Metrics
    "AssetCollector",
    "create_app",
    # Errors
    "ExporterError",
    "CredentialsError",
    "RequestBuildError",
    "HttpClientError",
    "DecodeError",
    "StatusCheckError",
    "ExchangeUnavailableError",
]
