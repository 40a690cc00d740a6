"""
Data models for the Binance exporter.
"""

from .asset import Asset, AMOUNT_FIELDS, parse_assets
from .config import ExporterConfig
from .status import ServiceStatus, StatusResponse

__all__ = [
    "Asset",
    "AMOUNT_FIELDS",
    "parse_assets",
    "ExporterConfig",
    "ServiceStatus",
    "StatusResponse",
]
