# -*- coding: utf-8 -*-
"""
Shared fixtures and utilities for testing the Binance exporter.
"""

import json
import pytest
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock, Mock

from binance_exporter.auth import ApiCredentials, BinanceSigner
from binance_exporter.client import BinanceClient
from binance_exporter.models import Asset, ExporterConfig


FIXED_TIMESTAMP = 1700000000000


def _make_response(status: int = 200, body: Any = None, text: str = None, raw: bytes = None):
    response = Mock()
    response.status = status
    if raw is None:
        if text is None:
            text = json.dumps(body)
        raw = text.encode("utf-8")
    response.read = AsyncMock(return_value=raw)
    response.text = AsyncMock(return_value=raw.decode("utf-8", errors="replace"))
    return response


def _make_session(*outcomes):
    """
    Mock aiohttp session. Each outcome is consumed by one request: a
    response is yielded, an exception is raised when entering the request.
    """
    contexts = []
    for outcome in outcomes:
        context = MagicMock()
        if isinstance(outcome, BaseException):
            context.__aenter__ = AsyncMock(side_effect=outcome)
        else:
            context.__aenter__ = AsyncMock(return_value=outcome)
        context.__aexit__ = AsyncMock(return_value=False)
        contexts.append(context)

    session = Mock()
    session.request = Mock(side_effect=contexts)
    session.closed = False
    return session


@pytest.fixture
def make_response():
    """Factory for mock HTTP responses."""
    return _make_response


@pytest.fixture
def make_session():
    """Factory for mock aiohttp sessions."""
    return _make_session


# Credentials and configuration
@pytest.fixture
def api_key() -> str:
    return "vmPUZE6mv9SD5VNHk4HlWFsOr6aKE2zvsw0MuIgwCIPy6utIco14y7Ju91duEh8A"


@pytest.fixture
def api_secret() -> str:
    return "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"


@pytest.fixture
def credentials(api_key, api_secret) -> ApiCredentials:
    return ApiCredentials(api_key=api_key, api_secret=api_secret)


@pytest.fixture
def signer(credentials) -> BinanceSigner:
    return BinanceSigner(credentials)


@pytest.fixture
def exporter_config(api_key, api_secret) -> ExporterConfig:
    return ExporterConfig(
        api_key=api_key,
        api_secret=api_secret,
        base_url="https://api.test.example.com",
    )


@pytest.fixture
def fixed_clock():
    """Clock always returning FIXED_TIMESTAMP."""
    return Mock(return_value=FIXED_TIMESTAMP)


@pytest.fixture
def client(exporter_config, fixed_clock) -> BinanceClient:
    """Client with a fixed clock. No session is ever opened by tests."""
    return BinanceClient(exporter_config, clock=fixed_clock)


# Mock data fixtures
@pytest.fixture
def status_online_data() -> Dict[str, Any]:
    return {"status": 0, "msg": "normal"}


@pytest.fixture
def status_maintenance_data() -> Dict[str, Any]:
    return {"status": 1, "msg": "system_maintenance"}


@pytest.fixture
def funding_response_data() -> List[Dict[str, Any]]:
    """Mock funding wallet response data."""
    return [
        {
            "asset": "USDT",
            "free": "1",
            "locked": "0",
            "freeze": "0",
            "withdrawing": "0",
            "btcValuation": "0.00000091"
        }
    ]


@pytest.fixture
def spot_response_data() -> List[Dict[str, Any]]:
    """Mock user asset response data."""
    return [
        {
            "asset": "AVAX",
            "free": "1",
            "locked": "0",
            "freeze": "0",
            "withdrawing": "0",
            "ipoable": "0",
            "btcValuation": "0"
        },
        {
            "asset": "BTC",
            "free": "0.00084591",
            "locked": "0",
            "freeze": "0",
            "withdrawing": "0.1",
            "ipoable": "0",
            "btcValuation": "0.00084591"
        }
    ]


@pytest.fixture
def btc_asset() -> Asset:
    return Asset(asset="BTC", free="0.5", locked="0.1", btc_valuation="0.6")
