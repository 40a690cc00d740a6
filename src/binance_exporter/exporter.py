"""
Prometheus exposition for the Binance exporter.

AssetCollector turns the cached wallet snapshots into gauges at scrape
time. create_app wires it into an aiohttp application serving /metrics.
"""

import asyncio
import logging
import time
from decimal import InvalidOperation

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from .client import BinanceClient
from .constants import FUNDING_PARTITION, SPOT_PARTITION
from .models.asset import AMOUNT_FIELDS

logger = logging.getLogger(__name__)

REGISTRY_KEY = web.AppKey("registry", CollectorRegistry)

_AMOUNT_HELP = {
    "free": "Free balance of the asset",
    "locked": "Locked balance of the asset",
    "freeze": "Frozen balance of the asset",
    "withdrawing": "Balance of the asset being withdrawn",
    "ipoable": "IPO-able balance of the asset",
    "btc_valuation": "Balance of the asset valued in BTC",
}


class AssetCollector:
    """Custom collector reading the client's cache on every scrape."""

    def __init__(self, client: BinanceClient):
        self._client = client

    def describe(self):
        return []

    def collect(self):
        gauges = {
            name: GaugeMetricFamily(f"binance_asset_{name}", _AMOUNT_HELP[name], labels=["wallet", "asset"])
            for name in AMOUNT_FIELDS
        }

        wallets = (
            (FUNDING_PARTITION, self._client.get_funding_assets()),
            (SPOT_PARTITION, self._client.get_spot_assets()),
        )
        for wallet, assets in wallets:
            for asset in assets:
                for name in AMOUNT_FIELDS:
                    try:
                        value = float(asset.amount(name))
                    except InvalidOperation:
                        logger.debug(f"Skipping unparseable {name} of {asset.asset} in {wallet} wallet")
                        continue
                    gauges[name].add_metric([wallet, asset.asset], value)

        yield from gauges.values()
        yield from self._collect_monitoring()

    def _collect_monitoring(self):
        monitor = self._client.monitor

        requests = CounterMetricFamily(
            "binance_exporter_requests", "Requests sent to the Binance API", labels=["method", "endpoint"]
        )
        failures = CounterMetricFamily(
            "binance_exporter_request_failures", "Failed requests to the Binance API", labels=["method", "endpoint"]
        )
        for (method, endpoint), (total, failed) in monitor.get_request_counts().items():
            requests.add_metric([method, endpoint], total)
            failures.add_metric([method, endpoint], failed)

        refresh_success = GaugeMetricFamily(
            "binance_exporter_refresh_success", "Whether the last refresh of a wallet succeeded", labels=["wallet"]
        )
        last_success = GaugeMetricFamily(
            "binance_exporter_last_refresh_timestamp_seconds",
            "Unix time of the last successful refresh of a wallet",
            labels=["wallet"],
        )
        for wallet in (FUNDING_PARTITION, SPOT_PARTITION):
            outcome = monitor.get_refresh_outcome(wallet)
            if outcome is not None:
                refresh_success.add_metric([wallet], 1.0 if outcome.success else 0.0)
            timestamp = monitor.get_last_success(wallet)
            if timestamp is not None:
                last_success.add_metric([wallet], timestamp)

        yield requests
        yield failures
        yield refresh_success
        yield last_success


def build_registry(client: BinanceClient) -> CollectorRegistry:
    """Create a registry holding only the exporter's collector."""
    registry = CollectorRegistry()
    registry.register(AssetCollector(client))
    return registry


@web.middleware
async def access_log_middleware(request: web.Request, handler):
    """Log every request to the metrics server, level by status class."""
    start = time.monotonic()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    finally:
        latency_ms = (time.monotonic() - start) * 1000
        message = (
            f"{request.method} {request.path_qs} status={status} "
            f"latency={latency_ms:.1f}ms remote={request.remote}"
        )
        if status >= 500:
            logger.error(f"Server error: {message}")
        elif status >= 400:
            logger.warning(f"Client error: {message}")
        elif status >= 300:
            logger.info(f"Redirection: {message}")
        else:
            logger.info(f"Success: {message}")


async def metrics_handler(request: web.Request) -> web.Response:
    """Prometheus scrape endpoint."""
    data = generate_latest(request.app[REGISTRY_KEY])
    return web.Response(body=data, headers={"Content-Type": CONTENT_TYPE_LATEST})


async def healthz_handler(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(client: BinanceClient) -> web.Application:
    """Create the metrics web application for a client."""
    app = web.Application(middlewares=[access_log_middleware])
    app[REGISTRY_KEY] = build_registry(client)
    app.router.add_get("/metrics", metrics_handler)
    app.router.add_get("/healthz", healthz_handler)
    return app


async def refresh_periodically(client: BinanceClient, interval: float) -> None:
    """Refresh both wallets every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            ok = await client.refresh_all()
        except Exception:
            logger.exception("Wallet refresh crashed, serving previous snapshot")
            continue
        if not ok:
            logger.warning("Wallet refresh incomplete, serving previous snapshot")
