"""
Run the Binance exporter.

Usage:
    python -m binance_exporter
    binance-exporter --port 9100 --refresh_interval 30 --log_level DEBUG

Credentials are read from B_PUBLIC_KEY and B_PRIVATE_KEY (a .env file in
the working directory is honoured).
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import replace
from typing import Optional, Sequence

from aiohttp import web

from .client import BinanceClient
from .errors import CredentialsError, ExchangeUnavailableError, StatusCheckError
from .exporter import create_app, refresh_periodically
from .models.config import ExporterConfig

logger = logging.getLogger("binance_exporter")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export Binance wallet balances as Prometheus metrics")
    parser.add_argument("--host", default=None, help="Address to listen on")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    parser.add_argument("--refresh_interval", type=float, default=None, help="Seconds between wallet refreshes")
    parser.add_argument(
        "--log_level",
        default="INFO",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ExporterConfig:
    """Build the configuration from the environment, with CLI overrides."""
    config = ExporterConfig.from_env()
    overrides = {
        "host": args.host,
        "port": args.port,
        "refresh_interval": args.refresh_interval,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **overrides) if overrides else config


async def serve(client: BinanceClient) -> None:
    """Gate on the exchange status, then serve metrics until stopped."""
    await client.ensure_online()
    await client.refresh_all()

    config = client.config
    runner = web.AppRunner(create_app(client), access_log=None)
    refresher = None
    try:
        await runner.setup()
        site = web.TCPSite(runner, config.host, config.port)
        await site.start()
        logger.info(f"Serving metrics on http://{config.host}:{config.port}/metrics")

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

        refresher = asyncio.create_task(refresh_periodically(client, config.refresh_interval))
        await stop.wait()
        logger.info("Shutting down...")
    finally:
        if refresher is not None:
            refresher.cancel()
            try:
                await refresher
            except asyncio.CancelledError:
                pass
        await runner.cleanup()


async def run(config: ExporterConfig) -> int:
    async with BinanceClient(config) as client:
        try:
            await serve(client)
        except StatusCheckError as e:
            logger.error(f"Failed to get Binance API status! {e}")
            return 1
        except ExchangeUnavailableError:
            logger.error("Binance API is currently under maintenance, exiting...")
            return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        config = load_config(args)
    except CredentialsError as e:
        logger.error(f"Failed to create a new binance client! {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    return asyncio.run(run(config))


if __name__ == "__main__":
    sys.exit(main())
