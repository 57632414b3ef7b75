"""
Main entry point for the market simulator.

Usage:
    python -m marketsim.main [--host 0.0.0.0] [--port 5000]
"""

import argparse

import uvicorn
from loguru import logger

from marketsim.api.app import create_app
from marketsim.config.settings import get_settings
from marketsim.service.runtime import build_runtime
from marketsim.utils.logger import setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Simulated market with autonomous trading bots")
    parser.add_argument("--host", default=settings.api_host, help="API bind address")
    parser.add_argument("--port", type=int, default=settings.api_port, help="API port")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Set up logging, build the runtime and serve the API."""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings)

    logger.info("=" * 60)
    logger.info("Market Simulator Starting")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Tick interval: {settings.tick_interval_seconds}s, store: {settings.store_backend}")
    logger.info("=" * 60)

    app = create_app(build_runtime(settings))
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
