"""HTTP API over the trading service."""

from marketsim.api.app import create_app

__all__ = ["create_app"]
