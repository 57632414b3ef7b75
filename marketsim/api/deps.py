"""
Request dependencies.
"""

from fastapi import Request

from marketsim.service.runtime import MarketRuntime
from marketsim.service.trading_service import TradingService


def get_runtime(request: Request) -> MarketRuntime:
    return request.app.state.runtime


def get_trading_service(request: Request) -> TradingService:
    return request.app.state.runtime.service
