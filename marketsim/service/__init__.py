"""Simulation service: scheduler, trading service and runtime wiring."""

from marketsim.service.locks import AccountLocks
from marketsim.service.scheduler import SimulationScheduler, TickResult
from marketsim.service.trading_service import PersistenceError, TradeResult, TradingService
from marketsim.service.runtime import MarketRuntime, build_runtime, build_store

__all__ = [
    "AccountLocks",
    "SimulationScheduler",
    "TickResult",
    "PersistenceError",
    "TradeResult",
    "TradingService",
    "MarketRuntime",
    "build_runtime",
    "build_store",
]
