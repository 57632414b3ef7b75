"""Trade execution module."""

from marketsim.execution.trade_executor import (
    InsufficientBalanceError,
    InsufficientSharesError,
    InvalidOrderError,
    TradeExecutor,
    TradeRejected,
    UnknownSymbolError,
    resolve_instrument,
)

__all__ = [
    "InsufficientBalanceError",
    "InsufficientSharesError",
    "InvalidOrderError",
    "TradeExecutor",
    "TradeRejected",
    "UnknownSymbolError",
    "resolve_instrument",
]
