"""User accounts: documents, persistence, wealth and statistics."""

from marketsim.accounts.models import (
    AccountStats,
    BotRule,
    Position,
    TradeReason,
    TradeRecord,
    TradeSide,
    UserAccount,
    WealthPoint,
    WealthSnapshot,
    WealthSnapshots,
)
from marketsim.accounts.stats import compute_stats, period_performance
from marketsim.accounts.store import InMemoryUserStore, JsonFileUserStore, UserStore
from marketsim.accounts.wealth import WealthTracker, portfolio_value, total_wealth

__all__ = [
    "AccountStats",
    "BotRule",
    "Position",
    "TradeReason",
    "TradeRecord",
    "TradeSide",
    "UserAccount",
    "WealthPoint",
    "WealthSnapshot",
    "WealthSnapshots",
    "compute_stats",
    "period_performance",
    "InMemoryUserStore",
    "JsonFileUserStore",
    "UserStore",
    "WealthTracker",
    "portfolio_value",
    "total_wealth",
]
