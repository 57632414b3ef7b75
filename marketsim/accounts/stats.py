"""
Derived account statistics.

Everything here is recomputed from the full trade history on each call, so
the cost is O(history length) per read. Trade history is capped, which keeps
this bounded.
"""

from collections import defaultdict
from typing import Iterable, Optional

from marketsim.accounts.models import (
    AccountStats,
    TradeRecord,
    TradeSide,
    UserAccount,
    WealthSnapshot,
)


def compute_stats(history: Iterable[TradeRecord]) -> AccountStats:
    """Win rate, best symbol and trade counts from a trade history."""
    total = 0
    buys = 0
    sells = 0
    profitable = 0
    realized_total = 0.0
    pnl_by_symbol: dict[str, float] = defaultdict(float)

    for trade in history:
        total += 1
        if trade.type == TradeSide.BUY:
            buys += 1
            continue

        sells += 1
        pnl = trade.realized_pnl or 0.0
        realized_total += pnl
        pnl_by_symbol[trade.symbol] += pnl
        if pnl > 0:
            profitable += 1

    best_symbol = None
    if pnl_by_symbol:
        symbol, pnl = max(pnl_by_symbol.items(), key=lambda item: item[1])
        if pnl > 0:
            best_symbol = symbol

    return AccountStats(
        total_trades=total,
        buy_trades=buys,
        sell_trades=sells,
        profitable_trades=profitable,
        win_rate=round(profitable / sells * 100, 2) if sells else 0.0,
        best_symbol=best_symbol,
        realized_pnl=round(realized_total, 2),
    )


def _period_change(snapshot: Optional[WealthSnapshot], current_wealth: float) -> dict:
    if snapshot is None:
        return {"since": None, "start_wealth": None, "profit": 0.0, "profit_pct": 0.0}
    profit = current_wealth - snapshot.wealth
    pct = profit / snapshot.wealth * 100 if snapshot.wealth else 0.0
    return {
        "since": snapshot.key,
        "start_wealth": snapshot.wealth,
        "profit": round(profit, 2),
        "profit_pct": round(pct, 2),
    }


def period_performance(account: UserAccount, current_wealth: float) -> dict:
    """Profit/loss since the start of the current day, week and month."""
    snapshots = account.wealth_snapshots
    return {
        "day": _period_change(snapshots.day_start, current_wealth),
        "week": _period_change(snapshots.week_start, current_wealth),
        "month": _period_change(snapshots.month_start, current_wealth),
    }
