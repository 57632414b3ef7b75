"""
Wealth tracking for user accounts.
"""

from datetime import datetime

from loguru import logger

from marketsim.accounts.models import UserAccount, WealthPoint, WealthSnapshot
from marketsim.market.simulator import InstrumentTable
from marketsim.utils.helpers import day_key, month_key, week_key


def portfolio_value(account: UserAccount, instruments: InstrumentTable) -> float:
    """Mark-to-market value of all positions; unpriced symbols count as 0."""
    total = 0.0
    for position in account.portfolio:
        price = instruments.price_of(position.symbol)
        if price is not None:
            total += position.amount * price
    return total


def total_wealth(account: UserAccount, instruments: InstrumentTable) -> float:
    """Cash plus mark-to-market holdings."""
    return account.balance + portfolio_value(account, instruments)


class WealthTracker:
    """
    Records wealth over time for an account.

    Keeps a capped rolling wealth history and one "period start" snapshot each
    for the current day, ISO week and month.
    """

    def __init__(self, capacity: int = 30):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity

    def update_wealth(
        self,
        account: UserAccount,
        instruments: InstrumentTable,
        now: datetime,
    ) -> float:
        """Append the current wealth and roll period snapshots. Returns the wealth."""
        wealth = total_wealth(account, instruments)

        account.wealth_history.append(WealthPoint(timestamp=now, wealth=wealth))
        if len(account.wealth_history) > self.capacity:
            account.wealth_history = account.wealth_history[-self.capacity:]

        self._roll_snapshots(account, wealth, now)
        account.updated_at = now
        return wealth

    def _roll_snapshots(self, account: UserAccount, wealth: float, now: datetime) -> None:
        snapshots = account.wealth_snapshots
        for attr, key in (
            ("day_start", day_key(now)),
            ("week_start", week_key(now)),
            ("month_start", month_key(now)),
        ):
            current = getattr(snapshots, attr)
            if current is None or current.key != key:
                setattr(snapshots, attr, WealthSnapshot(key=key, wealth=wealth))
                logger.debug(f"{account.username}: new {attr} snapshot {key} = {wealth:.2f}")
