"""
Trading service: the in-process API used by the request layer.

Manual trades, bot rule edits and account resets go through here. Every
account mutation runs under the same per-account lock the scheduler takes,
and uses the same ``TradeExecutor`` as the bots so pricing, commission and
cost basis rules are identical.
"""

from datetime import datetime
from typing import Any, Callable, Optional

from loguru import logger
from pydantic import BaseModel

from marketsim.accounts.models import BotRule, TradeRecord, TradeSide, UserAccount, validate_username
from marketsim.accounts.stats import period_performance
from marketsim.accounts.store import UserStore
from marketsim.accounts.wealth import portfolio_value
from marketsim.execution.trade_executor import (
    InvalidOrderError,
    TradeExecutor,
    TradeRejected,
    resolve_instrument,
)
from marketsim.market.simulator import InstrumentTable
from marketsim.service.locks import AccountLocks
from marketsim.utils.helpers import now_in


class TradeResult(BaseModel):
    """Outcome of a manual trade. Failures carry a message, never a partial state."""
    success: bool
    account: Optional[UserAccount] = None
    trade: Optional[TradeRecord] = None
    message: Optional[str] = None
    error_type: Optional[str] = None


class PersistenceError(Exception):
    """The user store refused a write."""


class TradingService:
    """Request-facing operations over the market and user accounts."""

    def __init__(
        self,
        instruments: InstrumentTable,
        store: UserStore,
        executor: TradeExecutor,
        locks: Optional[AccountLocks] = None,
        initial_balance: float = 100000.0,
        default_bot_amount: int = 1,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.instruments = instruments
        self.store = store
        self.executor = executor
        self.locks = locks or AccountLocks()
        self.initial_balance = initial_balance
        self.default_bot_amount = default_bot_amount
        self._clock = clock or now_in

    # =========================================================================
    # Market
    # =========================================================================

    def market_snapshot(self) -> list[dict]:
        """All instruments with prices, history and indicators."""
        return self.instruments.snapshot()

    def instrument_snapshot(self, symbol: str) -> Optional[dict]:
        instrument = self.instruments.get(symbol.upper())
        return instrument.to_dict() if instrument else None

    # =========================================================================
    # Accounts
    # =========================================================================

    async def get_or_create_user(self, username: str) -> UserAccount:
        """Load a user, creating a seeded account on first sight."""
        username = validate_username(username)
        account = await self.store.find_user(username)
        if account is None:
            account = await self.store.create_user(username)
        return account

    async def account_summary(self, username: str) -> dict:
        """Account with current wealth, derived stats and period profit/loss."""
        account = await self.get_or_create_user(username)
        holdings = portfolio_value(account, self.instruments)
        wealth = account.balance + holdings
        return {
            "account": account.model_dump(mode="json"),
            "portfolio_value": round(holdings, 2),
            "total_wealth": round(wealth, 2),
            "performance": period_performance(account, wealth),
        }

    async def reset_account(self, username: str) -> UserAccount:
        """Reseed an account; username and bot configuration survive."""
        async with self.locks.lock_for(username):
            account = await self.get_or_create_user(username)
            account.reset(self.initial_balance, self._clock())
            await self._save(account)
            logger.info(f"Account {account.username} reset")
            return account

    # =========================================================================
    # Trading
    # =========================================================================

    async def manual_trade(
        self,
        username: str,
        symbol: str,
        amount: int,
        side: str | TradeSide,
    ) -> TradeResult:
        """
        Execute a user-initiated trade.

        Not gated by the recommendation, only by balance and share
        sufficiency. Data errors come back as ``success=False``.
        """
        try:
            username = validate_username(username)
        except ValueError as e:
            return TradeResult(success=False, message=str(e), error_type=InvalidOrderError.__name__)

        try:
            trade_side = TradeSide(side.upper()) if isinstance(side, str) else side
        except ValueError:
            return TradeResult(
                success=False,
                message=f"Unknown trade side: {side}",
                error_type=InvalidOrderError.__name__,
            )

        async with self.locks.lock_for(username):
            account = await self.get_or_create_user(username)
            now = self._clock()
            try:
                instrument = resolve_instrument(self.instruments, symbol.upper())
                if trade_side == TradeSide.BUY:
                    trade = self.executor.buy(account, instrument, amount, now)
                else:
                    trade = self.executor.sell(account, instrument, amount, now)
            except TradeRejected as e:
                logger.info(f"Manual {trade_side.value} rejected for {username}: {e}")
                return TradeResult(success=False, message=str(e), error_type=type(e).__name__)

            try:
                await self._save(account)
            except PersistenceError as e:
                return TradeResult(success=False, message=str(e), error_type=type(e).__name__)

            return TradeResult(success=True, account=account, trade=trade)

    async def update_bot_rule(
        self,
        username: str,
        symbol: str,
        changes: dict[str, Any],
    ) -> dict[str, BotRule]:
        """Merge ``changes`` into the symbol's bot rule and return all rules."""
        symbol = symbol.upper()
        async with self.locks.lock_for(username):
            account = await self.get_or_create_user(username)
            current = account.bot_configs.get(symbol) or BotRule(amount=self.default_bot_amount)
            account.bot_configs[symbol] = current.merged(changes)
            account.updated_at = self._clock()
            await self._save(account)
            logger.info(f"Bot rule for {account.username}/{symbol} updated: {changes}")
            return dict(account.bot_configs)

    async def _save(self, account: UserAccount) -> None:
        if not await self.store.save_user(account):
            raise PersistenceError(f"Could not save account {account.username}")
