"""
Trade execution against a user account.

Single mutation path for buys and sells, used by both the bot engine and
manual trades: prices the order, charges commission, maintains the
commission-inclusive average cost and records the trade. A trade either
fully applies or raises ``TradeRejected`` leaving the account untouched.
"""

from datetime import datetime
from typing import Optional

from marketsim.accounts.models import (
    Position,
    TradeReason,
    TradeRecord,
    TradeSide,
    UserAccount,
)
from marketsim.market.models import Instrument
from marketsim.market.simulator import InstrumentTable
from marketsim.utils.logger import log_trade


class TradeRejected(Exception):
    """A trade that cannot be executed. The account is unchanged."""


class UnknownSymbolError(TradeRejected):
    def __init__(self, symbol: str):
        super().__init__(f"Unknown symbol: {symbol}")
        self.symbol = symbol


class InsufficientBalanceError(TradeRejected):
    def __init__(self, required: float, available: float):
        super().__init__(f"Insufficient balance: need {required:.2f}, have {available:.2f}")
        self.required = required
        self.available = available


class InsufficientSharesError(TradeRejected):
    def __init__(self, symbol: str, requested: int, owned: int):
        super().__init__(f"Insufficient shares of {symbol}: requested {requested}, owned {owned}")
        self.symbol = symbol
        self.requested = requested
        self.owned = owned


class InvalidOrderError(TradeRejected):
    """Malformed order (non-positive amount, unknown side)."""


def resolve_instrument(instruments: InstrumentTable, symbol: str) -> Instrument:
    """Look up an instrument or raise ``UnknownSymbolError``."""
    instrument = instruments.get(symbol)
    if instrument is None:
        raise UnknownSymbolError(symbol)
    return instrument


class TradeExecutor:
    """Applies buys and sells to accounts with proportional commission."""

    def __init__(self, commission_rate: float = 0.0005, max_history: int = 1000):
        self.commission_rate = commission_rate
        self.max_history = max_history

    def commission_for(self, gross: float) -> float:
        return gross * self.commission_rate

    def buy(
        self,
        account: UserAccount,
        instrument: Instrument,
        amount: int,
        now: datetime,
        is_auto: bool = False,
        reason: Optional[TradeReason] = None,
    ) -> TradeRecord:
        """Buy ``amount`` shares at the instrument's current price."""
        if amount <= 0:
            raise InvalidOrderError(f"Amount must be positive, got {amount}")

        price = instrument.price
        gross = price * amount
        commission = self.commission_for(gross)
        total_cost = gross + commission

        if account.balance < total_cost:
            raise InsufficientBalanceError(total_cost, account.balance)

        account.balance -= total_cost

        position = account.get_position(instrument.symbol)
        if position is not None:
            new_amount = position.amount + amount
            position.average_cost = (position.average_cost * position.amount + total_cost) / new_amount
            position.amount = new_amount
        else:
            account.portfolio.append(
                Position(
                    symbol=instrument.symbol,
                    amount=amount,
                    average_cost=total_cost / amount,
                )
            )

        trade = TradeRecord(
            type=TradeSide.BUY,
            symbol=instrument.symbol,
            amount=amount,
            price=price,
            commission=commission,
            gross_total=gross,
            net_total=total_cost,
            timestamp=now,
            is_auto=is_auto,
            reason=reason,
        )
        self._record(account, trade, now)
        return trade

    def sell(
        self,
        account: UserAccount,
        instrument: Instrument,
        amount: int,
        now: datetime,
        is_auto: bool = False,
        reason: Optional[TradeReason] = None,
    ) -> TradeRecord:
        """Sell ``amount`` shares at the instrument's current price."""
        if amount <= 0:
            raise InvalidOrderError(f"Amount must be positive, got {amount}")

        position = account.get_position(instrument.symbol)
        owned = position.amount if position else 0
        if position is None or owned < amount:
            raise InsufficientSharesError(instrument.symbol, amount, owned)

        price = instrument.price
        gross = price * amount
        commission = self.commission_for(gross)
        net_revenue = gross - commission
        realized = net_revenue - position.average_cost * amount

        account.balance += net_revenue
        position.amount -= amount
        if position.amount == 0:
            account.remove_position(instrument.symbol)

        trade = TradeRecord(
            type=TradeSide.SELL,
            symbol=instrument.symbol,
            amount=amount,
            price=price,
            commission=commission,
            gross_total=gross,
            net_total=net_revenue,
            timestamp=now,
            is_auto=is_auto,
            reason=reason,
            realized_pnl=realized,
        )
        self._record(account, trade, now)
        return trade

    def _record(self, account: UserAccount, trade: TradeRecord, now: datetime) -> None:
        # Newest first, oldest records dropped beyond the cap
        account.history.insert(0, trade)
        del account.history[self.max_history:]
        account.updated_at = now

        log_trade(
            action=trade.type.value,
            username=account.username,
            symbol=trade.symbol,
            amount=trade.amount,
            price=trade.price,
            commission=trade.commission,
            is_auto=trade.is_auto,
            trade_id=trade.id,
            reason=trade.reason.value if trade.reason else None,
        )
