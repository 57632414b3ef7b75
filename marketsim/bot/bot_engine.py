"""
Bot execution engine.

Evaluates a user's bot rules against the current market each tick:
- STRONG_BUY recommendation: buy the rule amount if the balance covers it
- Otherwise, exit part of an existing position on stop-loss, take-profit or
  a STRONG_SELL recommendation (checked in that order)
"""

from datetime import datetime
from typing import Optional

from loguru import logger

from marketsim.accounts.models import BotRule, Position, TradeReason, TradeRecord, UserAccount
from marketsim.execution.trade_executor import TradeExecutor, TradeRejected
from marketsim.market.models import Instrument, Recommendation
from marketsim.market.simulator import InstrumentTable


def profit_pct(position: Position, price: float) -> float:
    """Unrealized return of a position against its cost basis, in percent."""
    if position.average_cost == 0:
        return 0.0
    return (price - position.average_cost) / position.average_cost * 100


def exit_reason(
    rule: BotRule,
    position: Position,
    price: float,
    recommendation: Recommendation,
) -> Optional[TradeReason]:
    """Decide whether a position should be exited and why.

    Stop-loss wins over take-profit, which wins over the sell signal.
    """
    pct = profit_pct(position, price)

    if rule.has_stop_loss and pct <= -abs(rule.stop_loss):
        return TradeReason.STOP_LOSS
    if rule.has_take_profit and pct >= abs(rule.take_profit):
        return TradeReason.TAKE_PROFIT
    if recommendation == Recommendation.STRONG_SELL:
        return TradeReason.SIGNAL
    return None


class BotExecutionEngine:
    """Runs every active bot rule of an account for one tick."""

    def __init__(self, executor: TradeExecutor):
        self.executor = executor

    def execute_tick(
        self,
        account: UserAccount,
        instruments: InstrumentTable,
        now: datetime,
    ) -> list[TradeRecord]:
        """Apply all bot rules to ``account``. Returns the trades executed."""
        trades = []
        for symbol, rule in account.bot_configs.items():
            if not rule.active:
                continue

            instrument = instruments.get(symbol)
            if instrument is None:
                logger.debug(f"{account.username}: bot rule for unknown symbol {symbol} skipped")
                continue

            trade = self._evaluate(account, instrument, rule, now)
            if trade is not None:
                trades.append(trade)
        return trades

    def _evaluate(
        self,
        account: UserAccount,
        instrument: Instrument,
        rule: BotRule,
        now: datetime,
    ) -> Optional[TradeRecord]:
        recommendation = instrument.recommendation

        if recommendation == Recommendation.STRONG_BUY:
            try:
                return self.executor.buy(
                    account,
                    instrument,
                    rule.amount,
                    now,
                    is_auto=True,
                    reason=TradeReason.SIGNAL,
                )
            except TradeRejected as e:
                logger.debug(f"{account.username}: bot buy of {instrument.symbol} skipped: {e}")
                return None

        position = account.get_position(instrument.symbol)
        if position is None:
            return None

        reason = exit_reason(rule, position, instrument.price, recommendation)
        if reason is None:
            return None

        quantity = min(position.amount, rule.amount)
        return self.executor.sell(
            account,
            instrument,
            quantity,
            now,
            is_auto=True,
            reason=reason,
        )
