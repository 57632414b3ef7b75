"""Tests for trade execution."""

import pytest

from marketsim.accounts.models import TradeReason, TradeSide, UserAccount
from marketsim.execution.trade_executor import (
    InsufficientBalanceError,
    InsufficientSharesError,
    InvalidOrderError,
    TradeExecutor,
    UnknownSymbolError,
    resolve_instrument,
)
from marketsim.market.simulator import InstrumentTable

from tests.conftest import FIXED_NOW, make_instrument


class TestBuy:
    """Tests for buy orders."""

    def test_buy_debits_balance_with_commission(self, executor, account):
        inst = make_instrument(price=50.0)
        trade = executor.buy(account, inst, 5, FIXED_NOW)

        assert account.balance == pytest.approx(99749.875)
        position = account.get_position("TEST")
        assert position.amount == 5
        assert position.average_cost == pytest.approx(50.025)

        assert trade.type == TradeSide.BUY
        assert trade.gross_total == pytest.approx(250.0)
        assert trade.commission == pytest.approx(0.125)
        assert trade.net_total == pytest.approx(250.125)
        assert trade.is_auto is False
        assert trade.reason is None
        assert account.history[0] == trade

    def test_weighted_average_cost(self, account):
        executor = TradeExecutor(commission_rate=0.0)
        executor.buy(account, make_instrument(price=100.0), 10, FIXED_NOW)
        executor.buy(account, make_instrument(price=102.0), 5, FIXED_NOW)

        position = account.get_position("TEST")
        assert position.amount == 15
        assert position.average_cost == pytest.approx(1510.0 / 15)
        assert round(position.average_cost, 2) == 100.67
        assert len(account.portfolio) == 1

    def test_insufficient_balance_leaves_account_untouched(self, executor):
        account = UserAccount.new("bob", 1000.0, FIXED_NOW)
        inst = make_instrument(price=100.0)

        with pytest.raises(InsufficientBalanceError):
            executor.buy(account, inst, 10, FIXED_NOW)

        assert account.balance == 1000.0
        assert account.portfolio == []
        assert account.history == []

    def test_exact_balance_is_allowed(self):
        executor = TradeExecutor(commission_rate=0.0)
        account = UserAccount.new("bob", 1000.0, FIXED_NOW)
        executor.buy(account, make_instrument(price=100.0), 10, FIXED_NOW)
        assert account.balance == 0.0

    @pytest.mark.parametrize("amount", [0, -3])
    def test_non_positive_amount_rejected(self, executor, account, amount):
        with pytest.raises(InvalidOrderError):
            executor.buy(account, make_instrument(), amount, FIXED_NOW)
        assert account.balance == 100000.0

    def test_auto_trade_flags(self, executor, account):
        trade = executor.buy(
            account, make_instrument(), 1, FIXED_NOW,
            is_auto=True, reason=TradeReason.SIGNAL,
        )
        assert trade.is_auto is True
        assert trade.reason == TradeReason.SIGNAL


class TestSell:
    """Tests for sell orders."""

    def test_sell_all_removes_position(self, executor, account):
        inst = make_instrument(price=50.0)
        executor.buy(account, inst, 5, FIXED_NOW)
        trade = executor.sell(account, inst, 5, FIXED_NOW)

        assert account.get_position("TEST") is None
        assert account.balance == pytest.approx(100000.0 - 250.125 + 249.875)
        assert trade.type == TradeSide.SELL
        assert trade.net_total == pytest.approx(249.875)
        assert trade.realized_pnl == pytest.approx(-0.25)

    def test_partial_sell_keeps_average_cost(self, executor, account):
        inst = make_instrument(price=50.0)
        executor.buy(account, inst, 10, FIXED_NOW)
        avg = account.get_position("TEST").average_cost

        inst.price = 60.0
        executor.sell(account, inst, 4, FIXED_NOW)

        position = account.get_position("TEST")
        assert position.amount == 6
        assert position.average_cost == avg

    def test_profitable_sell(self, account):
        executor = TradeExecutor(commission_rate=0.0)
        inst = make_instrument(price=100.0)
        executor.buy(account, inst, 2, FIXED_NOW)
        inst.price = 110.0
        trade = executor.sell(account, inst, 2, FIXED_NOW)
        assert trade.realized_pnl == pytest.approx(20.0)
        assert account.balance == pytest.approx(100020.0)

    def test_sell_without_position(self, executor, account):
        with pytest.raises(InsufficientSharesError) as exc:
            executor.sell(account, make_instrument(), 1, FIXED_NOW)
        assert exc.value.owned == 0
        assert account.history == []

    def test_sell_more_than_owned(self, executor, account):
        inst = make_instrument(price=10.0)
        executor.buy(account, inst, 3, FIXED_NOW)
        balance = account.balance

        with pytest.raises(InsufficientSharesError):
            executor.sell(account, inst, 4, FIXED_NOW)

        assert account.balance == balance
        assert account.get_position("TEST").amount == 3
        assert len(account.history) == 1

    def test_zero_amount_rejected(self, executor, account):
        inst = make_instrument()
        executor.buy(account, inst, 1, FIXED_NOW)
        with pytest.raises(InvalidOrderError):
            executor.sell(account, inst, 0, FIXED_NOW)


class TestHistory:
    """Tests for the trade log."""

    def test_newest_first(self, executor, account):
        inst = make_instrument(price=10.0)
        first = executor.buy(account, inst, 1, FIXED_NOW)
        second = executor.buy(account, inst, 2, FIXED_NOW)
        assert [t.id for t in account.history] == [second.id, first.id]

    def test_history_cap_drops_oldest(self, account):
        executor = TradeExecutor(commission_rate=0.0, max_history=3)
        inst = make_instrument(price=1.0)
        trades = [executor.buy(account, inst, 1, FIXED_NOW) for _ in range(5)]

        assert len(account.history) == 3
        assert [t.id for t in account.history] == [t.id for t in reversed(trades[-3:])]
        # Positions are not affected by the log cap
        assert account.get_position("TEST").amount == 5


class TestResolveInstrument:
    """Tests for symbol lookup."""

    def test_known_symbol(self):
        inst = make_instrument("AAA")
        assert resolve_instrument(InstrumentTable([inst]), "AAA") is inst

    def test_unknown_symbol(self):
        with pytest.raises(UnknownSymbolError) as exc:
            resolve_instrument(InstrumentTable([]), "NOPE")
        assert exc.value.symbol == "NOPE"
