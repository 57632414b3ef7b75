"""Tests for the bot execution engine."""

import pytest

from marketsim.accounts.models import BotRule, Position, TradeReason, TradeSide, UserAccount
from marketsim.bot.bot_engine import BotExecutionEngine, exit_reason, profit_pct
from marketsim.execution.trade_executor import TradeExecutor
from marketsim.market.models import Recommendation
from marketsim.market.simulator import InstrumentTable

from tests.conftest import FIXED_NOW, make_instrument


@pytest.fixture
def engine(executor):
    return BotExecutionEngine(executor)


def holding(account: UserAccount, symbol: str = "TEST", amount: int = 10, avg: float = 100.0):
    account.portfolio.append(Position(symbol=symbol, amount=amount, average_cost=avg))
    return account


class TestExitReason:
    """Tests for exit decision ordering."""

    def test_profit_pct(self):
        position = Position(symbol="X", amount=1, average_cost=100.0)
        assert profit_pct(position, 110.0) == pytest.approx(10.0)
        assert profit_pct(position, 95.0) == pytest.approx(-5.0)

    def test_stop_loss(self):
        position = Position(symbol="X", amount=1, average_cost=100.0)
        rule = BotRule(active=True, stop_loss=5)
        assert exit_reason(rule, position, 90.0, Recommendation.HOLD) == TradeReason.STOP_LOSS

    def test_take_profit(self):
        position = Position(symbol="X", amount=1, average_cost=100.0)
        rule = BotRule(active=True, take_profit=10)
        assert exit_reason(rule, position, 111.0, Recommendation.HOLD) == TradeReason.TAKE_PROFIT

    def test_stop_loss_beats_take_profit(self):
        # Both thresholds 0 at break-even match
        position = Position(symbol="X", amount=1, average_cost=100.0)
        rule = BotRule(active=True, stop_loss=0, take_profit=0)
        assert exit_reason(rule, position, 100.0, Recommendation.HOLD) == TradeReason.STOP_LOSS

    def test_take_profit_beats_signal(self):
        position = Position(symbol="X", amount=1, average_cost=100.0)
        rule = BotRule(active=True, take_profit=10)
        result = exit_reason(rule, position, 120.0, Recommendation.STRONG_SELL)
        assert result == TradeReason.TAKE_PROFIT

    def test_strong_sell_signal(self):
        position = Position(symbol="X", amount=1, average_cost=100.0)
        rule = BotRule(active=True)
        assert exit_reason(rule, position, 100.0, Recommendation.STRONG_SELL) == TradeReason.SIGNAL

    def test_unset_thresholds_never_fire(self):
        position = Position(symbol="X", amount=1, average_cost=100.0)
        rule = BotRule(active=True)
        assert exit_reason(rule, position, 1.0, Recommendation.SELL) is None
        assert exit_reason(rule, position, 1000.0, Recommendation.HOLD) is None


class TestExecuteTick:
    """Tests for per-tick rule evaluation."""

    def test_inactive_rule_does_nothing(self, engine, account):
        inst = make_instrument(recommendation=Recommendation.STRONG_BUY)
        account.bot_configs["TEST"] = BotRule(active=False, amount=5)
        assert engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW) == []
        assert account.portfolio == []

    def test_unknown_symbol_skipped(self, engine, account):
        account.bot_configs["GONE"] = BotRule(active=True, amount=5)
        table = InstrumentTable([make_instrument(recommendation=Recommendation.STRONG_BUY)])
        assert engine.execute_tick(account, table, FIXED_NOW) == []
        assert account.balance == 100000.0

    def test_strong_buy_buys_rule_amount(self, engine, account):
        inst = make_instrument(price=50.0, recommendation=Recommendation.STRONG_BUY)
        account.bot_configs["TEST"] = BotRule(active=True, amount=5)

        trades = engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)

        assert len(trades) == 1
        assert trades[0].type == TradeSide.BUY
        assert trades[0].is_auto is True
        assert trades[0].reason == TradeReason.SIGNAL
        assert account.get_position("TEST").amount == 5
        assert account.balance == pytest.approx(99749.875)

    def test_strong_buy_with_insufficient_balance(self, engine):
        account = UserAccount.new("poor", 10.0, FIXED_NOW)
        inst = make_instrument(price=50.0, recommendation=Recommendation.STRONG_BUY)
        account.bot_configs["TEST"] = BotRule(active=True, amount=1)

        assert engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW) == []
        assert account.balance == 10.0
        assert account.history == []

    def test_strong_buy_ignores_breached_stop_loss(self, engine, account):
        holding(account, avg=100.0)
        inst = make_instrument(price=80.0, recommendation=Recommendation.STRONG_BUY)
        account.bot_configs["TEST"] = BotRule(active=True, amount=2, stop_loss=5)

        trades = engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)

        assert [t.type for t in trades] == [TradeSide.BUY]
        assert account.get_position("TEST").amount == 12

    def test_strong_sell_sells_min_of_position_and_rule(self, engine, account):
        holding(account, amount=3)
        inst = make_instrument(price=100.0, recommendation=Recommendation.STRONG_SELL)
        account.bot_configs["TEST"] = BotRule(active=True, amount=5)

        trades = engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)

        assert trades[0].type == TradeSide.SELL
        assert trades[0].amount == 3
        assert trades[0].reason == TradeReason.SIGNAL
        assert account.get_position("TEST") is None

    def test_strong_sell_partial_exit(self, engine, account):
        holding(account, amount=10)
        inst = make_instrument(price=100.0, recommendation=Recommendation.STRONG_SELL)
        account.bot_configs["TEST"] = BotRule(active=True, amount=4)

        engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)

        assert account.get_position("TEST").amount == 6

    def test_stop_loss_exit(self, engine, account):
        holding(account, amount=10, avg=100.0)
        inst = make_instrument(price=90.0, recommendation=Recommendation.HOLD)
        account.bot_configs["TEST"] = BotRule(active=True, amount=10, stop_loss=5)

        trades = engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)

        assert trades[0].reason == TradeReason.STOP_LOSS
        assert trades[0].amount == 10
        assert account.get_position("TEST") is None

    def test_take_profit_exit(self, engine, account):
        holding(account, amount=10, avg=100.0)
        inst = make_instrument(price=111.0, recommendation=Recommendation.BUY)
        account.bot_configs["TEST"] = BotRule(active=True, amount=2, take_profit=10)

        trades = engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)

        assert trades[0].reason == TradeReason.TAKE_PROFIT
        assert account.get_position("TEST").amount == 8

    def test_no_position_no_exit(self, engine, account):
        inst = make_instrument(recommendation=Recommendation.STRONG_SELL)
        account.bot_configs["TEST"] = BotRule(active=True, amount=1, stop_loss=0)
        assert engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW) == []

    def test_hold_within_thresholds(self, engine, account):
        holding(account, amount=10, avg=100.0)
        inst = make_instrument(price=102.0, recommendation=Recommendation.SELL)
        account.bot_configs["TEST"] = BotRule(active=True, amount=1, stop_loss=5, take_profit=10)
        assert engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW) == []

    def test_multiple_rules_evaluated(self, engine, account):
        a = make_instrument("AAA", price=10.0, recommendation=Recommendation.STRONG_BUY)
        b = make_instrument("BBB", price=20.0, recommendation=Recommendation.STRONG_BUY)
        account.bot_configs["AAA"] = BotRule(active=True, amount=1)
        account.bot_configs["BBB"] = BotRule(active=True, amount=2)

        trades = engine.execute_tick(account, InstrumentTable([a, b]), FIXED_NOW)

        assert {t.symbol for t in trades} == {"AAA", "BBB"}
        assert account.get_position("BBB").amount == 2


def test_engine_uses_given_executor(account):
    executor = TradeExecutor(commission_rate=0.0)
    engine = BotExecutionEngine(executor)
    inst = make_instrument(price=100.0, recommendation=Recommendation.STRONG_BUY)
    account.bot_configs["TEST"] = BotRule(active=True, amount=1)
    engine.execute_tick(account, InstrumentTable([inst]), FIXED_NOW)
    assert account.balance == 99900.0
