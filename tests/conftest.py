"""Shared fixtures for marketsim tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from marketsim.accounts.models import UserAccount
from marketsim.accounts.store import InMemoryUserStore
from marketsim.api.app import create_app
from marketsim.config.settings import Settings
from marketsim.execution.trade_executor import TradeExecutor
from marketsim.market.models import IndicatorBundle, Instrument, PricePoint, Recommendation
from marketsim.market.simulator import InstrumentTable
from marketsim.service.runtime import build_runtime


TZ = ZoneInfo("Europe/Istanbul")

# Monday
FIXED_NOW = datetime(2026, 10, 19, 10, 0, tzinfo=TZ)


def make_instrument(
    symbol: str = "TEST",
    price: float = 100.0,
    base_price: float = 100.0,
    recommendation: Recommendation = Recommendation.HOLD,
    history_size: int = 50,
) -> Instrument:
    """Build an instrument with a fixed recommendation."""
    return Instrument(
        symbol=symbol,
        name=f"{symbol} Corp",
        base_price=base_price,
        price=price,
        history_size=history_size,
        price_history=[PricePoint(FIXED_NOW, price)],
        indicators=IndicatorBundle(recommendation=recommendation),
    )


@pytest.fixture
def settings():
    """In-memory, deterministic settings that ignore any .env file."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        random_seed=42,
        tick_interval_seconds=3.0,
    )


@pytest.fixture
def instrument():
    return make_instrument()


@pytest.fixture
def table(instrument):
    return InstrumentTable([instrument])


@pytest.fixture
def executor():
    return TradeExecutor(commission_rate=0.0005)


@pytest.fixture
def account():
    return UserAccount.new("alice", 100000.0, FIXED_NOW)


@pytest.fixture
def store():
    return InMemoryUserStore(initial_balance=100000.0, clock=lambda: FIXED_NOW)


@pytest.fixture
def runtime(settings):
    return build_runtime(settings)


@pytest.fixture
def client(runtime):
    """API client with the scheduler disabled."""
    app = create_app(runtime, start_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client
