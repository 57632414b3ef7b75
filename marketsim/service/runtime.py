"""
Wiring of the simulator components from settings.
"""

from dataclasses import dataclass
from functools import partial
from typing import Optional

from loguru import logger

from marketsim.accounts.store import InMemoryUserStore, JsonFileUserStore, UserStore
from marketsim.accounts.wealth import WealthTracker
from marketsim.bot.bot_engine import BotExecutionEngine
from marketsim.config.settings import Settings, get_settings
from marketsim.execution.trade_executor import TradeExecutor
from marketsim.market.simulator import InstrumentTable, PriceSimulator
from marketsim.service.locks import AccountLocks
from marketsim.service.scheduler import SimulationScheduler
from marketsim.service.trading_service import TradingService
from marketsim.utils.helpers import now_in


@dataclass
class MarketRuntime:
    """Everything one running simulator owns."""
    settings: Settings
    instruments: InstrumentTable
    store: UserStore
    scheduler: SimulationScheduler
    service: TradingService


def build_store(settings: Settings) -> UserStore:
    clock = partial(now_in, settings.timezone)
    if settings.store_backend == "json":
        return JsonFileUserStore(
            settings.data_dir,
            initial_balance=settings.initial_balance,
            clock=clock,
        )
    return InMemoryUserStore(initial_balance=settings.initial_balance, clock=clock)


def build_runtime(
    settings: Optional[Settings] = None,
    store: Optional[UserStore] = None,
) -> MarketRuntime:
    """Create the instrument table, store, scheduler and trading service."""
    settings = settings or get_settings()
    clock = partial(now_in, settings.timezone)

    instruments = InstrumentTable.from_catalog(
        history_size=settings.price_history_size,
        now=clock(),
    )
    store = store or build_store(settings)
    locks = AccountLocks()
    executor = TradeExecutor(
        commission_rate=settings.commission_rate,
        max_history=settings.max_trade_history,
    )

    scheduler = SimulationScheduler(
        instruments=instruments,
        store=store,
        simulator=PriceSimulator(settings.price_volatility, seed=settings.random_seed),
        bot_engine=BotExecutionEngine(executor),
        wealth_tracker=WealthTracker(settings.wealth_history_size),
        locks=locks,
        interval_seconds=settings.tick_interval_seconds,
        clock=clock,
    )
    service = TradingService(
        instruments=instruments,
        store=store,
        executor=executor,
        locks=locks,
        initial_balance=settings.initial_balance,
        default_bot_amount=settings.default_bot_amount,
        clock=clock,
    )

    logger.info(
        f"Runtime built: {len(instruments)} instruments, store={type(store).__name__}, "
        f"commission={settings.commission_rate}"
    )
    return MarketRuntime(
        settings=settings,
        instruments=instruments,
        store=store,
        scheduler=scheduler,
        service=service,
    )
