"""
Simulation Scheduler.

Drives the market: every fixed interval it advances all instrument prices,
then runs each user's bots and wealth tracking and persists the account.

Ticks are serialized. The timer keeps firing on schedule, but a tick that
fires while the previous one still runs is skipped with a warning. Users are
processed one at a time under their account lock, so a manual trade never
interleaves with the tick's read-modify-write of the same account.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from marketsim.accounts.models import UserAccount
from marketsim.accounts.store import UserStore
from marketsim.accounts.wealth import WealthTracker
from marketsim.bot.bot_engine import BotExecutionEngine
from marketsim.market.simulator import InstrumentTable, PriceSimulator
from marketsim.service.locks import AccountLocks
from marketsim.utils.helpers import now_in


@dataclass
class TickResult:
    """Outcome of one simulation tick."""
    started_at: datetime
    users_processed: int = 0
    users_failed: int = 0
    trades_executed: int = 0
    failed: bool = False
    failed_users: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "users_processed": self.users_processed,
            "users_failed": self.users_failed,
            "trades_executed": self.trades_executed,
            "failed": self.failed,
            "failed_users": list(self.failed_users),
        }


class SimulationScheduler:
    """
    Fixed-interval driver for the simulation tick.

    Handles:
    - Price simulation for every instrument
    - Bot execution and wealth tracking per user
    - Persistence of each processed account
    """

    def __init__(
        self,
        instruments: InstrumentTable,
        store: UserStore,
        simulator: PriceSimulator,
        bot_engine: BotExecutionEngine,
        wealth_tracker: WealthTracker,
        locks: Optional[AccountLocks] = None,
        interval_seconds: float = 3.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            instruments: Instrument table owned by this scheduler.
            store: User store read and written every tick.
            interval_seconds: Wall-clock seconds between ticks.
            clock: Returns the current time; defaults to local aware time.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self.instruments = instruments
        self.store = store
        self.simulator = simulator
        self.bot_engine = bot_engine
        self.wealth_tracker = wealth_tracker
        self.locks = locks or AccountLocks()
        self.interval_seconds = interval_seconds
        self._clock = clock or now_in

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._tick_tasks: set[asyncio.Task] = set()
        self._tick_lock = asyncio.Lock()

        self.tick_count = 0
        self.skipped_ticks = 0
        self.last_result: Optional[TickResult] = None

        logger.info(f"SimulationScheduler initialized (interval={interval_seconds}s)")

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the scheduler loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._scheduler_loop())
        logger.info("SimulationScheduler started")

    async def stop(self) -> None:
        """Stop the loop; a tick already in progress runs to completion."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        # Every spawned tick, skipped or not, finishes before stop returns
        if self._tick_tasks:
            await asyncio.gather(*self._tick_tasks, return_exceptions=True)
        async with self._tick_lock:
            pass
        logger.info("SimulationScheduler stopped")

    async def _scheduler_loop(self) -> None:
        """Main scheduler loop."""
        loop = asyncio.get_running_loop()
        next_fire = loop.time()
        while self._running:
            try:
                # The timer does not wait for the previous tick; run_tick skips overlaps
                task = asyncio.create_task(self.run_tick())
                self._tick_tasks.add(task)
                task.add_done_callback(self._tick_tasks.discard)

                next_fire += self.interval_seconds
                await asyncio.sleep(max(0.0, next_fire - loop.time()))

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Scheduler loop error: {e}")
                await asyncio.sleep(self.interval_seconds)
                next_fire = loop.time()

    async def run_tick(self) -> Optional[TickResult]:
        """
        Execute one tick.

        Returns:
            The tick result, or None if the tick was skipped because the
            previous one has not finished.
        """
        if self._tick_lock.locked():
            self.skipped_ticks += 1
            logger.warning("Previous tick still running, skipping this tick")
            return None

        async with self._tick_lock:
            now = self._clock()
            result = TickResult(started_at=now)
            try:
                # Prices and indicators settle before any user is processed
                self.simulator.advance_all(self.instruments, now)

                accounts = await self.store.list_users()
                for account in accounts:
                    await self._process_user(account, now, result)

            except Exception:
                result.failed = True
                logger.exception("Tick aborted by unexpected error")

            self.tick_count += 1
            self.last_result = result
            logger.debug(
                f"Tick {self.tick_count}: {result.users_processed} users, "
                f"{result.trades_executed} trades, {result.users_failed} failed"
            )
            return result

    async def _process_user(self, listed: UserAccount, now: datetime, result: TickResult) -> None:
        """Run bots and wealth tracking for one user and persist the account."""
        async with self.locks.lock_for(listed.username):
            try:
                # Re-read under the lock to pick up request-driven changes
                account = await self.store.find_user(listed.username) or listed

                trades = self.bot_engine.execute_tick(account, self.instruments, now)
                self.wealth_tracker.update_wealth(account, self.instruments, now)

                if not await self.store.save_user(account):
                    result.users_failed += 1
                    result.failed_users.append(account.username)
                    logger.error(f"Failed to persist {account.username}; tick changes discarded")
                    return

                result.users_processed += 1
                result.trades_executed += len(trades)

            except Exception as e:
                result.users_failed += 1
                result.failed_users.append(listed.username)
                logger.error(f"Error processing user {listed.username}: {e}")

    def get_status(self) -> dict:
        """Get scheduler status."""
        return {
            "running": self._running,
            "interval_seconds": self.interval_seconds,
            "tick_count": self.tick_count,
            "skipped_ticks": self.skipped_ticks,
            "last_tick": self.last_result.to_dict() if self.last_result else None,
        }
