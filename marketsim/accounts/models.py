"""
Per-user account documents.

These are the records the user store persists: balance, positions, trade
history, wealth history, period snapshots and bot rules. Stats are derived
from the trade history every time they are read.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
import re
import uuid

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TradeSide(str, Enum):
    """Side of a trade."""
    BUY = "BUY"
    SELL = "SELL"


class TradeReason(str, Enum):
    """Why an autonomous trade fired."""
    SIGNAL = "Signal"
    STOP_LOSS = "Stop-Loss"
    TAKE_PROFIT = "Take-Profit"


class Position(BaseModel):
    """Shares held in one symbol. Cost basis includes commission."""
    symbol: str
    amount: int = Field(gt=0)
    average_cost: float

    @property
    def cost_basis(self) -> float:
        return self.amount * self.average_cost


class BotRule(BaseModel):
    """Autonomous trading rule for one symbol."""
    active: bool = False
    amount: int = Field(default=1, ge=1)
    stop_loss: Optional[float] = Field(default=None, ge=0)
    take_profit: Optional[float] = Field(default=None, ge=0)

    @property
    def has_stop_loss(self) -> bool:
        return self.stop_loss is not None

    @property
    def has_take_profit(self) -> bool:
        return self.take_profit is not None

    def merged(self, changes: dict) -> "BotRule":
        """Return a copy with ``changes`` applied; unspecified fields are kept."""
        return BotRule.model_validate({**self.model_dump(), **changes})


class TradeRecord(BaseModel):
    """Immutable record of an executed trade."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    type: TradeSide
    symbol: str
    amount: int
    price: float
    commission: float
    gross_total: float
    net_total: float
    timestamp: datetime
    is_auto: bool = False
    reason: Optional[TradeReason] = None
    realized_pnl: Optional[float] = None  # Sells only


class WealthPoint(BaseModel):
    """Total wealth observed at a point in time."""
    timestamp: datetime
    wealth: float


class WealthSnapshot(BaseModel):
    """Wealth at the start of a period, keyed by the period it belongs to."""
    key: str
    wealth: float


class WealthSnapshots(BaseModel):
    """Period-start wealth references used for profit/loss reporting."""
    day_start: Optional[WealthSnapshot] = None
    week_start: Optional[WealthSnapshot] = None
    month_start: Optional[WealthSnapshot] = None


class AccountStats(BaseModel):
    """Statistics derived from the trade history."""
    total_trades: int = 0
    buy_trades: int = 0
    sell_trades: int = 0
    profitable_trades: int = 0
    win_rate: float = 0.0
    best_symbol: Optional[str] = None
    realized_pnl: float = 0.0


class UserAccount(BaseModel):
    """A user's virtual trading account."""
    model_config = ConfigDict(extra="ignore")

    username: str
    balance: float
    portfolio: list[Position] = Field(default_factory=list)
    history: list[TradeRecord] = Field(default_factory=list)
    wealth_history: list[WealthPoint] = Field(default_factory=list)
    wealth_snapshots: WealthSnapshots = Field(default_factory=WealthSnapshots)
    bot_configs: dict[str, BotRule] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def new(cls, username: str, initial_balance: float, now: datetime) -> "UserAccount":
        """Create a freshly seeded account."""
        return cls(
            username=username,
            balance=initial_balance,
            wealth_history=[WealthPoint(timestamp=now, wealth=initial_balance)],
            created_at=now,
            updated_at=now,
        )

    @property
    def key(self) -> str:
        """Case-insensitive identity used by the stores."""
        return normalize_username(self.username)

    @computed_field
    @property
    def stats(self) -> AccountStats:
        # Recomputed from the full history on every access
        from marketsim.accounts.stats import compute_stats
        return compute_stats(self.history)

    def get_position(self, symbol: str) -> Optional[Position]:
        for position in self.portfolio:
            if position.symbol == symbol:
                return position
        return None

    def remove_position(self, symbol: str) -> None:
        self.portfolio = [p for p in self.portfolio if p.symbol != symbol]

    def reset(self, initial_balance: float, now: datetime) -> None:
        """Reseed balances and history; username and bot rules are kept."""
        self.balance = initial_balance
        self.portfolio = []
        self.history = []
        self.wealth_history = [WealthPoint(timestamp=now, wealth=initial_balance)]
        self.wealth_snapshots = WealthSnapshots()
        self.updated_at = now


USERNAME_PATTERN = re.compile(r"[\w.-]+")


def normalize_username(username: str) -> str:
    return username.strip().lower()


def validate_username(username: str) -> str:
    """Return the stripped username, or raise ValueError if it is not a safe identifier.

    Usernames double as file names in the JSON store, so only word characters,
    dots and dashes are allowed, and never "..".
    """
    name = (username or "").strip()
    if not name:
        raise ValueError("username must not be empty")
    if not USERNAME_PATTERN.fullmatch(name) or ".." in name:
        raise ValueError(f"Invalid username: {username!r}")
    return name
