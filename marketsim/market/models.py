"""
Market state models: instruments, their price series and derived indicators.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque


class Recommendation(str, Enum):
    """Discrete trade recommendation derived from an indicator bundle."""
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"

    @property
    def is_bullish(self) -> bool:
        return self in (Recommendation.STRONG_BUY, Recommendation.BUY)

    @property
    def is_bearish(self) -> bool:
        return self in (Recommendation.STRONG_SELL, Recommendation.SELL)


@dataclass(frozen=True)
class PricePoint:
    """A single observed price."""
    timestamp: datetime
    price: float

    def to_dict(self) -> dict:
        return {"time": self.timestamp.isoformat(), "price": self.price}


@dataclass(frozen=True)
class IndicatorBundle:
    """Technical indicators computed from one price-history snapshot."""
    sma5: float = 0.0
    sma10: float = 0.0
    rsi: float = 50.0
    macd_line: float = 0.0
    macd_signal: float = 0.0
    macd_histogram: float = 0.0
    bb_upper: float = 0.0
    bb_middle: float = 0.0
    bb_lower: float = 0.0
    recommendation: Recommendation = Recommendation.HOLD

    @classmethod
    def neutral(cls, price: float = 0.0) -> "IndicatorBundle":
        """Bundle used before enough history exists."""
        return cls(sma5=price, sma10=price, rsi=50.0)

    def to_dict(self) -> dict:
        return {
            "sma5": self.sma5,
            "sma10": self.sma10,
            "rsi": self.rsi,
            "macd": {
                "line": self.macd_line,
                "signal": self.macd_signal,
                "histogram": self.macd_histogram,
            },
            "bollinger": {
                "upper": self.bb_upper,
                "middle": self.bb_middle,
                "lower": self.bb_lower,
            },
            "recommendation": self.recommendation.value,
        }


@dataclass
class Instrument:
    """Live state of a tradeable instrument."""
    symbol: str
    name: str
    base_price: float
    price: float
    history_size: int = 50
    change: float = 0.0
    change_percent: float = 0.0
    price_history: Deque[PricePoint] = field(default_factory=deque)
    indicators: IndicatorBundle = field(default_factory=IndicatorBundle)

    def __post_init__(self) -> None:
        # Capped rolling window, oldest points fall off first
        self.price_history = deque(self.price_history, maxlen=self.history_size)

    @property
    def recommendation(self) -> Recommendation:
        return self.indicators.recommendation

    def prices(self) -> list[float]:
        return [p.price for p in self.price_history]

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "base_price": self.base_price,
            "price": self.price,
            "change": self.change,
            "change_percent": self.change_percent,
            "price_history": [p.to_dict() for p in self.price_history],
            "indicators": self.indicators.to_dict(),
        }
