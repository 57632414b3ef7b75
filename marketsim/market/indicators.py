"""
Technical indicators over an instrument's rolling price history.

Computes SMA(5/10), an RSI-style oscillator, a MACD-style line/signal pair and
Bollinger-style bands with pandas. Every value is recomputed from the full
history snapshot on each tick; nothing is carried between calls.

Notes:
- The oscillator sums raw gains and losses over the window (no Wilder
  smoothing).
- The MACD signal line is approximated as 90% of the line because no history
  of line values is retained.
"""

from dataclasses import replace
from typing import Iterable, Union

import pandas as pd

from marketsim.market.models import IndicatorBundle, PricePoint
from marketsim.market.recommendation import classify
from marketsim.utils.helpers import round_price


SMA_FAST_PERIOD = 5
SMA_SLOW_PERIOD = 10
RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL_RATIO = 0.9
BB_PERIOD = 20
BB_STD = 2.0


def _to_series(history: Iterable[Union[PricePoint, float]]) -> pd.Series:
    values = [p.price if isinstance(p, PricePoint) else float(p) for p in history]
    return pd.Series(values, dtype="float64")


def calculate_sma(prices: pd.Series, period: int) -> float:
    """Mean of the last ``period`` prices, or of all prices when fewer exist."""
    if period <= 0:
        raise ValueError("period must be > 0")
    if prices.empty:
        return 0.0
    return float(prices.tail(period).mean())


def calculate_rsi(prices: pd.Series, period: int = RSI_PERIOD) -> float:
    """RSI-style oscillator over the last ``period`` deltas.

    Returns 100.0 when the window holds no losses (including a flat window).
    """
    if period <= 0:
        raise ValueError("period must be > 0")

    window = prices.tail(period + 1)
    deltas = window.diff().dropna()
    gains = float(deltas.clip(lower=0.0).sum())
    losses = float(-deltas.clip(upper=0.0).sum())

    if losses == 0.0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + gains / losses)


def calculate_ema(prices: pd.Series, period: int) -> float:
    """EMA seeded with the first price, smoothing factor 2/(period+1).

    With fewer than ``period`` prices the latest price is returned.
    """
    if period <= 0:
        raise ValueError("period must be > 0")
    if prices.empty:
        return 0.0
    if len(prices) < period:
        return float(prices.iloc[-1])
    # adjust=False gives the recursive form: ema = price*k + ema*(1-k)
    return float(prices.ewm(span=period, adjust=False).mean().iloc[-1])


def calculate_macd(prices: pd.Series) -> tuple[float, float, float]:
    """Return (line, signal, histogram)."""
    line = calculate_ema(prices, MACD_FAST) - calculate_ema(prices, MACD_SLOW)
    signal = line * MACD_SIGNAL_RATIO
    return line, signal, line - signal


def calculate_bollinger(
    prices: pd.Series,
    period: int = BB_PERIOD,
    num_std: float = BB_STD,
) -> tuple[float, float, float]:
    """Return (upper, middle, lower) using the population standard deviation."""
    window = prices.tail(period)
    middle = float(window.mean())
    sigma = float(window.std(ddof=0))
    return middle + num_std * sigma, middle, middle - num_std * sigma


def compute_indicators(
    history: Iterable[Union[PricePoint, float]],
    current_price: float,
) -> IndicatorBundle:
    """Build the full indicator bundle, recommendation included."""
    prices = _to_series(history)
    if len(prices) < 2:
        return IndicatorBundle(rsi=50.0)

    macd_line, macd_signal, macd_hist = calculate_macd(prices)
    upper, middle, lower = calculate_bollinger(prices)

    bundle = IndicatorBundle(
        sma5=round_price(calculate_sma(prices, SMA_FAST_PERIOD)),
        sma10=round_price(calculate_sma(prices, SMA_SLOW_PERIOD)),
        rsi=round_price(calculate_rsi(prices, RSI_PERIOD)),
        macd_line=round_price(macd_line),
        macd_signal=round_price(macd_signal),
        macd_histogram=round_price(macd_hist),
        bb_upper=round_price(upper),
        bb_middle=round_price(middle),
        bb_lower=round_price(lower),
    )
    return replace(bundle, recommendation=classify(bundle, current_price))
