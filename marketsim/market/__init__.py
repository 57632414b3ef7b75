"""Market simulation module."""

from marketsim.market.models import (
    IndicatorBundle,
    Instrument,
    PricePoint,
    Recommendation,
)
from marketsim.market.indicators import compute_indicators
from marketsim.market.recommendation import classify
from marketsim.market.simulator import InstrumentTable, PriceSimulator

__all__ = [
    "IndicatorBundle",
    "Instrument",
    "PricePoint",
    "Recommendation",
    "compute_indicators",
    "classify",
    "InstrumentTable",
    "PriceSimulator",
]
