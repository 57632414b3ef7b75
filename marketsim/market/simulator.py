"""
Price simulator and the instrument table it owns.

Each tick moves every instrument by a bounded random walk step proportional to
its current price, records the new price in the instrument's rolling history
and recomputes its indicators.
"""

from datetime import datetime
from typing import Iterable, Iterator, Optional

import numpy as np
from loguru import logger

from marketsim.config.instruments import ALL_INSTRUMENTS, CatalogEntry
from marketsim.market.indicators import compute_indicators
from marketsim.market.models import IndicatorBundle, Instrument, PricePoint
from marketsim.utils.helpers import round_price


MIN_PRICE = 0.01


class InstrumentTable:
    """
    Process-wide instrument state.

    Written only by the simulator during a tick and read by every other
    component within the same tick.
    """

    def __init__(self, instruments: Iterable[Instrument] = ()):
        self._instruments: dict[str, Instrument] = {i.symbol: i for i in instruments}

    @classmethod
    def from_catalog(
        cls,
        catalog: Iterable[CatalogEntry] = ALL_INSTRUMENTS,
        history_size: int = 50,
        now: Optional[datetime] = None,
    ) -> "InstrumentTable":
        """Create the table at start-up, every instrument at its base price."""
        now = now or datetime.now().astimezone()
        instruments = []
        for entry in catalog:
            instruments.append(
                Instrument(
                    symbol=entry.symbol,
                    name=entry.name,
                    base_price=entry.base_price,
                    price=entry.base_price,
                    history_size=history_size,
                    price_history=[PricePoint(now, entry.base_price)],
                    indicators=IndicatorBundle.neutral(entry.base_price),
                )
            )
        logger.info(f"Instrument table created with {len(instruments)} instruments")
        return cls(instruments)

    def get(self, symbol: str) -> Optional[Instrument]:
        return self._instruments.get(symbol)

    def price_of(self, symbol: str) -> Optional[float]:
        instrument = self._instruments.get(symbol)
        return instrument.price if instrument else None

    @property
    def symbols(self) -> list[str]:
        return list(self._instruments.keys())

    def __iter__(self) -> Iterator[Instrument]:
        return iter(self._instruments.values())

    def __len__(self) -> int:
        return len(self._instruments)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._instruments

    def snapshot(self) -> list[dict]:
        """Read-only view of every instrument for market display."""
        return [i.to_dict() for i in self._instruments.values()]


class PriceSimulator:
    """Bounded random-walk price generator."""

    def __init__(
        self,
        volatility: float = 0.002,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.volatility = volatility
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    def advance(self, instrument: Instrument, now: datetime) -> Instrument:
        """Move one instrument a single step and refresh its indicators."""
        noise = self._rng.uniform(-1.0, 1.0)
        delta = noise * self.volatility * instrument.price
        new_price = max(round_price(instrument.price + delta), MIN_PRICE)

        # Change is measured against the reference base price, not the last tick
        total_change = new_price - instrument.base_price
        instrument.price = new_price
        instrument.change = round_price(total_change)
        instrument.change_percent = round_price(total_change / instrument.base_price * 100)

        instrument.price_history.append(PricePoint(now, new_price))
        instrument.indicators = compute_indicators(instrument.price_history, new_price)
        return instrument

    def advance_all(self, table: InstrumentTable, now: datetime) -> None:
        """Advance every instrument in the table."""
        for instrument in table:
            self.advance(instrument, now)
