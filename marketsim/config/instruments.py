"""
Tradeable instruments configuration.
Defines the universe of instruments the simulator prices.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CatalogEntry:
    """Static description of a tradeable instrument."""
    symbol: str
    name: str
    base_price: float


# BIST 100 major stocks
BIST_STOCKS = [
    CatalogEntry("THYAO", "Türk Hava Yolları", 285.50),
    CatalogEntry("ASELS", "Aselsan", 62.20),
    CatalogEntry("EREGL", "Erdemir", 48.15),
    CatalogEntry("KCHOL", "Koç Holding", 175.80),
    CatalogEntry("SASA", "Sasa Polyester", 38.40),
    CatalogEntry("TUPRS", "Tüpraş", 162.90),
    CatalogEntry("SISE", "Şişecam", 46.30),
    CatalogEntry("GARAN", "Garanti BBVA", 72.40),
    CatalogEntry("AKBNK", "Akbank", 44.10),
    CatalogEntry("BIMAS", "BİM Mağazalar", 388.00),
]

# All tradeable instruments
ALL_INSTRUMENTS = BIST_STOCKS


def get_catalog_entry(symbol: str) -> Optional[CatalogEntry]:
    """Get catalog entry by symbol."""
    for entry in ALL_INSTRUMENTS:
        if entry.symbol.upper() == symbol.upper():
            return entry
    return None
