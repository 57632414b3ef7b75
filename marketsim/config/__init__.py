"""Configuration module."""

from marketsim.config.settings import Settings, get_settings
from marketsim.config.instruments import (
    ALL_INSTRUMENTS,
    BIST_STOCKS,
    CatalogEntry,
    get_catalog_entry,
)

__all__ = [
    "Settings",
    "get_settings",
    "ALL_INSTRUMENTS",
    "BIST_STOCKS",
    "CatalogEntry",
    "get_catalog_entry",
]
