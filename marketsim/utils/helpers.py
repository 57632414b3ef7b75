"""
Utility helper functions.
"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from zoneinfo import ZoneInfo


def now_in(tz_name: Optional[str] = None) -> datetime:
    """Get the current time in the given timezone (UTC-aware local time if None)."""
    if tz_name:
        return datetime.now(ZoneInfo(tz_name))
    return datetime.now().astimezone()


def round_price(price: float, decimals: int = 2) -> float:
    """Round price to specified decimals."""
    d = Decimal(str(price))
    return float(d.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP))


def day_key(moment: datetime) -> str:
    """Calendar date key, e.g. 2026-10-19."""
    return moment.strftime("%Y-%m-%d")


def week_key(moment: datetime) -> str:
    """Date of the Monday starting the ISO week containing ``moment``."""
    monday = moment.date() - timedelta(days=moment.weekday())
    return monday.strftime("%Y-%m-%d")


def month_key(moment: datetime) -> str:
    """Year and month key, e.g. 2026-10."""
    return moment.strftime("%Y-%m")
