"""
Market API routes.
"""

from fastapi import APIRouter, Depends, HTTPException

from marketsim.api.deps import get_trading_service
from marketsim.service.trading_service import TradingService

router = APIRouter()


@router.get("")
async def get_market(service: TradingService = Depends(get_trading_service)) -> list[dict]:
    """Get all instruments with price history and indicators."""
    return service.market_snapshot()


@router.get("/{symbol}")
async def get_instrument(symbol: str, service: TradingService = Depends(get_trading_service)) -> dict:
    """Get a single instrument."""
    snapshot = service.instrument_snapshot(symbol)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Unknown symbol: {symbol}")
    return snapshot
