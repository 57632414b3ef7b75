"""
User account API routes.

Identity is handled upstream; the username in the path is only checked for shape.
"""

from fastapi import APIRouter, Depends, HTTPException

from marketsim.api.deps import get_trading_service
from marketsim.service.trading_service import PersistenceError, TradingService

router = APIRouter()


@router.get("/{username}")
async def get_user(username: str, service: TradingService = Depends(get_trading_service)) -> dict:
    """Get a user's account, creating it on first access."""
    try:
        account = await service.get_or_create_user(username)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return account.model_dump(mode="json")


@router.get("/{username}/summary")
async def get_user_summary(username: str, service: TradingService = Depends(get_trading_service)) -> dict:
    """Get wealth, stats and day/week/month profit for a user."""
    try:
        return await service.account_summary(username)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{username}/reset")
async def reset_user(username: str, service: TradingService = Depends(get_trading_service)) -> dict:
    """Reset balance, portfolio and history. Bot rules are kept."""
    try:
        account = await service.reset_account(username)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "data": account.model_dump(mode="json")}
