"""
Bot configuration API routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError, field_validator

from marketsim.accounts.models import validate_username
from marketsim.api.deps import get_trading_service
from marketsim.service.trading_service import PersistenceError, TradingService

router = APIRouter()


class BotRuleUpdate(BaseModel):
    """Partial bot rule. Omitted fields keep their previous value."""
    active: Optional[bool] = None
    amount: Optional[int] = Field(default=None, ge=1)
    stop_loss: Optional[float] = Field(default=None, ge=0)
    take_profit: Optional[float] = Field(default=None, ge=0)


class BotConfigRequest(BaseModel):
    """Request to update one symbol's bot rule."""
    username: str = Field(..., min_length=1, max_length=50)
    symbol: str
    config: BotRuleUpdate

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        """Reject blank usernames and ones unsafe as identifiers."""
        return validate_username(v)


@router.post("/config")
async def update_bot_config(
    request: BotConfigRequest,
    service: TradingService = Depends(get_trading_service),
) -> dict:
    """Merge the given fields into the user's rule for a symbol."""
    changes = request.config.model_dump(exclude_unset=True)
    try:
        rules = await service.update_bot_rule(request.username, request.symbol, changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "success": True,
        "data": {symbol: rule.model_dump() for symbol, rule in rules.items()},
    }


@router.get("/{username}")
async def get_bot_configs(username: str, service: TradingService = Depends(get_trading_service)) -> dict:
    """Get all bot rules of a user."""
    try:
        account = await service.get_or_create_user(username)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {symbol: rule.model_dump() for symbol, rule in account.bot_configs.items()}
