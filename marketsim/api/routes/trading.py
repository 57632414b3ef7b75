"""
Manual trading API routes.

Manual orders use the same pricing, commission and cost basis rules as the
bots; they are not gated by the recommendation.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from marketsim.accounts.models import TradeSide, validate_username
from marketsim.api.deps import get_trading_service
from marketsim.service.trading_service import TradeResult, TradingService

router = APIRouter()


class ManualOrderRequest(BaseModel):
    """Manual order request."""
    username: str = Field(..., min_length=1, max_length=50)
    symbol: str = Field(..., description="Instrument symbol")
    amount: int = Field(..., gt=0, description="Number of shares")

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        """Reject blank usernames and ones unsafe as identifiers."""
        return validate_username(v)


_STATUS_BY_ERROR = {
    "UnknownSymbolError": 404,
    "PersistenceError": 503,
}


def _respond(result: TradeResult):
    if result.success:
        return {
            "success": True,
            "trade": result.trade.model_dump(mode="json"),
            "data": result.account.model_dump(mode="json"),
        }
    return JSONResponse(
        status_code=_STATUS_BY_ERROR.get(result.error_type, 400),
        content={"success": False, "message": result.message},
    )


@router.post("/buy")
async def buy(request: ManualOrderRequest, service: TradingService = Depends(get_trading_service)):
    """Buy shares at the current price."""
    result = await service.manual_trade(request.username, request.symbol, request.amount, TradeSide.BUY)
    return _respond(result)


@router.post("/sell")
async def sell(request: ManualOrderRequest, service: TradingService = Depends(get_trading_service)):
    """Sell owned shares at the current price."""
    result = await service.manual_trade(request.username, request.symbol, request.amount, TradeSide.SELL)
    return _respond(result)
