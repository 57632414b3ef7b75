"""
FastAPI application factory.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from marketsim.api.deps import get_runtime
from marketsim.api.routes import bots, market, trading, users
from marketsim.service.runtime import MarketRuntime, build_runtime


def create_app(
    runtime: Optional[MarketRuntime] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Create the API app around a runtime.

    Args:
        runtime: Prebuilt runtime; built from settings when omitted.
        start_scheduler: Run the simulation tick inside the app lifespan.
    """
    runtime = runtime or build_runtime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_scheduler:
            runtime.scheduler.start()
        try:
            yield
        finally:
            if start_scheduler:
                await runtime.scheduler.stop()
            logger.info("Market simulator API stopped")

    app = FastAPI(
        title="Market Simulator",
        description="Simulated stock market with autonomous trading bots",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(market.router, prefix="/api/market", tags=["Market"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(trading.router, prefix="/api/trade", tags=["Trading"])
    app.include_router(bots.router, prefix="/api/bot", tags=["Bots"])

    @app.get("/api/health")
    async def health(rt: MarketRuntime = Depends(get_runtime)):
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "scheduler": rt.scheduler.get_status(),
        }

    return app
