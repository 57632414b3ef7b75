"""
Structured logging setup using Loguru.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from marketsim.config.settings import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure structured logging with Loguru."""
    settings = settings or get_settings()

    # Remove default handler
    logger.remove()

    # Console handler with color
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    # File handler - general logs
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "marketsim_{time:YYYY-MM-DD}.log",
        level=settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
        rotation="00:00",
        retention="30 days",
        compression="gz",
    )

    # File handler - errors only
    logger.add(
        log_dir / "errors_{time:YYYY-MM-DD}.log",
        level="ERROR",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
        rotation="00:00",
        retention="90 days",
        compression="gz",
    )

    # File handler - trades (structured JSON)
    logger.add(
        log_dir / "trades_{time:YYYY-MM-DD}.json",
        level="INFO",
        format="{message}",
        filter=lambda record: record["extra"].get("trade", False),
        rotation="00:00",
        retention="365 days",
        serialize=True,
    )

    logger.info(f"Logging initialized at level {settings.log_level}")


def log_trade(
    action: str,
    username: str,
    symbol: str,
    amount: int,
    price: float,
    commission: float,
    is_auto: bool,
    trade_id: str = "",
    **kwargs
) -> None:
    """Log a trade execution with structured data."""
    logger.bind(trade=True).info(
        "{action} {amount} {symbol} @ {price} for {username}",
        action=action,
        username=username,
        symbol=symbol,
        amount=amount,
        price=price,
        commission=commission,
        is_auto=is_auto,
        trade_id=trade_id,
        **kwargs,
    )
