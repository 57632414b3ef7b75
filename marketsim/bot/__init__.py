"""Autonomous bot trading module."""

from marketsim.bot.bot_engine import BotExecutionEngine, exit_reason, profit_pct

__all__ = [
    "BotExecutionEngine",
    "exit_reason",
    "profit_pct",
]
