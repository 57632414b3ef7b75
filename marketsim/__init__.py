"""Simulated stock market with autonomous per-user trading bots."""

__version__ = "1.0.0"
