"""Horizon Trader: technical indicators, strategy signals and backtesting."""

__version__ = "0.1.0"
