"""Built-in strategy definitions, as plain data.

Each entry validates into a ``StrategyDefinition``. Rule operands refer to
indicator labels; a bare label reads the indicator's primary value (the MACD
line for MACD, the middle band for Bollinger).
"""
from __future__ import annotations

from typing import Any

BUILTIN_STRATEGIES: dict[str, dict[str, Any]] = {
    "trend_following": {
        "name": "Trend Following",
        "description": "Uses moving averages to identify and follow market trends",
        "indicators": [
            {"type": "SMA", "label": "sma50", "window": 50},
            {"type": "SMA", "label": "sma200", "window": 200},
        ],
        "entry_rule": {
            "mode": "all",
            "description": "Price > SMA50 AND SMA50 > SMA200",
            "conditions": [
                {"left": "price", "op": ">", "right": "sma50"},
                {"left": "sma50", "op": ">", "right": "sma200"},
            ],
        },
        "exit_rule": {
            "mode": "any",
            "description": "Price <= SMA50 OR SMA50 <= SMA200",
            "conditions": [
                {"left": "price", "op": "<=", "right": "sma50"},
                {"left": "sma50", "op": "<=", "right": "sma200"},
            ],
        },
        "rebalance_frequency": "weekly",
    },
    "mean_reversion": {
        "name": "Mean Reversion",
        "description": "Identifies overbought/oversold conditions for contrarian trades",
        "indicators": [
            {"type": "RSI", "label": "rsi", "window": 14, "overbought": 70, "oversold": 30},
            {"type": "BOLLINGER", "label": "bb", "window": 20, "multiplier": 2},
        ],
        "entry_rule": {
            "mode": "any",
            "description": "RSI < 30 OR Price < Lower Bollinger Band",
            "conditions": [
                {"left": "rsi", "op": "<", "right": 30},
                {"left": "price", "op": "<", "right": "bb.lower"},
            ],
        },
        "exit_rule": {
            "mode": "any",
            "description": "RSI > 70 OR Price > Upper Bollinger Band",
            "conditions": [
                {"left": "rsi", "op": ">", "right": 70},
                {"left": "price", "op": ">", "right": "bb.upper"},
            ],
        },
        "rebalance_frequency": "daily",
    },
    "momentum": {
        "name": "Momentum",
        "description": "Trades based on price momentum and MACD signals",
        "indicators": [
            {"type": "MACD", "label": "macd", "fast_period": 12, "slow_period": 26, "signal_period": 9},
            {"type": "EMA", "label": "ema12", "window": 12},
            {"type": "RSI", "label": "rsi", "window": 14, "overbought": 80, "oversold": 20},
        ],
        "entry_rule": {
            "mode": "all",
            "description": "MACD bullish crossover AND RSI > 50",
            "conditions": [
                {"left": "macd.macd", "op": "crosses_above", "right": "macd.signal"},
                {"left": "rsi", "op": ">", "right": 50},
            ],
        },
        "exit_rule": {
            "mode": "any",
            "description": "MACD bearish crossover OR RSI < 50",
            "conditions": [
                {"left": "macd.macd", "op": "crosses_below", "right": "macd.signal"},
                {"left": "rsi", "op": "<", "right": 50},
            ],
        },
        "rebalance_frequency": "weekly",
    },
    "conservative": {
        "name": "Conservative",
        "description": "Uses multiple indicators with conservative risk management",
        "indicators": [
            {"type": "SMA", "label": "sma50", "window": 50},
            {"type": "RSI", "label": "rsi", "window": 14, "overbought": 75, "oversold": 25},
            {"type": "BOLLINGER", "label": "bb", "window": 20, "multiplier": 2},
        ],
        "entry_rule": {
            "mode": "all",
            "description": "Price > SMA50 AND RSI < 60 AND Price < Middle Bollinger Band",
            "conditions": [
                {"left": "price", "op": ">", "right": "sma50"},
                {"left": "rsi", "op": "<", "right": 60},
                {"left": "price", "op": "<", "right": "bb.middle"},
            ],
        },
        "exit_rule": {
            "mode": "any",
            "description": "Price < SMA50 OR RSI > 80 OR Price > Upper Bollinger Band",
            "conditions": [
                {"left": "price", "op": "<", "right": "sma50"},
                {"left": "rsi", "op": ">", "right": 80},
                {"left": "price", "op": ">", "right": "bb.upper"},
            ],
        },
        "rebalance_frequency": "monthly",
    },
}
