"""Backtest-specific data classes.

Result records serialise with camelCase names (``totalReturn``,
``sharpeRatio``) via ``model_dump(by_alias=True)``; snake_case names are
accepted on input.
"""
from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from horizon.config.settings import DEFAULT_INITIAL_CAPITAL, DEFAULT_POSITION_SIZE_PCT


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BacktestConfig(_CamelModel):
    """Inputs of a single-instrument backtest."""
    model_config = ConfigDict(frozen=True)

    ticker: str
    strategy_key: str
    initial_capital: float = DEFAULT_INITIAL_CAPITAL
    position_size_percent: float = DEFAULT_POSITION_SIZE_PCT
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    liquidate_at_end: bool = True
    # Only trade on the last bar of each week/month per the strategy's frequency.
    respect_rebalance_frequency: bool = False


class Trade(_CamelModel):
    """A single executed trade."""
    model_config = ConfigDict(frozen=True)

    date: date
    side: Literal["buy", "sell"]
    quantity: int
    price: float
    value: float
    realized_pnl: Optional[float] = None  # sell only
    cost_basis: Optional[float] = None  # sell only
    reason: str = ""


class EquityPoint(_CamelModel):
    """Portfolio state after the bar's trade, marked at the close."""
    model_config = ConfigDict(frozen=True)

    date: date
    value: float
    cash: float
    holdings_value: float
    shares: int
    price: float


class PerformanceMetrics(_CamelModel):
    """Aggregate performance statistics for a backtest. Ratios are fractions, not percent."""
    total_return: float
    cagr: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    total_trades: int
    profitable_trades: int
    average_return: float
    final_value: float
    initial_capital: float


class BenchmarkResult(_CamelModel):
    """Buy-and-hold over the same bars."""
    start_price: float
    end_price: float
    shares: int
    total_return: float
    cagr: float
    sharpe_ratio: float
    max_drawdown: float
    final_value: float


class Period(_CamelModel):
    start: date
    end: date


class BacktestResult(_CamelModel):
    """Complete backtest output."""
    model_config = ConfigDict(frozen=True)

    ticker: str
    strategy: str
    period: Period
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    trades: list[Trade] = Field(default_factory=list)
    metrics: PerformanceMetrics
    benchmark: Optional[BenchmarkResult] = None
