"""Performance metrics and buy-and-hold benchmark computation for backtesting."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

import numpy as np

from horizon.backtest.models import BenchmarkResult, EquityPoint, PerformanceMetrics, Trade
from horizon.config.settings import DAYS_PER_YEAR, TRADING_DAYS_PER_YEAR
from horizon.data.models import PricePoint

logger = logging.getLogger(__name__)


def daily_returns(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if len(arr) < 2:
        return np.array([], dtype=float)
    prev = arr[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        returns = np.where(prev > 0, np.diff(arr) / prev, 0.0)
    return returns


def sharpe_ratio(values: Sequence[float]) -> float:
    """Annualised ``mean / std`` of daily returns (population std), 0 when undefined."""
    returns = daily_returns(values)
    if len(returns) < 1:
        return 0.0
    std = float(np.std(returns))
    if std == 0 or not np.isfinite(std):
        return 0.0
    return float(np.mean(returns) / std * np.sqrt(TRADING_DAYS_PER_YEAR))


def max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline as a positive fraction of the peak."""
    arr = np.asarray(values, dtype=float)
    if len(arr) == 0:
        return 0.0
    peaks = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - arr) / peaks, 0.0)
    return float(np.max(drawdowns))


def cagr(initial: float, final: float, start: date, end: date) -> float:
    days = (end - start).days
    if days <= 0 or initial <= 0:
        return 0.0
    if final <= 0:
        return -1.0
    return float((final / initial) ** (DAYS_PER_YEAR / days) - 1)


def compute_metrics(
    equity_curve: Sequence[EquityPoint],
    trades: Sequence[Trade],
    initial_capital: float,
) -> PerformanceMetrics:
    """Compute performance metrics from the equity curve and trade log."""
    if not equity_curve:
        return PerformanceMetrics(
            total_return=0.0, cagr=0.0, sharpe_ratio=0.0, max_drawdown=0.0,
            win_rate=0.0, total_trades=0, profitable_trades=0, average_return=0.0,
            final_value=initial_capital, initial_capital=initial_capital,
        )

    values = [p.value for p in equity_curve]
    final_value = values[-1]

    sells = [t for t in trades if t.side == "sell"]
    profitable = [t for t in sells if (t.realized_pnl or 0.0) > 0]
    returns = [t.realized_pnl / t.cost_basis for t in sells if t.cost_basis]

    return PerformanceMetrics(
        total_return=(final_value - initial_capital) / initial_capital,
        cagr=cagr(initial_capital, final_value, equity_curve[0].date, equity_curve[-1].date),
        sharpe_ratio=sharpe_ratio(values),
        max_drawdown=max_drawdown(values),
        win_rate=len(profitable) / len(sells) if sells else 0.0,
        total_trades=len(sells),
        profitable_trades=len(profitable),
        average_return=float(np.mean(returns)) if returns else 0.0,
        final_value=final_value,
        initial_capital=initial_capital,
    )


def compute_benchmark(series: Sequence[PricePoint], initial_capital: float) -> Optional[BenchmarkResult]:
    """Buy as many whole shares as capital allows on the first bar and hold."""
    if not series:
        return None
    start_price = series[0].close
    shares = int(initial_capital // start_price) if start_price > 0 else 0
    if shares <= 0:
        logger.warning(f"Benchmark skipped: {initial_capital:.2f} buys no shares at {start_price:.2f}")
        return None

    leftover = initial_capital - shares * start_price
    values = [shares * p.close + leftover for p in series]
    final_value = values[-1]

    return BenchmarkResult(
        start_price=start_price,
        end_price=series[-1].close,
        shares=shares,
        total_return=(final_value - initial_capital) / initial_capital,
        cagr=cagr(initial_capital, final_value, series[0].date, series[-1].date),
        sharpe_ratio=sharpe_ratio(values),
        max_drawdown=max_drawdown(values),
        final_value=final_value,
    )
