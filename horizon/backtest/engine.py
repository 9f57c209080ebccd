"""Core backtest loop: replay a strategy bar by bar over one price series."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Sequence

import numpy as np
import pandas as pd

from horizon.backtest.metrics import compute_benchmark, compute_metrics
from horizon.backtest.models import BacktestConfig, BacktestResult, Period
from horizon.backtest.position import PositionTracker
from horizon.config.settings import validate_capital, validate_position_size
from horizon.data.models import PricePoint, SignalType, slice_range, validate_series
from horizon.errors import BacktestCancelledError, InsufficientHistoryError
from horizon.indicators.factory import create_indicator
from horizon.strategy.engine import StrategyEngine
from horizon.strategy.registry import StrategyRegistry

logger = logging.getLogger(__name__)

END_OF_BACKTEST = "End of backtest"

_PERIODS = {"weekly": "W", "monthly": "M"}


def rebalance_mask(series: Sequence[PricePoint], frequency: str) -> np.ndarray:
    """True on bars where trading is allowed: every bar for daily, else the last bar of each week/month."""
    if frequency not in ("daily", *_PERIODS):
        raise ValueError(f"Unknown frequency '{frequency}'. Use: daily, weekly, monthly")
    if frequency == "daily":
        return np.ones(len(series), dtype=bool)
    periods = pd.to_datetime([p.date for p in series]).to_period(_PERIODS[frequency])
    mask = np.ones(len(series), dtype=bool)
    mask[:-1] = periods[:-1] != periods[1:]
    return mask


class BacktestSimulator:
    """Step through historical bars, consolidate strategy signals and track the position.

    At bar ``i`` indicators see ``series[0..i]`` only. Stateless between runs.
    """

    def __init__(
        self,
        registry: StrategyRegistry | None = None,
        engine: StrategyEngine | None = None,
    ) -> None:
        if engine is None:
            engine = StrategyEngine(registry)
        self.engine = engine
        self.registry = engine.registry

    def run(
        self,
        series: Sequence[PricePoint],
        config: BacktestConfig,
        cancel_event: Optional[threading.Event] = None,
        on_bar: Optional[Callable[[int, int], None]] = None,
    ) -> BacktestResult:
        """Execute the backtest loop.

        *on_bar(done, total)* is called after each bar. Setting *cancel_event*
        aborts with BacktestCancelledError before the next bar.
        """
        validate_capital(config.initial_capital)
        validate_position_size(config.position_size_percent)
        strategy = self.engine.resolve(config.strategy_key)
        for indicator_config in strategy.indicators:
            create_indicator(indicator_config)

        validate_series(series)
        bars = slice_range(series, config.start_date, config.end_date)
        required = strategy.required_window
        if len(bars) < required:
            raise InsufficientHistoryError(strategy.key, required, len(bars))

        if config.respect_rebalance_frequency:
            tradable = rebalance_mask(bars, strategy.rebalance_frequency)
        else:
            tradable = np.ones(len(bars), dtype=bool)

        logger.info(
            f"Backtesting {config.ticker} with {strategy.key}: {len(bars)} bars "
            f"{bars[0].date} -> {bars[-1].date}, capital {config.initial_capital:,.2f}"
        )

        tracker = PositionTracker(config.initial_capital, config.position_size_percent)
        total = len(bars)
        bar_signals = self.engine.iter_bar_signals(strategy, bars)
        for i, (bar, (signal, readings)) in enumerate(zip(bars, bar_signals)):
            if cancel_event is not None and cancel_event.is_set():
                raise BacktestCancelledError(f"Backtest of {config.ticker} cancelled at bar {i}/{total}")

            if tradable[i]:
                if signal == SignalType.BUY and not tracker.is_long:
                    tracker.buy(bar.date, bar.close, self.engine.generate_reason(signal, readings))
                elif signal == SignalType.SELL and tracker.is_long:
                    tracker.sell(bar.date, bar.close, self.engine.generate_reason(signal, readings))
            tracker.mark(bar.date, bar.close)

            if on_bar is not None:
                on_bar(i + 1, total)

        last = bars[-1]
        if config.liquidate_at_end and tracker.is_long:
            tracker.sell(last.date, last.close, END_OF_BACKTEST)
            tracker.remark_last(last.close)

        metrics = compute_metrics(tracker.equity_curve, tracker.trades, config.initial_capital)
        benchmark = compute_benchmark(bars, config.initial_capital)
        logger.info(
            f"Backtest {config.ticker}/{strategy.key} done: {len(tracker.trades)} trades, "
            f"return {metrics.total_return:.2%}"
        )

        return BacktestResult(
            ticker=config.ticker,
            strategy=strategy.key,
            period=Period(start=bars[0].date, end=last.date),
            equity_curve=tracker.equity_curve,
            trades=tracker.trades,
            metrics=metrics,
            benchmark=benchmark,
        )
