"""Exception taxonomy for the indicator, strategy and backtest engines."""
from __future__ import annotations


class HorizonError(Exception):
    """Base class for all engine errors."""


class InvalidSeriesError(HorizonError, ValueError):
    """Price series violates ordering or OHLCV invariants."""


class InvalidParameterError(HorizonError, ValueError):
    """Non-positive window/multiplier, malformed thresholds and similar."""


# ── Indicators ──────────────────────────────────────────────────────


class IndicatorError(HorizonError):
    """Base class for failures raised while building or computing an indicator."""


class InsufficientDataError(IndicatorError):
    """Fewer price points than the indicator's required window."""

    def __init__(self, indicator: str, required: int, available: int) -> None:
        self.indicator = indicator
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient data for {indicator}: need at least {required} data points, have {available}"
        )


class UnknownIndicatorTypeError(IndicatorError, ValueError):
    """Indicator type name does not map to a known family."""


class IndicatorComputationError(IndicatorError):
    """Indicator math produced a non-finite value."""


# ── Strategies & backtests ──────────────────────────────────────────


class InvalidStrategyError(HorizonError, ValueError):
    """Strategy definition is malformed (duplicate keys, dangling rule references)."""


class UnknownStrategyError(HorizonError, LookupError):
    """No strategy registered under the requested key."""


class DateRangeEmptyError(HorizonError):
    """No price points fall inside the requested backtest window."""


class InsufficientHistoryError(HorizonError):
    """Series is shorter than the strategy's longest required window."""

    def __init__(self, strategy: str, required: int, available: int) -> None:
        self.strategy = strategy
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient history for {strategy}: need at least {required} bars, have {available}"
        )


class BacktestCancelledError(HorizonError):
    """A caller aborted a running backtest between bars."""
