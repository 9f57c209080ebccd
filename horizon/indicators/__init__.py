"""Technical indicators: SMA, EMA, RSI, MACD and Bollinger Bands."""
from horizon.indicators.base import (
    BollingerValues,
    Indicator,
    IndicatorConfig,
    IndicatorReading,
    IndicatorResult,
    IndicatorSummary,
    IndicatorType,
    MACDValues,
)
from horizon.indicators.factory import (
    available_indicators,
    calculate_all,
    compute,
    create_indicator,
    required_window,
)
from horizon.indicators.moving_average import ema, sma

__all__ = [
    "BollingerValues",
    "Indicator",
    "IndicatorConfig",
    "IndicatorReading",
    "IndicatorResult",
    "IndicatorSummary",
    "IndicatorType",
    "MACDValues",
    "available_indicators",
    "calculate_all",
    "compute",
    "create_indicator",
    "ema",
    "required_window",
    "sma",
]
