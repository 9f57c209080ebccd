"""Indicator factory keyed by IndicatorType."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence, Union

from horizon.data.models import PricePoint
from horizon.errors import IndicatorError, InvalidParameterError
from horizon.indicators.base import DEFAULT_PARAMS, Indicator, IndicatorConfig, IndicatorResult, IndicatorType
from horizon.indicators.bollinger import BollingerIndicator
from horizon.indicators.moving_average import EMAIndicator, SMAIndicator
from horizon.indicators.oscillators import MACDIndicator, RSIIndicator

logger = logging.getLogger(__name__)

INDICATOR_CLASSES: dict[IndicatorType, type[Indicator]] = {
    IndicatorType.SMA: SMAIndicator,
    IndicatorType.EMA: EMAIndicator,
    IndicatorType.RSI: RSIIndicator,
    IndicatorType.MACD: MACDIndicator,
    IndicatorType.BOLLINGER: BollingerIndicator,
}

INDICATOR_NAMES: dict[IndicatorType, str] = {
    IndicatorType.SMA: "Simple Moving Average",
    IndicatorType.EMA: "Exponential Moving Average",
    IndicatorType.RSI: "Relative Strength Index",
    IndicatorType.MACD: "MACD",
    IndicatorType.BOLLINGER: "Bollinger Bands",
}


def create_indicator(config: Union[IndicatorConfig, str, IndicatorType], **params: Any) -> Indicator:
    """Instantiate the indicator for *config*; bad parameters raise InvalidParameterError."""
    if not isinstance(config, IndicatorConfig):
        config = IndicatorConfig.of(config, **params)
    return INDICATOR_CLASSES[config.type](config)


def compute(series: Sequence[PricePoint], config: IndicatorConfig) -> IndicatorResult:
    """Compute one indicator over *series*."""
    return create_indicator(config).compute(series)


def required_window(config: IndicatorConfig) -> int:
    """Bars needed before *config* yields its first value."""
    return create_indicator(config).required_window


def available_indicators() -> list[dict[str, Any]]:
    """Describe each supported family with its default window."""
    out = []
    for indicator_type, cls in INDICATOR_CLASSES.items():
        defaults = DEFAULT_PARAMS[indicator_type]
        out.append({
            "type": indicator_type.value,
            "name": INDICATOR_NAMES[indicator_type],
            "default_window": cls(IndicatorConfig(type=indicator_type)).required_window,
            "default_params": dict(defaults),
        })
    return out


def calculate_all(
    series: Sequence[PricePoint],
    indicator_types: Iterable[Union[str, IndicatorType]] = ("SMA", "RSI", "MACD"),
) -> tuple[dict[str, IndicatorResult], dict[str, str]]:
    """Compute default-parameter indicators, collecting per-type errors instead of raising.

    Returns ``(results, errors)`` keyed by indicator type name.
    """
    results: dict[str, IndicatorResult] = {}
    errors: dict[str, str] = {}
    for name in indicator_types:
        label = str(getattr(name, "value", name)).upper()
        try:
            results[label] = create_indicator(name).compute(series)
        except (IndicatorError, InvalidParameterError) as e:
            logger.warning(f"Failed to calculate {label} indicator: {e}")
            errors[label] = str(e)
    return results, errors
