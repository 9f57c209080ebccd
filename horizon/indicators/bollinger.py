"""Bollinger Bands: SMA middle band with population-stddev envelopes."""
from __future__ import annotations

from numpy.lib.stride_tricks import sliding_window_view

from horizon.data.models import SignalType
from horizon.errors import InvalidParameterError
from horizon.indicators.base import (
    BollingerValues,
    Indicator,
    IndicatorType,
    require_positive_int,
)
from horizon.indicators.moving_average import sma

# Relative band width below which the envelope carries no information.
_FLAT_BAND_TOL = 1e-12


class BollingerIndicator(Indicator):
    indicator_type = IndicatorType.BOLLINGER

    @property
    def required_window(self) -> int:
        return int(self.params["window"])

    def _validate(self) -> None:
        require_positive_int("window", self.params["window"])
        multiplier = self.params["multiplier"]
        if not multiplier > 0:
            raise InvalidParameterError(f"multiplier must be positive, got {multiplier}")

    def _values(self, prices):
        window = self.required_window
        multiplier = float(self.params["multiplier"])
        middle = sma(prices, window)
        std = sliding_window_view(prices, window).std(axis=1)
        band = multiplier * std
        return {"upper": middle + band, "middle": middle, "lower": middle - band}, window - 1

    def _signal(self, prices, arrays, pos, start):
        price = prices[start + pos]
        upper = arrays["upper"][pos]
        middle = arrays["middle"][pos]
        lower = arrays["lower"][pos]
        half_width = (upper - lower) / 2
        if half_width <= _FLAT_BAND_TOL * max(1.0, abs(middle)):
            return SignalType.HOLD, 0.0

        strength = abs(price - middle) / half_width
        if price <= lower:
            return SignalType.BUY, strength
        if price >= upper:
            return SignalType.SELL, strength
        return SignalType.HOLD, strength

    def _pack(self, arrays):
        return BollingerValues(
            upper=tuple(float(x) for x in arrays["upper"]),
            middle=tuple(float(x) for x in arrays["middle"]),
            lower=tuple(float(x) for x in arrays["lower"]),
        )
