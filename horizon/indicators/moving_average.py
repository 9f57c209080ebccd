"""Simple and exponential moving averages."""
from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from horizon.data.models import SignalType
from horizon.errors import InvalidParameterError
from horizon.indicators.base import (
    CROSS_STRENGTH,
    HOLD_STRENGTH,
    Indicator,
    IndicatorType,
    crossover,
    require_positive_int,
)


def sma(values: np.ndarray, window: int) -> np.ndarray:
    """Rolling mean; element k covers ``values[k : k + window]``."""
    if len(values) < window:
        return np.array([], dtype=float)
    return sliding_window_view(values, window).mean(axis=1)


def ema(values: np.ndarray, window: int, alpha: Optional[float] = None) -> np.ndarray:
    """Recursive EMA seeded with the first value; same length as *values*."""
    a = alpha if alpha is not None else 2.0 / (window + 1)
    out = np.empty(len(values), dtype=float)
    if len(values) == 0:
        return out
    out[0] = values[0]
    for i in range(1, len(values)):
        out[i] = values[i] * a + out[i - 1] * (1 - a)
    return out


def _strength(signal: SignalType) -> float:
    return HOLD_STRENGTH if signal == SignalType.HOLD else CROSS_STRENGTH


class SMAIndicator(Indicator):
    indicator_type = IndicatorType.SMA

    @property
    def required_window(self) -> int:
        return int(self.params["window"])

    def _validate(self) -> None:
        require_positive_int("window", self.params["window"])

    def _values(self, prices):
        window = self.required_window
        return {"value": sma(prices, window)}, window - 1

    def _signal(self, prices, arrays, pos, start):
        if pos < 1:
            return SignalType.HOLD, HOLD_STRENGTH
        values = arrays["value"]
        signal = crossover(prices[start + pos - 1], values[pos - 1], prices[start + pos], values[pos])
        return signal, _strength(signal)


class EMAIndicator(Indicator):
    indicator_type = IndicatorType.EMA

    @property
    def required_window(self) -> int:
        return int(self.params["window"])

    def _validate(self) -> None:
        require_positive_int("window", self.params["window"])
        alpha = self.params["alpha"]
        if not 0 < alpha <= 1:
            raise InvalidParameterError(f"alpha must be in (0, 1], got {alpha}")

    def _values(self, prices):
        return {"value": ema(prices, self.required_window, self.params["alpha"])}, 0

    def _signal(self, prices, arrays, pos, start):
        if pos < 1:
            return SignalType.HOLD, HOLD_STRENGTH
        values = arrays["value"]
        signal = crossover(prices[pos - 1], values[pos - 1], prices[pos], values[pos])
        return signal, _strength(signal)
