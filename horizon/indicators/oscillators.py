"""Momentum oscillators: RSI (Wilder smoothing) and MACD."""
from __future__ import annotations

import numpy as np

from horizon.config.settings import MACD_STRENGTH_CAP
from horizon.data.models import SignalType
from horizon.errors import InvalidParameterError
from horizon.indicators.base import (
    HOLD_STRENGTH,
    Indicator,
    IndicatorType,
    MACDValues,
    crossover,
    require_positive_int,
)
from horizon.indicators.moving_average import ema


def _rsi(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


class RSIIndicator(Indicator):
    """Relative Strength Index; first value sits at series index ``window``."""

    indicator_type = IndicatorType.RSI

    @property
    def required_window(self) -> int:
        return int(self.params["window"]) + 1

    def _validate(self) -> None:
        require_positive_int("window", self.params["window"])
        overbought = self.params["overbought"]
        oversold = self.params["oversold"]
        if not 0 < oversold < overbought < 100:
            raise InvalidParameterError(
                f"RSI thresholds must satisfy 0 < oversold < overbought < 100, "
                f"got oversold={oversold}, overbought={overbought}"
            )

    def _values(self, prices):
        window = int(self.params["window"])
        deltas = np.diff(prices)
        gains = np.where(deltas > 0, deltas, 0.0)
        losses = np.where(deltas < 0, -deltas, 0.0)

        avg_gain = float(np.mean(gains[:window]))
        avg_loss = float(np.mean(losses[:window]))
        rsi = [_rsi(avg_gain, avg_loss)]
        for i in range(window, len(gains)):
            avg_gain = (avg_gain * (window - 1) + gains[i]) / window
            avg_loss = (avg_loss * (window - 1) + losses[i]) / window
            rsi.append(_rsi(avg_gain, avg_loss))
        return {"value": np.array(rsi)}, window

    def _signal(self, prices, arrays, pos, start):
        rsi = arrays["value"][pos]
        overbought = self.params["overbought"]
        oversold = self.params["oversold"]
        if rsi < oversold:
            return SignalType.BUY, (oversold - rsi) / oversold
        if rsi > overbought:
            return SignalType.SELL, (rsi - overbought) / (100 - overbought)
        return SignalType.HOLD, HOLD_STRENGTH


class MACDIndicator(Indicator):
    """MACD line, signal line and histogram, all aligned to the same bars."""

    indicator_type = IndicatorType.MACD

    @property
    def required_window(self) -> int:
        return int(self.params["slow_period"] + self.params["signal_period"] - 1)

    def _validate(self) -> None:
        fast = require_positive_int("fast_period", self.params["fast_period"])
        slow = require_positive_int("slow_period", self.params["slow_period"])
        require_positive_int("signal_period", self.params["signal_period"])
        if fast >= slow:
            raise InvalidParameterError(
                f"fast_period must be smaller than slow_period, got {fast} >= {slow}"
            )

    def _values(self, prices):
        fast = int(self.params["fast_period"])
        slow = int(self.params["slow_period"])
        signal = int(self.params["signal_period"])

        # Each EMA starts counting once its own window has filled.
        fast_valid = ema(prices, fast)[fast - 1:]
        slow_valid = ema(prices, slow)[slow - 1:]
        offset = slow - fast
        macd = fast_valid[offset:offset + len(slow_valid)] - slow_valid

        signal_offset = signal - 1
        signal_raw = ema(macd, signal)
        macd_line = macd[signal_offset:]
        signal_line = signal_raw[signal_offset:]
        histogram = macd_line - signal_line
        start = slow - 1 + signal_offset
        return {"macd": macd_line, "signal": signal_line, "histogram": histogram}, start

    def _signal(self, prices, arrays, pos, start):
        strength = abs(arrays["histogram"][pos]) / MACD_STRENGTH_CAP
        if pos < 1:
            return SignalType.HOLD, strength
        macd, sig = arrays["macd"], arrays["signal"]
        return crossover(macd[pos - 1], sig[pos - 1], macd[pos], sig[pos]), strength

    def _pack(self, arrays):
        return MACDValues(
            macd_line=tuple(float(x) for x in arrays["macd"]),
            signal_line=tuple(float(x) for x in arrays["signal"]),
            histogram=tuple(float(x) for x in arrays["histogram"]),
        )
