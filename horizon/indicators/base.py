"""Indicator types, configuration, result records and the per-family base class."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Optional, Sequence, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, ValidationError

from horizon.data.models import PricePoint, SignalType, closes
from horizon.errors import (
    IndicatorComputationError,
    InsufficientDataError,
    InvalidParameterError,
    UnknownIndicatorTypeError,
)

HOLD_STRENGTH = 0.5
CROSS_STRENGTH = 0.7


class IndicatorType(str, Enum):
    SMA = "SMA"
    EMA = "EMA"
    RSI = "RSI"
    MACD = "MACD"
    BOLLINGER = "BOLLINGER"

    @classmethod
    def parse(cls, name: Union[str, "IndicatorType"]) -> "IndicatorType":
        """Case-insensitive lookup; also accepts the Bollinger aliases."""
        if isinstance(name, IndicatorType):
            return name
        normalized = str(name).strip().upper()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownIndicatorTypeError(f"Unknown indicator type: {name}") from None


_ALIASES = {
    "BOLLINGER_BANDS": "BOLLINGER",
    "BOLLINGERBANDS": "BOLLINGER",
    "BB": "BOLLINGER",
}

DEFAULT_PARAMS: dict[IndicatorType, dict[str, float]] = {
    IndicatorType.SMA: {"window": 20},
    IndicatorType.EMA: {"window": 12},
    IndicatorType.RSI: {"window": 14, "overbought": 70, "oversold": 30},
    IndicatorType.MACD: {"fast_period": 12, "slow_period": 26, "signal_period": 9},
    IndicatorType.BOLLINGER: {"window": 20, "multiplier": 2},
}


def _fmt(value: float) -> str:
    return f"{value:g}"


class IndicatorConfig(BaseModel):
    """Immutable indicator configuration. Unset parameters take the family defaults."""
    model_config = ConfigDict(frozen=True)

    type: IndicatorType
    label: Optional[str] = None
    window: Optional[int] = None
    alpha: Optional[float] = None
    overbought: Optional[float] = None
    oversold: Optional[float] = None
    fast_period: Optional[int] = None
    slow_period: Optional[int] = None
    signal_period: Optional[int] = None
    multiplier: Optional[float] = None

    @classmethod
    def of(cls, type_name: Union[str, IndicatorType], label: Optional[str] = None, **params: Any) -> "IndicatorConfig":
        """Build a config from a type name.

        Unknown names raise UnknownIndicatorTypeError; malformed parameters
        raise InvalidParameterError.
        """
        indicator_type = IndicatorType.parse(type_name)
        try:
            return cls(type=indicator_type, label=label, **params)
        except ValidationError as e:
            raise InvalidParameterError(f"Invalid {indicator_type.value} parameters: {e}") from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndicatorConfig":
        """Accept the ``{"type": ..., "params": {...}, "label": ...}`` layout."""
        params = dict(data.get("params") or {})
        renames = {"fastPeriod": "fast_period", "slowPeriod": "slow_period", "signalPeriod": "signal_period"}
        params = {renames.get(k, k): v for k, v in params.items()}
        return cls.of(data["type"], label=data.get("label"), **params)

    @property
    def params(self) -> dict[str, float]:
        """Effective parameters for this family, defaults filled in."""
        resolved: dict[str, float] = {}
        for name, default in DEFAULT_PARAMS[self.type].items():
            value = getattr(self, name)
            resolved[name] = default if value is None else value
        if self.type == IndicatorType.EMA:
            resolved["alpha"] = self.alpha if self.alpha is not None else 2.0 / (resolved["window"] + 1)
        return resolved

    @property
    def key(self) -> str:
        """Label if set, otherwise a canonical name like ``SMA(50)``."""
        if self.label:
            return self.label
        params = dict(self.params)
        if self.type == IndicatorType.EMA and self.alpha is None:
            params.pop("alpha")
        return f"{self.type.value}({','.join(_fmt(v) for v in params.values())})"


class MACDValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    macd_line: tuple[float, ...]
    signal_line: tuple[float, ...]
    histogram: tuple[float, ...]


class BollingerValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper: tuple[float, ...]
    middle: tuple[float, ...]
    lower: tuple[float, ...]


class IndicatorReading(BaseModel):
    """One indicator's state at a single bar, as consumed by strategy rules."""
    model_config = ConfigDict(frozen=True)

    key: str
    type: IndicatorType
    bar_date: Optional[date] = None
    values: dict[str, float]
    previous: Optional[dict[str, float]] = None
    signal: SignalType = SignalType.HOLD
    strength: float = HOLD_STRENGTH


class IndicatorSummary(BaseModel):
    """Latest-bar view serialised for API/UI consumers."""
    type: IndicatorType
    key: str
    value: Union[float, dict[str, float]]
    signal: SignalType
    strength: float
    params: dict[str, float]


class IndicatorResult(BaseModel):
    """Values and signals of one indicator over a series.

    ``values[k]``/``signals[k]`` belong to series index ``start_index + k``.
    """
    model_config = ConfigDict(frozen=True)

    type: IndicatorType
    key: str
    params: dict[str, float]
    start_index: int
    dates: tuple[date, ...]
    values: Union[tuple[float, ...], MACDValues, BollingerValues]
    signals: tuple[SignalType, ...]
    strengths: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.signals)

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.signals) - 1

    def fields_at(self, pos: int) -> dict[str, float]:
        """Named values at output position *pos*."""
        v = self.values
        if isinstance(v, MACDValues):
            return {"macd": v.macd_line[pos], "signal": v.signal_line[pos], "histogram": v.histogram[pos]}
        if isinstance(v, BollingerValues):
            return {"upper": v.upper[pos], "middle": v.middle[pos], "lower": v.lower[pos]}
        return {"value": v[pos]}

    def signal_at(self, series_index: int) -> SignalType:
        pos = series_index - self.start_index
        if pos < 0 or pos >= len(self.signals):
            return SignalType.HOLD
        return self.signals[pos]

    def reading_at(self, series_index: int) -> Optional[IndicatorReading]:
        """Reading for *series_index*, or None during warm-up / past the end."""
        pos = series_index - self.start_index
        if pos < 0 or pos >= len(self.signals):
            return None
        return IndicatorReading(
            key=self.key,
            type=self.type,
            bar_date=self.dates[pos],
            values=self.fields_at(pos),
            previous=self.fields_at(pos - 1) if pos > 0 else None,
            signal=self.signals[pos],
            strength=self.strengths[pos],
        )

    def latest(self) -> IndicatorReading:
        reading = self.reading_at(self.end_index)
        if reading is None:
            raise IndicatorComputationError(f"{self.key} has no values")
        return reading

    def summary(self) -> IndicatorSummary:
        reading = self.latest()
        value: Union[float, dict[str, float]] = reading.values
        if list(reading.values) == ["value"]:
            value = reading.values["value"]
        return IndicatorSummary(
            type=self.type, key=self.key, value=value,
            signal=reading.signal, strength=reading.strength, params=self.params,
        )


def crossover(prev_a: float, prev_b: float, a: float, b: float) -> SignalType:
    """``buy`` when *a* crosses above *b*, ``sell`` when it crosses below."""
    if prev_a <= prev_b and a > b:
        return SignalType.BUY
    if prev_a >= prev_b and a < b:
        return SignalType.SELL
    return SignalType.HOLD


def require_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise InvalidParameterError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


class Indicator(ABC):
    """One indicator family. Stateless: ``compute`` returns a fresh result each call."""

    indicator_type: ClassVar[IndicatorType]

    def __init__(self, config: IndicatorConfig) -> None:
        if config.type != self.indicator_type:
            raise InvalidParameterError(
                f"{type(self).__name__} cannot compute a {config.type.value} config"
            )
        self.config = config
        self.params = config.params
        self._validate()

    @property
    @abstractmethod
    def required_window(self) -> int:
        """Minimum number of bars for at least one output value."""

    @abstractmethod
    def _validate(self) -> None:
        """Raise InvalidParameterError for out-of-range parameters."""

    @abstractmethod
    def _values(self, prices: np.ndarray) -> tuple[dict[str, np.ndarray], int]:
        """Return named value arrays and the series index of their first element."""

    @abstractmethod
    def _signal(self, prices: np.ndarray, arrays: dict[str, np.ndarray], pos: int, start: int) -> tuple[SignalType, float]:
        """Signal and strength at output position *pos*."""

    def _pack(self, arrays: dict[str, np.ndarray]) -> Union[tuple[float, ...], MACDValues, BollingerValues]:
        return tuple(float(x) for x in arrays["value"])

    def compute(self, series: Sequence[PricePoint]) -> IndicatorResult:
        if len(series) < self.required_window:
            raise InsufficientDataError(self.config.key, self.required_window, len(series))

        prices = closes(series)
        arrays, start = self._values(prices)
        for name, arr in arrays.items():
            if not np.isfinite(arr).all():
                raise IndicatorComputationError(f"{self.config.key} produced non-finite {name} values")

        length = len(next(iter(arrays.values())))
        signals: list[SignalType] = []
        strengths: list[float] = []
        for pos in range(length):
            signal, strength = self._signal(prices, arrays, pos, start)
            signals.append(signal)
            strengths.append(float(min(1.0, max(0.0, strength))))

        # Engine-produced data; skip re-validation of large tuples.
        return IndicatorResult.model_construct(
            type=self.indicator_type,
            key=self.config.key,
            params=self.params,
            start_index=start,
            dates=tuple(p.date for p in series[start:start + length]),
            values=self._pack(arrays),
            signals=tuple(signals),
            strengths=tuple(strengths),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config.key})"
