"""Price and signal data classes."""
from __future__ import annotations

import math
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from horizon.errors import DateRangeEmptyError, InvalidSeriesError

_EPOCH = date(1970, 1, 1)


class SignalType(str, Enum):
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"


class PricePoint(BaseModel):
    """One daily OHLCV bar."""
    model_config = ConfigDict(frozen=True)

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator("date", mode="before")
    @classmethod
    def _epoch_day(cls, value):
        # Integers are days since 1970-01-01, not unix seconds.
        if isinstance(value, int) and not isinstance(value, bool):
            return _EPOCH + timedelta(days=value)
        return value


class Signal(BaseModel):
    """Consolidated strategy signal for one ticker at one bar."""
    model_config = ConfigDict(frozen=True)

    ticker: str
    signal: SignalType
    confidence: float = Field(ge=0.0, le=1.0)
    strength: float = Field(ge=0.0, le=1.0)
    reason: str
    timestamp: Optional[date] = None


def validate_series(series: Sequence[PricePoint]) -> None:
    """Raise InvalidSeriesError unless *series* is ascending, unique and well-formed."""
    prev: Optional[date] = None
    for i, p in enumerate(series):
        fields = (p.open, p.high, p.low, p.close, p.volume)
        if not all(math.isfinite(v) for v in fields):
            raise InvalidSeriesError(f"Non-finite value at index {i} ({p.date})")
        if p.low < 0:
            raise InvalidSeriesError(f"Negative price at index {i} ({p.date}): low={p.low}")
        if not (p.low <= p.open <= p.high and p.low <= p.close <= p.high):
            raise InvalidSeriesError(
                f"OHLC out of range at index {i} ({p.date}): "
                f"low={p.low} open={p.open} close={p.close} high={p.high}"
            )
        if p.volume < 0:
            raise InvalidSeriesError(f"Negative volume at index {i} ({p.date})")
        if prev is not None and p.date <= prev:
            raise InvalidSeriesError(
                f"Dates must be strictly ascending: index {i} ({p.date}) follows {prev}"
            )
        prev = p.date


def closes(series: Sequence[PricePoint]) -> np.ndarray:
    """Close prices as a float array."""
    return np.array([p.close for p in series], dtype=float)


def slice_range(
    series: Sequence[PricePoint],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[PricePoint]:
    """Return the bars with ``start <= date <= end`` (either bound optional)."""
    out = [
        p for p in series
        if (start is None or p.date >= start) and (end is None or p.date <= end)
    ]
    if not out:
        raise DateRangeEmptyError(
            f"No price points between {start or 'beginning'} and {end or 'end'}"
        )
    return out
