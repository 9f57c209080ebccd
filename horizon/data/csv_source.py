"""Load daily OHLCV bars from a CSV file."""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from horizon.data.models import PricePoint, slice_range, validate_series
from horizon.errors import InvalidSeriesError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "open", "high", "low", "close")


def load_prices_csv(
    path: str | Path,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[PricePoint]:
    """Read a ``Date, Open, High, Low, Close[, Volume]`` CSV into a validated series.

    Column names are matched case-insensitively. Rows are sorted by date;
    duplicate dates are rejected rather than silently dropped.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"CSV file not found: {p}")

    raw = pd.read_csv(p)
    raw.columns = raw.columns.str.strip().str.lower().str.replace(" ", "_")
    missing = [c for c in REQUIRED_COLUMNS if c not in raw.columns]
    if missing:
        raise InvalidSeriesError(f"{p.name} missing required columns: {missing}")
    if "volume" not in raw.columns:
        raw["volume"] = 0.0

    raw["date"] = pd.to_datetime(raw["date"]).dt.date
    raw = raw.sort_values("date")
    if raw["date"].duplicated().any():
        dupes = raw.loc[raw["date"].duplicated(), "date"].tolist()
        raise InvalidSeriesError(f"{p.name} has duplicate dates: {dupes[:5]}")

    series = [
        PricePoint(
            date=row.date, open=float(row.open), high=float(row.high),
            low=float(row.low), close=float(row.close), volume=float(row.volume),
        )
        for row in raw.itertuples(index=False)
    ]
    validate_series(series)
    logger.debug(f"Loaded {len(series)} bars from {p}")

    if start is not None or end is not None:
        series = slice_range(series, start, end)
    return series
