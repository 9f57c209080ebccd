"""Export backtest results to JSON or CSV."""
from __future__ import annotations

import csv
import json
import os
from typing import Any

from horizon.backtest.models import BacktestResult


def export_json(result: BacktestResult, path: str) -> None:
    """Write the result with camelCase field names."""
    data = result.model_dump(mode="json", by_alias=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def _v(val: Any) -> str:
    return "" if val is None else str(val)


def export_csv(result: BacktestResult, path: str) -> None:
    """Export BacktestResult to a multi-section CSV file."""
    metrics = result.metrics.model_dump(by_alias=True)
    benchmark = result.benchmark

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)

        writer.writerow(["# Summary"])
        writer.writerow(["ticker", "strategy", "start", "end", "initialCapital", "finalValue"])
        writer.writerow([
            result.ticker,
            result.strategy,
            str(result.period.start),
            str(result.period.end),
            result.metrics.initial_capital,
            result.metrics.final_value,
        ])
        writer.writerow([])

        writer.writerow(["# Metrics"])
        headers = list(metrics)
        row: list[Any] = [metrics[h] for h in headers]
        if benchmark:
            bench = benchmark.model_dump(by_alias=True)
            headers += [f"benchmark.{k}" for k in bench]
            row += list(bench.values())
        writer.writerow(headers)
        writer.writerow(row)
        writer.writerow([])

        writer.writerow(["# Trades"])
        writer.writerow(["date", "side", "quantity", "price", "value", "realizedPnl", "costBasis", "reason"])
        for trade in result.trades:
            writer.writerow([
                str(trade.date), trade.side, trade.quantity, trade.price, trade.value,
                _v(trade.realized_pnl), _v(trade.cost_basis), trade.reason,
            ])
        writer.writerow([])

        writer.writerow(["# Equity"])
        writer.writerow(["date", "value", "cash", "holdingsValue", "shares", "price"])
        for point in result.equity_curve:
            writer.writerow([
                str(point.date), point.value, point.cash,
                point.holdings_value, point.shares, point.price,
            ])


def export_results(result: BacktestResult, path: str) -> None:
    """Export results to JSON or CSV based on file extension.

    Raises ValueError for unsupported extensions.
    """
    _, ext = os.path.splitext(path)
    ext = ext.lower()
    if ext == ".json":
        export_json(result, path)
    elif ext == ".csv":
        export_csv(result, path)
    else:
        raise ValueError(f"Unsupported export format: '{ext}'. Use .json or .csv")
