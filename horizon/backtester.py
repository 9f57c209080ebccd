"""Horizon: backtest a strategy over a CSV price series."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import Optional

import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from horizon.backtest.engine import BacktestSimulator
from horizon.backtest.export import export_results
from horizon.backtest.models import BacktestConfig, BacktestResult, BenchmarkResult, PerformanceMetrics
from horizon.config.settings import DEFAULT_INITIAL_CAPITAL, DEFAULT_POSITION_SIZE_PCT, LOG_LEVEL
from horizon.data.csv_source import load_prices_csv
from horizon.errors import HorizonError
from horizon.strategy.registry import StrategyRegistry

console = Console()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Horizon: strategy backtester")
    parser.add_argument("--csv", type=str, required=True, help="OHLCV CSV file (Date,Open,High,Low,Close[,Volume])")
    parser.add_argument("--ticker", "-t", type=str, required=True, help="Ticker label for the series")
    parser.add_argument(
        "--strategy", "-s", type=str, default="trend_following",
        help="Strategy key (default: trend_following)",
    )
    parser.add_argument("--start-date", type=date.fromisoformat, default=None, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end-date", type=date.fromisoformat, default=None, help="End date (YYYY-MM-DD)")
    parser.add_argument(
        "--cash", type=float, default=DEFAULT_INITIAL_CAPITAL,
        help=f"Starting capital (default: {DEFAULT_INITIAL_CAPITAL:g})",
    )
    parser.add_argument(
        "--position-size", type=float, default=DEFAULT_POSITION_SIZE_PCT,
        help=f"Percent of cash per buy (default: {DEFAULT_POSITION_SIZE_PCT:g})",
    )
    parser.add_argument("--keep-open", action="store_true", help="Do not liquidate the position on the last bar")
    parser.add_argument(
        "--rebalance", action="store_true",
        help="Only trade on the strategy's rebalance days (week/month end)",
    )
    parser.add_argument("--export", type=str, default=None, help="Write results to a .json or .csv file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


# ── Display helpers ─────────────────────────────────────────────────


def _display_summary(result: BacktestResult) -> None:
    """Display summary panel."""
    m = result.metrics
    pnl = m.final_value - m.initial_capital
    color = "green" if pnl >= 0 else "red"

    lines = [
        f"Ticker:       {result.ticker}",
        f"Strategy:     {result.strategy}",
        f"Period:       {result.period.start} to {result.period.end}",
        f"Bars:         {len(result.equity_curve)}",
        f"",
        f"Initial:      ${m.initial_capital:>12,.2f}",
        f"Final:        ${m.final_value:>12,.2f}",
        f"P&L:          [{color}]${pnl:>12,.2f} ({m.total_return:+.2%})[/{color}]",
    ]

    console.print(Panel("\n".join(lines), title="Backtest Summary", border_style="cyan"))


def _display_metrics(metrics: PerformanceMetrics, benchmark: Optional[BenchmarkResult]) -> None:
    """Display performance metrics table."""
    table = Table(title="Performance Metrics", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Strategy", justify="right")
    if benchmark:
        table.add_column("Buy & Hold", justify="right")

    def _pct(val: float) -> str:
        return f"{val:+.2%}"

    rows = [
        ("Total Return", _pct(metrics.total_return), _pct(benchmark.total_return) if benchmark else None),
        ("CAGR", _pct(metrics.cagr), _pct(benchmark.cagr) if benchmark else None),
        ("Sharpe Ratio", f"{metrics.sharpe_ratio:.2f}", f"{benchmark.sharpe_ratio:.2f}" if benchmark else None),
        ("Max Drawdown", f"{metrics.max_drawdown:.2%}", f"{benchmark.max_drawdown:.2%}" if benchmark else None),
        ("Final Value", f"${metrics.final_value:,.2f}", f"${benchmark.final_value:,.2f}" if benchmark else None),
    ]

    for label, strategy_val, bench_val in rows:
        if benchmark:
            table.add_row(label, strategy_val, bench_val or "N/A")
        else:
            table.add_row(label, strategy_val)

    console.print(table)


def _display_trade_stats(metrics: PerformanceMetrics) -> None:
    """Display trade statistics table."""
    table = Table(title="Trade Statistics", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Completed Trades", str(metrics.total_trades))
    table.add_row("Profitable Trades", str(metrics.profitable_trades))
    table.add_row("Win Rate", f"{metrics.win_rate:.2%}")
    table.add_row("Avg Return / Trade", f"{metrics.average_return:+.2%}")

    console.print(table)


def _display_trade_log(result: BacktestResult, max_trades: int = 20) -> None:
    """Display recent trade log."""
    trades = result.trades
    if not trades:
        console.print("[dim]No trades executed.[/dim]")
        return

    table = Table(title=f"Trade Log (last {min(max_trades, len(trades))} of {len(trades)})",
                  show_header=True, header_style="bold cyan")
    table.add_column("Date")
    table.add_column("Side")
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Reason", max_width=50)

    for trade in trades[-max_trades:]:
        color = "green" if trade.side == "buy" else "red"
        pnl = f"${trade.realized_pnl:,.2f}" if trade.realized_pnl is not None else ""
        table.add_row(
            str(trade.date),
            f"[{color}]{trade.side.upper()}[/{color}]",
            str(trade.quantity),
            f"${trade.price:,.2f}",
            f"${trade.value:,.2f}",
            pnl,
            trade.reason,
        )

    console.print(table)


_SPARK_BLOCKS = "▁▂▃▄▅▆▇█"


def _sparkline(values: np.ndarray, width: int) -> str:
    """Block-character line over *values*, resampled to at most *width* points."""
    if len(values) > width:
        values = values[np.linspace(0, len(values) - 1, width).astype(int)]
    low, high = float(values.min()), float(values.max())
    if high == low:
        return _SPARK_BLOCKS[0] * len(values)
    levels = np.rint((values - low) / (high - low) * (len(_SPARK_BLOCKS) - 1)).astype(int)
    return "".join(_SPARK_BLOCKS[level] for level in levels)


def _display_equity_curve(result: BacktestResult, width: int = 60) -> None:
    """Equity and drawdown sparklines for the run."""
    if len(result.equity_curve) < 2:
        return
    equity = np.array([p.value for p in result.equity_curve], dtype=float)
    if equity.max() == equity.min():
        console.print("[dim]Equity unchanged over the period.[/dim]")
        return
    drawdown = 1.0 - equity / np.maximum.accumulate(equity)

    grid = Table.grid(padding=(0, 1))
    grid.add_column(justify="right", style="dim")
    grid.add_column()
    grid.add_column(style="dim")
    grid.add_row(
        "equity", f"[green]{_sparkline(equity, width)}[/green]",
        f"${equity.min():,.0f} - ${equity.max():,.0f}",
    )
    grid.add_row("drawdown", f"[red]{_sparkline(-drawdown, width)}[/red]", f"max {drawdown.max():.1%}")
    console.print(Panel(
        grid, title="[bold cyan]Equity Curve[/bold cyan]",
        subtitle=f"{result.period.start} -> {result.period.end}", expand=False,
    ))



# ── Main ────────────────────────────────────────────────────────────


def run_with_progress(simulator: BacktestSimulator, series, config: BacktestConfig) -> BacktestResult:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
    ) as progress:
        task = progress.add_task(f"Backtesting {config.ticker} ({config.strategy_key})", total=None)

        def on_bar(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total)

        return simulator.run(series, config, on_bar=on_bar)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.debug else getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    registry = StrategyRegistry.with_builtins()
    ticker = args.ticker.strip().upper()
    console.print(f"\n[bold green]Horizon Backtester[/bold green]")
    console.print(f"Ticker: {ticker} | Strategy: {args.strategy} | Source: {args.csv}\n")

    try:
        series = load_prices_csv(args.csv)
        config = BacktestConfig(
            ticker=ticker,
            strategy_key=args.strategy,
            initial_capital=args.cash,
            position_size_percent=args.position_size,
            start_date=args.start_date,
            end_date=args.end_date,
            liquidate_at_end=not args.keep_open,
            respect_rebalance_frequency=args.rebalance,
        )
        result = run_with_progress(BacktestSimulator(registry), series, config)
        if args.export:
            export_results(result, args.export)
    except (HorizonError, OSError, ValueError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    console.print()
    _display_summary(result)
    console.print()
    _display_metrics(result.metrics, result.benchmark)
    console.print()
    _display_trade_stats(result.metrics)
    console.print()
    _display_trade_log(result)
    console.print()
    _display_equity_curve(result)
    console.print()
    if args.export:
        console.print(f"[dim]Results written to {args.export}[/dim]\n")


if __name__ == "__main__":
    main()
