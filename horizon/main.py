"""Horizon: signals, indicators and strategy recommendations from the command line."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from horizon.config.settings import LOG_LEVEL
from horizon.data.csv_source import load_prices_csv
from horizon.errors import HorizonError
from horizon.indicators.factory import calculate_all
from horizon.strategy.engine import StrategyEngine
from horizon.strategy.models import RiskTolerance
from horizon.strategy.registry import StrategyRegistry

console = Console()

SIGNAL_COLORS = {"buy": "green", "sell": "red", "hold": "yellow"}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Horizon: technical signals and strategy tooling")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    signal = sub.add_parser("signal", help="Consolidated strategy signal for the latest bar")
    signal.add_argument("--csv", type=str, required=True, action="append",
                        help="OHLCV CSV file; repeat for several tickers")
    signal.add_argument("--ticker", "-t", type=str, default=None,
                        help="Comma-separated tickers matching each --csv (default: file stem)")
    signal.add_argument("--strategy", "-s", type=str, default=None,
                        help="Strategy key (default: every registered strategy)")

    indicators = sub.add_parser("indicators", help="Latest indicator values and signals")
    indicators.add_argument("--csv", type=str, required=True, help="OHLCV CSV file")
    indicators.add_argument("--types", type=str, default="SMA,EMA,RSI,MACD,BOLLINGER",
                            help="Comma-separated indicator types")

    recommend = sub.add_parser("recommend", help="Recommend a strategy for a portfolio profile")
    recommend.add_argument("--horizon", type=float, required=True, help="Investment horizon in years")
    recommend.add_argument("--risk", type=str, default="medium", choices=[r.value for r in RiskTolerance])
    recommend.add_argument("--portfolio-size", type=int, default=20, help="Number of holdings (default: 20)")

    sub.add_parser("strategies", help="List registered strategies")
    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> dict:
    paths = args.csv
    if args.ticker:
        tickers = [t.strip().upper() for t in args.ticker.split(",")]
        if len(tickers) != len(paths):
            raise ValueError(f"{len(tickers)} tickers given for {len(paths)} CSV files")
    else:
        tickers = [Path(p).stem.upper() for p in paths]
    return {t: load_prices_csv(p) for t, p in zip(tickers, paths)}


def cmd_signal(engine: StrategyEngine, args: argparse.Namespace) -> None:
    price_data = _load(args)
    strategies = [engine.registry.get(args.strategy)] if args.strategy else list(engine.registry)

    table = Table(title="Strategy Signals", show_header=True, header_style="bold cyan")
    table.add_column("Strategy")
    table.add_column("Ticker")
    table.add_column("Date")
    table.add_column("Signal")
    table.add_column("Confidence", justify="right")
    table.add_column("Strength", justify="right")
    table.add_column("Reason", max_width=60)

    for strategy in strategies:
        for ticker, series in price_data.items():
            sig = engine.generate_signal(ticker, series, strategy)
            color = SIGNAL_COLORS[sig.signal.value]
            table.add_row(
                strategy.key,
                ticker,
                str(sig.timestamp),
                f"[{color}]{sig.signal.value.upper()}[/{color}]",
                f"{sig.confidence:.0%}",
                f"{sig.strength:.2f}",
                sig.reason,
            )
    console.print(table)


def cmd_indicators(args: argparse.Namespace) -> None:
    series = load_prices_csv(args.csv)
    results, errors = calculate_all(series, [t.strip() for t in args.types.split(",") if t.strip()])

    table = Table(title=f"Indicators @ {series[-1].date}", show_header=True, header_style="bold cyan")
    table.add_column("Indicator")
    table.add_column("Value", justify="right")
    table.add_column("Signal")
    table.add_column("Strength", justify="right")

    for result in results.values():
        summary = result.summary()
        if isinstance(summary.value, dict):
            value = ", ".join(f"{k}={v:.2f}" for k, v in summary.value.items())
        else:
            value = f"{summary.value:.2f}"
        color = SIGNAL_COLORS[summary.signal.value]
        table.add_row(summary.key, value, f"[{color}]{summary.signal.value}[/{color}]", f"{summary.strength:.2f}")
    console.print(table)

    for name, message in errors.items():
        console.print(f"[yellow]{name}:[/yellow] {message}")


def cmd_recommend(engine: StrategyEngine, args: argparse.Namespace) -> None:
    rec = engine.recommend_strategy(args.horizon, args.risk, args.portfolio_size)
    lines = [
        f"Strategy:     {rec.strategy_name} ({rec.strategy_key})",
        f"Confidence:   {rec.confidence:.0%}",
        f"Rebalance:    {rec.rebalance_frequency}",
        f"",
        rec.reasoning,
    ]
    console.print(Panel("\n".join(lines), title="Recommendation", border_style="cyan"))


def cmd_strategies(engine: StrategyEngine) -> None:
    table = Table(title="Strategies", show_header=True, header_style="bold cyan")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Frequency")
    table.add_column("Entry", max_width=40)
    table.add_column("Exit", max_width=40)

    for strategy in engine.registry:
        rules = strategy.explain()["rules"]
        table.add_row(strategy.key, strategy.name, strategy.rebalance_frequency, rules["entry"], rules["exit"])
    console.print(table)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.debug else getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    engine = StrategyEngine(StrategyRegistry.with_builtins())

    try:
        if args.command == "signal":
            cmd_signal(engine, args)
        elif args.command == "indicators":
            cmd_indicators(args)
        elif args.command == "recommend":
            cmd_recommend(engine, args)
        else:
            cmd_strategies(engine)
    except (HorizonError, OSError, ValueError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
