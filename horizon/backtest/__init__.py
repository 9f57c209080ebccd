from horizon.backtest.engine import BacktestSimulator, rebalance_mask
from horizon.backtest.export import export_csv, export_json, export_results
from horizon.backtest.metrics import compute_benchmark, compute_metrics
from horizon.backtest.models import (
    BacktestConfig,
    BacktestResult,
    BenchmarkResult,
    EquityPoint,
    PerformanceMetrics,
    Trade,
)

__all__ = [
    "BacktestConfig",
    "BacktestResult",
    "BacktestSimulator",
    "BenchmarkResult",
    "EquityPoint",
    "PerformanceMetrics",
    "Trade",
    "compute_benchmark",
    "compute_metrics",
    "export_csv",
    "export_json",
    "export_results",
    "rebalance_mask",
]
