"""StrategyEngine: indicators -> per-bar rule evaluation -> consolidated Signal."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterator, Mapping, Optional, Sequence, Union

from horizon.data.models import PricePoint, Signal, SignalType, validate_series
from horizon.errors import HorizonError, IndicatorError, InsufficientDataError, InvalidParameterError, InvalidSeriesError
from horizon.indicators.base import HOLD_STRENGTH, IndicatorReading, IndicatorResult
from horizon.indicators.factory import create_indicator
from horizon.strategy.models import RiskTolerance, StrategyComparison, StrategyDefinition, StrategyRecommendation
from horizon.strategy.registry import StrategyRegistry
from horizon.strategy.rules import evaluate_rule, majority_vote

logger = logging.getLogger(__name__)

Readings = dict[str, Optional[IndicatorReading]]
Results = dict[str, Optional[IndicatorResult]]

NO_INDICATOR_CONFIDENCE = 0.5

# horizon bucket -> risk tolerance -> (strategy key, confidence)
RECOMMENDATION_TABLE: dict[str, dict[RiskTolerance, tuple[str, float]]] = {
    "short": {
        RiskTolerance.LOW: ("trend_following", 0.7),
        RiskTolerance.MEDIUM: ("trend_following", 0.7),
        RiskTolerance.HIGH: ("momentum", 0.8),
    },
    "medium": {
        RiskTolerance.LOW: ("conservative", 0.8),
        RiskTolerance.MEDIUM: ("mean_reversion", 0.6),
        RiskTolerance.HIGH: ("trend_following", 0.7),
    },
    "long": {
        RiskTolerance.LOW: ("conservative", 0.9),
        RiskTolerance.MEDIUM: ("conservative", 0.9),
        RiskTolerance.HIGH: ("trend_following", 0.6),
    },
}

HORIZON_REASONS = {
    "short": "Short-term horizon requires active management",
    "medium": "Medium-term horizon allows for balanced approach",
    "long": "Long-term horizon favors conservative strategies",
}

RISK_REASONS = {
    RiskTolerance.LOW: "Low risk tolerance requires conservative strategies",
    RiskTolerance.MEDIUM: "Medium risk tolerance suggests balanced approach",
    RiskTolerance.HIGH: "High risk tolerance allows for aggressive strategies",
}

STRATEGY_REASONS = {
    "trend_following": "Trend following works well in trending markets",
    "mean_reversion": "Mean reversion captures short-term price reversals",
    "momentum": "Momentum strategies capitalize on market momentum",
    "conservative": "Conservative approach minimizes risk and volatility",
}


def horizon_bucket(horizon: float) -> str:
    if horizon <= 1:
        return "short"
    if horizon <= 2:
        return "medium"
    return "long"


def recommend_frequency(strategy_key: str, horizon: float) -> str:
    """Mean reversion trades daily, conservative monthly; others follow the horizon."""
    if strategy_key == "mean_reversion":
        return "daily"
    if strategy_key == "conservative":
        return "monthly"
    return "weekly" if horizon <= 2 else "monthly"


def _signal_of(reading: Optional[IndicatorReading]) -> SignalType:
    return reading.signal if reading is not None else SignalType.HOLD


class StrategyEngine:
    """Turns a price series into strategy-level signals.

    Holds no per-call state; the registry is the only collaborator.
    """

    def __init__(self, registry: StrategyRegistry | None = None) -> None:
        self.registry = registry if registry is not None else StrategyRegistry.with_builtins()

    def resolve(self, strategy: Union[str, StrategyDefinition]) -> StrategyDefinition:
        if isinstance(strategy, StrategyDefinition):
            return strategy
        return self.registry.get(strategy)

    # ── Per-bar pipeline ────────────────────────────────────────────

    def evaluate_indicators(
        self,
        strategy: Union[str, StrategyDefinition],
        series: Sequence[PricePoint],
    ) -> Results:
        """Compute each indicator; failures degrade to ``None`` instead of raising.

        Parameter errors are configuration mistakes and still propagate.
        """
        strategy = self.resolve(strategy)
        results: Results = {}
        for config in strategy.indicators:
            indicator = create_indicator(config)
            try:
                results[config.key] = indicator.compute(series)
            except InsufficientDataError as e:
                logger.debug(f"{strategy.key}: {config.key} warming up ({e.available}/{e.required} bars)")
                results[config.key] = None
            except IndicatorError as e:
                logger.warning(f"{strategy.key}: failed to calculate {config.key}: {e}")
                results[config.key] = None
        return results

    @staticmethod
    def readings_at(results: Mapping[str, Optional[IndicatorResult]], index: int) -> Readings:
        return {
            key: result.reading_at(index) if result is not None else None
            for key, result in results.items()
        }

    def apply_rules(
        self,
        strategy: Union[str, StrategyDefinition],
        readings: Mapping[str, Optional[IndicatorReading]],
        price: float,
        previous_price: Optional[float] = None,
    ) -> SignalType:
        """Consolidated signal for one bar. Entry and exit both firing yields ``hold``."""
        strategy = self.resolve(strategy)
        if not strategy.uses_rules:
            return majority_vote(_signal_of(readings.get(c.key)) for c in strategy.indicators)

        entry = evaluate_rule(strategy.entry_rule, readings, price, previous_price)
        exit_ = evaluate_rule(strategy.exit_rule, readings, price, previous_price)
        if entry and not exit_:
            return SignalType.BUY
        if exit_ and not entry:
            return SignalType.SELL
        return SignalType.HOLD

    def consolidate(
        self,
        strategy: Union[str, StrategyDefinition],
        results: Mapping[str, Optional[IndicatorResult]],
        series: Sequence[PricePoint],
    ) -> list[SignalType]:
        """One consolidated signal per bar of *series*."""
        strategy = self.resolve(strategy)
        signals = []
        for i, point in enumerate(series):
            previous = series[i - 1].close if i > 0 else None
            signals.append(self.apply_rules(strategy, self.readings_at(results, i), point.close, previous))
        return signals

    def signal_at_bar(
        self,
        strategy: Union[str, StrategyDefinition],
        series: Sequence[PricePoint],
    ) -> tuple[SignalType, Readings]:
        """Signal for the last bar of *series*, using only the bars given."""
        strategy = self.resolve(strategy)
        results = self.evaluate_indicators(strategy, series)
        readings = self.readings_at(results, len(series) - 1)
        previous = series[-2].close if len(series) > 1 else None
        return self.apply_rules(strategy, readings, series[-1].close, previous), readings

    def iter_bar_signals(
        self,
        strategy: Union[str, StrategyDefinition],
        series: Sequence[PricePoint],
    ) -> Iterator[tuple[SignalType, Readings]]:
        """Signal and readings for every bar from a single indicator pass.

        Bar ``i`` yields the same signal as ``signal_at_bar(strategy, series[:i + 1])``.
        """
        strategy = self.resolve(strategy)
        results = self.evaluate_indicators(strategy, series)
        for i, point in enumerate(series):
            readings = self.readings_at(results, i)
            previous = series[i - 1].close if i > 0 else None
            yield self.apply_rules(strategy, readings, point.close, previous), readings

    def calculate_confidence(
        self,
        strategy: Union[str, StrategyDefinition],
        readings: Mapping[str, Optional[IndicatorReading]],
        signal: SignalType,
    ) -> float:
        """Fraction of the strategy's indicators agreeing with *signal*; missing ones count as hold."""
        strategy = self.resolve(strategy)
        if not strategy.indicators:
            return NO_INDICATOR_CONFIDENCE
        agreeing = sum(1 for c in strategy.indicators if _signal_of(readings.get(c.key)) == signal)
        return agreeing / len(strategy.indicators)

    @staticmethod
    def generate_reason(signal: SignalType, readings: Mapping[str, Optional[IndicatorReading]]) -> str:
        reasons = [
            f"{key} shows {signal.value} signal"
            for key, reading in readings.items()
            if reading is not None and reading.signal == signal
        ]
        if not reasons:
            return f"No clear signals from indicators, defaulting to {signal.value}"
        return ", ".join(reasons)

    def generate_signal(
        self,
        ticker: str,
        series: Sequence[PricePoint],
        strategy_key: Union[str, StrategyDefinition],
    ) -> Signal:
        """Run the full pipeline and describe the latest bar."""
        strategy = self.resolve(strategy_key)
        if not series:
            raise InvalidSeriesError(f"No price data for {ticker}")
        validate_series(series)

        signal, readings = self.signal_at_bar(strategy, series)
        agreeing = [r.strength for r in readings.values() if r is not None and r.signal == signal]
        strength = sum(agreeing) / len(agreeing) if agreeing else HOLD_STRENGTH

        result = Signal(
            ticker=ticker,
            signal=signal,
            confidence=self.calculate_confidence(strategy, readings, signal),
            strength=strength,
            reason=self.generate_reason(signal, readings),
            timestamp=series[-1].date,
        )
        logger.debug(f"{ticker} [{strategy.key}] -> {result.signal.value} ({result.confidence:.2f})")
        return result

    # ── Multi-ticker views ──────────────────────────────────────────

    def generate_all_strategy_signals(
        self,
        price_data: Mapping[str, Sequence[PricePoint]],
    ) -> dict[str, dict[str, Signal]]:
        """strategy key -> ticker -> Signal. A failing ticker gets a zero-confidence hold."""
        all_signals: dict[str, dict[str, Signal]] = {}
        for strategy in self.registry:
            signals: dict[str, Signal] = {}
            for ticker, series in price_data.items():
                try:
                    signals[ticker] = self.generate_signal(ticker, series, strategy)
                except HorizonError as e:
                    logger.warning(f"Failed to generate {strategy.key} signal for {ticker}: {e}")
                    signals[ticker] = Signal(
                        ticker=ticker,
                        signal=SignalType.HOLD,
                        confidence=0.0,
                        strength=0.0,
                        reason="Error calculating signal",
                    )
            all_signals[strategy.key] = signals
        return all_signals

    def compare_strategies(
        self,
        price_data: Mapping[str, Sequence[PricePoint]],
    ) -> dict[str, StrategyComparison]:
        comparison: dict[str, StrategyComparison] = {}
        for key, signals in self.generate_all_strategy_signals(price_data).items():
            counts = Counter(s.signal for s in signals.values())
            total = len(signals)
            comparison[key] = StrategyComparison(
                strategy_key=key,
                signal_distribution={t.value: counts.get(t, 0) for t in SignalType},
                average_confidence=sum(s.confidence for s in signals.values()) / total if total else 0.0,
                total_signals=total,
                buy_ratio=counts.get(SignalType.BUY, 0) / total if total else 0.0,
                sell_ratio=counts.get(SignalType.SELL, 0) / total if total else 0.0,
            )
        return comparison

    # ── Recommendation ──────────────────────────────────────────────

    def recommend_strategy(
        self,
        horizon: float,
        risk_tolerance: Union[str, RiskTolerance],
        portfolio_size: int = 20,
    ) -> StrategyRecommendation:
        """Pick a built-in strategy from investment horizon (years) and risk tolerance."""
        if horizon <= 0:
            raise InvalidParameterError(f"horizon must be positive, got {horizon}")
        if portfolio_size <= 0:
            raise InvalidParameterError(f"portfolio_size must be positive, got {portfolio_size}")
        try:
            risk = RiskTolerance(str(getattr(risk_tolerance, "value", risk_tolerance)).lower())
        except ValueError:
            raise InvalidParameterError(f"Unknown risk tolerance: {risk_tolerance}") from None

        bucket = horizon_bucket(horizon)
        key, confidence = RECOMMENDATION_TABLE[bucket][risk]
        strategy = self.registry.get(key)
        reasoning = ". ".join([
            HORIZON_REASONS[bucket],
            RISK_REASONS[risk],
            STRATEGY_REASONS.get(key, "Strategy selected based on portfolio characteristics"),
        ])
        return StrategyRecommendation(
            strategy_key=key,
            strategy_name=strategy.name,
            confidence=confidence,
            rebalance_frequency=recommend_frequency(key, horizon),
            reasoning=reasoning,
        )
