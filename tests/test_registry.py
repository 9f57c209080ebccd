"""Tests for StrategyRegistry and the built-in strategies."""
import pytest

from horizon.errors import InvalidParameterError, InvalidStrategyError, UnknownStrategyError
from horizon.indicators.base import IndicatorConfig
from horizon.strategy.models import Condition, Rule, StrategyDefinition
from horizon.strategy.registry import StrategyRegistry, strategy_key


def _price_rule(op, value):
    return Rule(conditions=(Condition(left="price", op=op, right=value),))


class TestBuiltins:
    def test_four_builtins_in_order(self):
        registry = StrategyRegistry.with_builtins()
        assert [s.key for s in registry] == ["trend_following", "mean_reversion", "momentum", "conservative"]
        assert len(registry) == 4

    def test_frequencies(self):
        registry = StrategyRegistry.with_builtins()
        assert registry.get("trend_following").rebalance_frequency == "weekly"
        assert registry.get("mean_reversion").rebalance_frequency == "daily"
        assert registry.get("momentum").rebalance_frequency == "weekly"
        assert registry.get("conservative").rebalance_frequency == "monthly"

    def test_required_windows(self):
        registry = StrategyRegistry.with_builtins()
        assert registry.get("trend_following").required_window == 200
        assert registry.get("mean_reversion").required_window == 20
        assert registry.get("momentum").required_window == 34
        assert registry.get("conservative").required_window == 50

    def test_momentum_indicator_params(self):
        momentum = StrategyRegistry.with_builtins().get("momentum")
        rsi = next(c for c in momentum.indicators if c.key == "rsi")
        assert rsi.params == {"window": 14, "overbought": 80, "oversold": 20}

    def test_explain(self):
        info = StrategyRegistry.with_builtins().get("mean_reversion").explain()
        assert info["rules"]["entry"] == "RSI < 30 OR Price < Lower Bollinger Band"
        assert [i["type"] for i in info["indicators"]] == ["RSI", "BOLLINGER"]
        assert info["frequency"] == "daily"

    def test_available_summaries(self):
        summaries = StrategyRegistry.with_builtins().available()
        trend = summaries[0]
        assert trend["key"] == "trend_following"
        assert trend["indicators"] == ["SMA", "SMA"]
        assert trend["description"].startswith("Uses moving averages")

    def test_registries_are_independent(self):
        a = StrategyRegistry.with_builtins()
        b = StrategyRegistry.with_builtins()
        a.create_custom("Only Here", [IndicatorConfig.of("SMA")])
        assert "only_here" in a
        assert "only_here" not in b


class TestRegister:
    def test_duplicate_key_rejected(self):
        registry = StrategyRegistry.with_builtins()
        definition = StrategyDefinition(key="momentum", name="Momentum 2")
        with pytest.raises(InvalidStrategyError, match="already registered"):
            registry.register(definition)
        registry.register(definition, replace=True)
        assert registry.get("momentum").name == "Momentum 2"

    def test_dangling_rule_reference(self):
        definition = StrategyDefinition(
            key="broken",
            name="Broken",
            indicators=(IndicatorConfig.of("SMA", label="sma20"),),
            entry_rule=Rule(conditions=(Condition(left="price", op=">", right="sma50"),)),
            exit_rule=_price_rule("<", 0),
        )
        with pytest.raises(InvalidStrategyError, match="sma50"):
            StrategyRegistry().register(definition)

    def test_duplicate_indicator_keys(self):
        definition = StrategyDefinition(
            key="dupes", name="Dupes",
            indicators=(IndicatorConfig.of("SMA"), IndicatorConfig.of("SMA")),
        )
        with pytest.raises(InvalidStrategyError, match="duplicate"):
            StrategyRegistry().register(definition)

    def test_half_defined_rules(self):
        definition = StrategyDefinition(key="half", name="Half", entry_rule=_price_rule(">", 0))
        with pytest.raises(InvalidStrategyError, match="both"):
            StrategyRegistry().register(definition)

    def test_bad_indicator_params_surface(self):
        definition = StrategyDefinition(
            key="bad", name="Bad", indicators=(IndicatorConfig.of("SMA", window=-5),),
        )
        with pytest.raises(InvalidParameterError):
            StrategyRegistry().register(definition)


class TestCreateCustom:
    def test_key_from_name(self):
        assert strategy_key("  My Custom   Strat ") == "my_custom_strat"

    def test_majority_vote_strategy(self):
        registry = StrategyRegistry()
        s = registry.create_custom(
            "Twin Averages",
            [{"type": "SMA", "params": {"window": 20}}, {"type": "EMA", "label": "fast", "window": 12}],
            frequency="daily",
        )
        assert s.key == "twin_averages"
        assert [c.key for c in s.indicators] == ["SMA(20)", "fast"]
        assert not s.uses_rules
        assert s.explain()["rules"] == {"entry": "Majority vote of indicators", "exit": "Majority vote of indicators"}
        assert registry.get("twin_averages") is s

    def test_rules_from_mappings(self):
        s = StrategyRegistry().create_custom(
            "Price Floor",
            [],
            entry_rule={"conditions": [{"left": "price", "op": ">", "right": 10}]},
            exit_rule={"conditions": [{"left": "price", "op": "<", "right": 5}]},
        )
        assert s.uses_rules
        assert s.required_window == 1

    def test_malformed_indicator_params(self):
        registry = StrategyRegistry()
        with pytest.raises(InvalidParameterError):
            registry.create_custom("Bad Window", [{"type": "SMA", "window": 2.5}])
        with pytest.raises(InvalidParameterError):
            registry.create_custom("Bad Params", [{"type": "EMA", "params": {"window": "abc"}}])
        with pytest.raises(InvalidParameterError):
            registry.create_custom("No Type", [{"window": 10}])
        assert len(registry) == 0

    def test_invalid_frequency(self):
        with pytest.raises(InvalidStrategyError):
            StrategyRegistry().create_custom("Hourly", [], frequency="hourly")


class TestLookup:
    def test_unknown_strategy(self):
        with pytest.raises(UnknownStrategyError, match="nope"):
            StrategyRegistry.with_builtins().get("nope")

    def test_unknown_strategy_is_lookup_error(self):
        assert issubclass(UnknownStrategyError, LookupError)

    def test_statistics(self):
        stats = StrategyRegistry.with_builtins().statistics()
        assert stats["total_strategies"] == 4
        assert "conservative" in stats["strategies"]
