"""Injectable mapping of strategy keys to definitions."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Iterator, Mapping, Union

from pydantic import ValidationError

from horizon.config.strategies import BUILTIN_STRATEGIES
from horizon.errors import InvalidParameterError, InvalidStrategyError, UnknownStrategyError
from horizon.indicators.base import IndicatorConfig
from horizon.indicators.factory import create_indicator
from horizon.strategy.models import Rule, StrategyDefinition
from horizon.strategy.rules import referenced_keys

logger = logging.getLogger(__name__)


def strategy_key(name: str) -> str:
    """``"My Custom Strat"`` -> ``"my_custom_strat"``."""
    return re.sub(r"\s+", "_", name.strip().lower())


def _indicator_config(spec: Union[IndicatorConfig, Mapping[str, Any]]) -> IndicatorConfig:
    if isinstance(spec, IndicatorConfig):
        return spec
    if "type" not in spec:
        raise InvalidParameterError(f"Indicator spec has no type: {dict(spec)}")
    if "params" in spec:
        return IndicatorConfig.from_dict(dict(spec))
    fields = dict(spec)
    return IndicatorConfig.of(fields.pop("type"), **fields)


class StrategyRegistry:
    """Strategy definitions by key. Each instance owns its own mapping."""

    def __init__(self, definitions: Iterable[StrategyDefinition] = ()) -> None:
        self._strategies: dict[str, StrategyDefinition] = {}
        for definition in definitions:
            self.register(definition)

    @classmethod
    def with_builtins(cls) -> "StrategyRegistry":
        """Fresh registry holding trend_following, mean_reversion, momentum and conservative."""
        registry = cls()
        for key, data in BUILTIN_STRATEGIES.items():
            registry.register(StrategyDefinition.model_validate({"key": key, **data}))
        return registry

    def register(self, definition: StrategyDefinition, replace: bool = False) -> StrategyDefinition:
        """Validate and add *definition*.

        Raises InvalidStrategyError for duplicate keys or labels, or for rules
        that reference unknown indicators. Raises InvalidParameterError for bad
        indicator parameters.
        """
        if definition.key in self._strategies and not replace:
            raise InvalidStrategyError(f"Strategy '{definition.key}' is already registered")

        keys = [c.key for c in definition.indicators]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise InvalidStrategyError(f"Strategy '{definition.key}' has duplicate indicator keys: {duplicates}")

        for config in definition.indicators:
            create_indicator(config)

        if (definition.entry_rule is None) != (definition.exit_rule is None):
            raise InvalidStrategyError(
                f"Strategy '{definition.key}' must define both entry and exit rules, or neither"
            )
        dangling = (referenced_keys(definition.entry_rule) | referenced_keys(definition.exit_rule)) - set(keys)
        if dangling:
            raise InvalidStrategyError(
                f"Strategy '{definition.key}' rules reference unknown indicators: {sorted(dangling)}"
            )

        self._strategies[definition.key] = definition
        logger.debug(f"Registered strategy {definition.key} ({len(keys)} indicators)")
        return definition

    def create_custom(
        self,
        name: str,
        indicators: Iterable[Union[IndicatorConfig, Mapping[str, Any]]],
        entry_rule: Union[Rule, Mapping[str, Any], None] = None,
        exit_rule: Union[Rule, Mapping[str, Any], None] = None,
        frequency: str = "weekly",
        replace: bool = False,
    ) -> StrategyDefinition:
        """Register a strategy keyed by its lower-cased, underscored name.

        Indicator mappings may use the ``{"type", "params", "label"}`` layout.
        Without rules the strategy consolidates by majority vote.
        """
        configs = [_indicator_config(c) for c in indicators]
        try:
            definition = StrategyDefinition(
                key=strategy_key(name),
                name=name,
                indicators=tuple(configs),
                entry_rule=entry_rule,
                exit_rule=exit_rule,
                rebalance_frequency=frequency,
            )
        except ValidationError as e:
            raise InvalidStrategyError(f"Invalid strategy '{name}': {e}") from e
        return self.register(definition, replace=replace)

    def get(self, key: str) -> StrategyDefinition:
        try:
            return self._strategies[key]
        except KeyError:
            raise UnknownStrategyError(f"Strategy {key} not found") from None

    def available(self) -> list[dict[str, Any]]:
        """One summary dict per strategy, in registration order."""
        return [
            {
                "key": key,
                "name": s.name,
                "description": s.description,
                "frequency": s.rebalance_frequency,
                "indicators": [c.type.value for c in s.indicators],
            }
            for key, s in self._strategies.items()
        ]

    def statistics(self) -> dict[str, Any]:
        return {
            "total_strategies": len(self._strategies),
            "strategies": list(self._strategies),
            "last_updated": datetime.now().isoformat(),
        }

    def __contains__(self, key: object) -> bool:
        return key in self._strategies

    def __iter__(self) -> Iterator[StrategyDefinition]:
        return iter(self._strategies.values())

    def __len__(self) -> int:
        return len(self._strategies)
