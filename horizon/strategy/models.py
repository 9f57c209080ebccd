"""Strategy definition and recommendation data classes."""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from horizon.indicators.base import IndicatorConfig
from horizon.indicators.factory import required_window

Operand = Union[float, str]
Comparison = Literal[">", ">=", "<", "<=", "crosses_above", "crosses_below"]
RebalanceFrequency = Literal["daily", "weekly", "monthly"]

MAJORITY_VOTE = "Majority vote of indicators"


class Condition(BaseModel):
    """``left <op> right``. Operands are ``price``, ``<key>[.<field>]`` or a number."""
    model_config = ConfigDict(frozen=True)

    left: Operand
    op: Comparison
    right: Operand

    def __str__(self) -> str:
        return f"{self.left} {self.op} {self.right}"


class Rule(BaseModel):
    """Conditions combined with AND (``all``) or OR (``any``)."""
    model_config = ConfigDict(frozen=True)

    mode: Literal["all", "any"] = "all"
    conditions: tuple[Condition, ...] = Field(min_length=1)
    description: str = ""

    def __str__(self) -> str:
        if self.description:
            return self.description
        joiner = " AND " if self.mode == "all" else " OR "
        return joiner.join(str(c) for c in self.conditions)


class StrategyDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str = "Custom strategy using technical indicators"
    indicators: tuple[IndicatorConfig, ...] = ()
    entry_rule: Rule | None = None
    exit_rule: Rule | None = None
    rebalance_frequency: RebalanceFrequency = "weekly"

    @property
    def uses_rules(self) -> bool:
        return self.entry_rule is not None and self.exit_rule is not None

    @property
    def required_window(self) -> int:
        """Bars needed before every indicator has produced a value."""
        return max((required_window(c) for c in self.indicators), default=1)

    def explain(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "indicators": [{"type": c.type.value, "key": c.key, "params": c.params} for c in self.indicators],
            "frequency": self.rebalance_frequency,
            "rules": {
                "entry": str(self.entry_rule) if self.entry_rule else MAJORITY_VOTE,
                "exit": str(self.exit_rule) if self.exit_rule else MAJORITY_VOTE,
            },
        }

    def __str__(self) -> str:
        return f"{self.name} Strategy ({self.rebalance_frequency} rebalancing)"


class RiskTolerance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StrategyRecommendation(BaseModel):
    strategy_key: str
    strategy_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    rebalance_frequency: RebalanceFrequency
    reasoning: str


class StrategyComparison(BaseModel):
    """Signal distribution of one strategy across a set of tickers."""
    strategy_key: str
    signal_distribution: dict[str, int]
    average_confidence: float
    total_signals: int
    buy_ratio: float
    sell_ratio: float
