"""Evaluation of entry/exit rules against per-bar indicator readings."""
from __future__ import annotations

import logging
import operator
from collections import Counter
from typing import Iterable, Mapping, Optional

from horizon.data.models import SignalType
from horizon.indicators.base import IndicatorReading, IndicatorType
from horizon.strategy.models import Condition, Operand, Rule

logger = logging.getLogger(__name__)

PRICE_OPERANDS = frozenset({"price", "close"})

DEFAULT_FIELDS: dict[IndicatorType, str] = {
    IndicatorType.SMA: "value",
    IndicatorType.EMA: "value",
    IndicatorType.RSI: "value",
    IndicatorType.MACD: "macd",
    IndicatorType.BOLLINGER: "middle",
}

_COMPARATORS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

Readings = Mapping[str, Optional[IndicatorReading]]


def _as_number(operand: Operand) -> Optional[float]:
    try:
        return float(operand)
    except ValueError:
        return None


def split_reference(operand: str) -> tuple[str, Optional[str]]:
    """``"sma50.value"`` -> ``("sma50", "value")``; ``"sma50"`` -> ``("sma50", None)``."""
    key, _, field = operand.partition(".")
    return key, field or None


def referenced_keys(rule: Optional[Rule]) -> set[str]:
    """Indicator keys a rule reads, excluding price and numeric operands."""
    if rule is None:
        return set()
    keys = set()
    for condition in rule.conditions:
        for operand in (condition.left, condition.right):
            if _as_number(operand) is not None or str(operand).lower() in PRICE_OPERANDS:
                continue
            keys.add(split_reference(str(operand))[0])
    return keys


def resolve_operand(
    operand: Operand,
    readings: Readings,
    price: float,
    previous_price: Optional[float],
) -> tuple[Optional[float], Optional[float]]:
    """Current and previous-bar value of *operand*; ``None`` when unavailable."""
    number = _as_number(operand)
    if number is not None:
        return number, number

    name = str(operand)
    if name.lower() in PRICE_OPERANDS:
        return price, previous_price

    key, field = split_reference(name)
    reading = readings.get(key)
    if reading is None:
        return None, None
    field = field or DEFAULT_FIELDS[reading.type]
    if field not in reading.values:
        return None, None
    previous = reading.previous.get(field) if reading.previous else None
    return reading.values[field], previous


def evaluate_condition(
    condition: Condition,
    readings: Readings,
    price: float,
    previous_price: Optional[float] = None,
) -> bool:
    """Missing or warming-up operands make the condition unsatisfied."""
    left, prev_left = resolve_operand(condition.left, readings, price, previous_price)
    right, prev_right = resolve_operand(condition.right, readings, price, previous_price)
    if left is None or right is None:
        return False

    if condition.op in _COMPARATORS:
        return _COMPARATORS[condition.op](left, right)

    if prev_left is None or prev_right is None:
        return False
    if condition.op == "crosses_above":
        return prev_left <= prev_right and left > right
    return prev_left >= prev_right and left < right


def evaluate_rule(
    rule: Rule,
    readings: Readings,
    price: float,
    previous_price: Optional[float] = None,
) -> bool:
    results = (evaluate_condition(c, readings, price, previous_price) for c in rule.conditions)
    return all(results) if rule.mode == "all" else any(results)


def majority_vote(signals: Iterable[SignalType]) -> SignalType:
    """``buy`` if it ties for the top count, then ``sell``, else ``hold``."""
    counts = Counter(signals)
    top = max(counts.values(), default=0)
    if top == 0:
        return SignalType.HOLD
    for candidate in (SignalType.BUY, SignalType.SELL):
        if counts[candidate] == top:
            return candidate
    return SignalType.HOLD
