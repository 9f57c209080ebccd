"""Running cash/position state and trade execution for a single instrument."""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Optional

from horizon.backtest.models import EquityPoint, Trade

logger = logging.getLogger(__name__)


class PositionTracker:
    """Source of truth for cash and shares across backtest bars. Long-only, one position."""

    def __init__(self, initial_capital: float, position_size_percent: float) -> None:
        self.cash: float = initial_capital
        self.initial_capital: float = initial_capital
        self.position_size_percent: float = position_size_percent
        self.shares: int = 0
        self.avg_buy_price: float = 0.0
        self.trades: list[Trade] = []
        self.equity_curve: list[EquityPoint] = []

    @property
    def is_long(self) -> bool:
        return self.shares > 0

    def buy(self, trade_date: date, price: float, reason: str = "") -> Optional[Trade]:
        """Spend ``position_size_percent`` of cash on whole shares; ``None`` if that buys zero."""
        if self.is_long or price <= 0:
            return None
        quantity = math.floor(self.cash * self.position_size_percent / 100 / price)
        if quantity <= 0:
            logger.debug(f"{trade_date}: cash {self.cash:.2f} too small for one share at {price:.2f}")
            return None

        value = quantity * price
        self.cash -= value
        self.shares = quantity
        self.avg_buy_price = price

        trade = Trade(date=trade_date, side="buy", quantity=quantity, price=price, value=value, reason=reason)
        self.trades.append(trade)
        logger.debug(f"{trade_date}: BUY {quantity} @ {price:.2f}")
        return trade

    def sell(self, trade_date: date, price: float, reason: str = "") -> Optional[Trade]:
        """Close the whole position, booking realised P&L against the average buy price."""
        if not self.is_long:
            return None
        quantity = self.shares
        value = quantity * price
        cost_basis = quantity * self.avg_buy_price
        realized_pnl = (price - self.avg_buy_price) * quantity

        self.cash += value
        self.shares = 0
        self.avg_buy_price = 0.0

        trade = Trade(
            date=trade_date,
            side="sell",
            quantity=quantity,
            price=price,
            value=value,
            realized_pnl=realized_pnl,
            cost_basis=cost_basis,
            reason=reason,
        )
        self.trades.append(trade)
        logger.debug(f"{trade_date}: SELL {quantity} @ {price:.2f} (pnl={realized_pnl:.2f})")
        return trade

    def mark(self, mark_date: date, price: float) -> EquityPoint:
        """Record equity at *price*: ``value == cash + shares * price``."""
        holdings_value = self.shares * price
        point = EquityPoint(
            date=mark_date,
            value=self.cash + holdings_value,
            cash=self.cash,
            holdings_value=holdings_value,
            shares=self.shares,
            price=price,
        )
        self.equity_curve.append(point)
        return point

    def remark_last(self, price: float) -> EquityPoint:
        """Replace the last equity point after an end-of-run liquidation."""
        last = self.equity_curve.pop()
        return self.mark(last.date, price)
