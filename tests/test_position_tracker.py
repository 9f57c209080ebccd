"""Tests for PositionTracker."""
from datetime import date

import pytest

from horizon.backtest.position import PositionTracker


class TestInit:
    def test_initial_state(self):
        tracker = PositionTracker(10_000, 50)
        assert tracker.cash == 10_000
        assert tracker.shares == 0
        assert not tracker.is_long
        assert tracker.trades == []
        assert tracker.equity_curve == []


class TestBuy:
    def test_buys_whole_shares_with_position_fraction(self):
        tracker = PositionTracker(10_000, 50)
        trade = tracker.buy(date(2024, 1, 1), 33.0, "test")
        assert trade.quantity == 151  # floor(5000 / 33)
        assert tracker.cash == pytest.approx(10_000 - 151 * 33.0)
        assert tracker.avg_buy_price == 33.0
        assert trade.realized_pnl is None

    def test_skips_when_zero_shares(self):
        tracker = PositionTracker(100, 10)
        assert tracker.buy(date(2024, 1, 1), 50.0) is None
        assert tracker.trades == []

    def test_no_pyramiding(self):
        tracker = PositionTracker(10_000, 50)
        tracker.buy(date(2024, 1, 1), 100.0)
        assert tracker.buy(date(2024, 1, 2), 100.0) is None
        assert tracker.shares == 50


class TestSell:
    def test_sell_when_flat_is_noop(self):
        tracker = PositionTracker(10_000, 50)
        assert tracker.sell(date(2024, 1, 1), 100.0) is None

    def test_realized_pnl(self):
        tracker = PositionTracker(10_000, 100)
        tracker.buy(date(2024, 1, 1), 100.0)
        trade = tracker.sell(date(2024, 1, 2), 90.0, "exit")
        assert trade.quantity == 100
        assert trade.realized_pnl == pytest.approx(-1_000)
        assert trade.cost_basis == pytest.approx(10_000)
        assert trade.reason == "exit"
        assert tracker.cash == pytest.approx(9_000)
        assert tracker.shares == 0
        assert tracker.avg_buy_price == 0.0


class TestMark:
    def test_equity_identity(self):
        tracker = PositionTracker(10_000, 50)
        tracker.buy(date(2024, 1, 1), 100.0)
        point = tracker.mark(date(2024, 1, 1), 120.0)
        assert point.holdings_value == 50 * 120.0
        assert point.value == point.cash + point.holdings_value == 11_000

    def test_remark_last_replaces_point(self):
        tracker = PositionTracker(10_000, 50)
        tracker.buy(date(2024, 1, 1), 100.0)
        tracker.mark(date(2024, 1, 1), 100.0)
        tracker.sell(date(2024, 1, 1), 100.0)
        point = tracker.remark_last(100.0)
        assert len(tracker.equity_curve) == 1
        assert point.shares == 0
        assert point.cash == point.value == 10_000
