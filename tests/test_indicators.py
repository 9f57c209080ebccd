"""Tests for the indicator families and factory."""
import math
from datetime import date, timedelta

import pytest

from horizon.data.models import PricePoint, SignalType
from horizon.errors import (
    IndicatorComputationError,
    InsufficientDataError,
    InvalidParameterError,
    UnknownIndicatorTypeError,
)
from horizon.indicators import (
    BollingerValues,
    IndicatorConfig,
    IndicatorResult,
    IndicatorType,
    MACDValues,
    available_indicators,
    calculate_all,
    compute,
    create_indicator,
    required_window,
)


def _make_series(values, start=date(2024, 1, 1)):
    return [
        PricePoint(date=start + timedelta(days=i), open=v, high=v, low=v, close=v, volume=1_000)
        for i, v in enumerate(values)
    ]


def _wave(n=120):
    return [100 + 10 * math.sin(i / 4) + 0.1 * i for i in range(n)]


class TestIndicatorConfig:
    def test_defaults_filled(self):
        assert IndicatorConfig.of("RSI").params == {"window": 14, "overbought": 70, "oversold": 30}
        assert IndicatorConfig.of("MACD").params == {"fast_period": 12, "slow_period": 26, "signal_period": 9}

    def test_ema_alpha_derived(self):
        assert IndicatorConfig.of("EMA", window=12).params["alpha"] == pytest.approx(2 / 13)

    def test_case_insensitive_type_and_aliases(self):
        assert IndicatorConfig.of("sma").type == IndicatorType.SMA
        assert IndicatorConfig.of("bb").type == IndicatorType.BOLLINGER
        assert IndicatorConfig.of("Bollinger_Bands").type == IndicatorType.BOLLINGER

    def test_unknown_type(self):
        with pytest.raises(UnknownIndicatorTypeError, match="STOCH"):
            IndicatorConfig.of("STOCH")

    def test_malformed_params_raise_invalid_parameter(self):
        with pytest.raises(InvalidParameterError, match="SMA"):
            IndicatorConfig.of("SMA", window=2.5)
        with pytest.raises(InvalidParameterError):
            create_indicator("RSI", window="abc")
        with pytest.raises(InvalidParameterError):
            IndicatorConfig.from_dict({"type": "MACD", "params": {"fastPeriod": "fast"}})

    def test_canonical_keys(self):
        assert IndicatorConfig.of("SMA", window=50).key == "SMA(50)"
        assert IndicatorConfig.of("EMA").key == "EMA(12)"
        assert IndicatorConfig.of("MACD").key == "MACD(12,26,9)"
        assert IndicatorConfig.of("BOLLINGER").key == "BOLLINGER(20,2)"
        assert IndicatorConfig.of("SMA", label="fast").key == "fast"

    def test_from_dict_accepts_camel_case_macd(self):
        config = IndicatorConfig.from_dict(
            {"type": "MACD", "params": {"fastPeriod": 5, "slowPeriod": 10, "signalPeriod": 3}}
        )
        assert config.params == {"fast_period": 5, "slow_period": 10, "signal_period": 3}


class TestMovingAverages:
    def test_rising_series_sma(self):
        series = _make_series([100 + i for i in range(25)])
        result = compute(series, IndicatorConfig.of("SMA", window=20))
        assert result.start_index == 19
        assert len(result) == 6
        assert result.values[0] == pytest.approx(109.5)
        assert result.values[-1] == pytest.approx(114.5)
        assert result.dates[0] == series[19].date

    def test_rising_series_ema_second_bar(self):
        series = _make_series([100 + i for i in range(25)])
        result = compute(series, IndicatorConfig.of("EMA", window=12))
        assert result.start_index == 0
        assert result.values[0] == 100
        assert result.values[1] == pytest.approx(100.154, abs=1e-3)

    def test_constant_series(self):
        series = _make_series([42.0] * 30)
        sma_result = compute(series, IndicatorConfig.of("SMA", window=10))
        ema_result = compute(series, IndicatorConfig.of("EMA", window=10))
        assert all(v == pytest.approx(42.0) for v in sma_result.values)
        assert all(v == pytest.approx(42.0) for v in ema_result.values)
        assert set(sma_result.signals) == {SignalType.HOLD}
        assert set(ema_result.signals) == {SignalType.HOLD}

    def test_sma_price_cross_above_is_buy(self):
        series = _make_series([10, 10, 10, 10, 10, 20])
        result = compute(series, IndicatorConfig.of("SMA", window=3))
        assert result.signals[-1] == SignalType.BUY
        assert result.strengths[-1] == pytest.approx(0.7)
        assert result.signals[0] == SignalType.HOLD
        assert result.strengths[0] == pytest.approx(0.5)

    def test_sma_price_cross_below_is_sell(self):
        series = _make_series([10, 10, 10, 10, 10, 5])
        result = compute(series, IndicatorConfig.of("SMA", window=3))
        assert result.signals[-1] == SignalType.SELL

    def test_insufficient_data(self):
        with pytest.raises(InsufficientDataError) as exc:
            compute(_make_series(range(1, 20)), IndicatorConfig.of("SMA", window=20))
        assert exc.value.required == 20
        assert exc.value.available == 19

    def test_invalid_window(self):
        with pytest.raises(InvalidParameterError):
            create_indicator("SMA", window=0)

    def test_invalid_alpha(self):
        with pytest.raises(InvalidParameterError, match="alpha"):
            create_indicator("EMA", window=10, alpha=1.5)


class TestRSI:
    def test_strictly_increasing_is_100(self):
        result = compute(_make_series([100 + i for i in range(40)]), IndicatorConfig.of("RSI"))
        assert result.start_index == 14
        assert all(v == 100.0 for v in result.values)
        assert set(result.signals) == {SignalType.SELL}

    def test_strictly_decreasing_is_0(self):
        result = compute(_make_series([200 - i for i in range(40)]), IndicatorConfig.of("RSI"))
        assert all(v == pytest.approx(0.0) for v in result.values)
        assert set(result.signals) == {SignalType.BUY}
        assert result.strengths[-1] == pytest.approx(1.0)

    def test_values_in_range(self):
        result = compute(_make_series(_wave()), IndicatorConfig.of("RSI"))
        assert all(0.0 <= v <= 100.0 for v in result.values)
        assert all(0.0 <= s <= 1.0 for s in result.strengths)

    def test_needs_window_plus_one_bars(self):
        assert required_window(IndicatorConfig.of("RSI")) == 15
        with pytest.raises(InsufficientDataError):
            compute(_make_series(range(1, 15)), IndicatorConfig.of("RSI"))

    def test_bad_thresholds(self):
        with pytest.raises(InvalidParameterError, match="oversold"):
            create_indicator("RSI", overbought=30, oversold=70)


class TestMACD:
    def test_histogram_identity(self):
        result = compute(_make_series(_wave()), IndicatorConfig.of("MACD"))
        values = result.values
        assert isinstance(values, MACDValues)
        for macd, signal, hist in zip(values.macd_line, values.signal_line, values.histogram):
            assert hist == macd - signal

    def test_alignment(self):
        series = _make_series(_wave(60))
        result = compute(series, IndicatorConfig.of("MACD"))
        assert result.start_index == 33
        assert len(result) == 27
        assert len(result.values.macd_line) == len(result.values.signal_line) == 27
        assert result.dates[-1] == series[-1].date

    def test_minimum_bars(self):
        assert required_window(IndicatorConfig.of("MACD")) == 34
        result = compute(_make_series(_wave(34)), IndicatorConfig.of("MACD"))
        assert len(result) == 1

    def test_fast_must_be_below_slow(self):
        with pytest.raises(InvalidParameterError):
            create_indicator("MACD", fast_period=26, slow_period=12)

    def test_reading_fields(self):
        result = compute(_make_series(_wave()), IndicatorConfig.of("MACD"))
        reading = result.latest()
        assert set(reading.values) == {"macd", "signal", "histogram"}
        assert set(reading.previous) == {"macd", "signal", "histogram"}


class TestBollinger:
    def test_band_invariant(self):
        result = compute(_make_series(_wave()), IndicatorConfig.of("BOLLINGER"))
        bands = result.values
        assert isinstance(bands, BollingerValues)
        for upper, middle, lower in zip(bands.upper, bands.middle, bands.lower):
            assert lower <= middle <= upper

    def test_flat_band_is_hold(self):
        result = compute(_make_series([50.0] * 25), IndicatorConfig.of("BOLLINGER"))
        assert set(result.signals) == {SignalType.HOLD}
        assert set(result.strengths) == {0.0}

    def test_breakout_above_upper_is_sell(self):
        series = _make_series([100, 101, 99, 100, 101, 99, 100, 130])
        result = compute(series, IndicatorConfig.of("BOLLINGER", window=5, multiplier=1))
        assert result.signals[-1] == SignalType.SELL

    def test_break_below_lower_is_buy(self):
        series = _make_series([100, 101, 99, 100, 101, 99, 100, 70])
        result = compute(series, IndicatorConfig.of("BOLLINGER", window=5, multiplier=1))
        assert result.signals[-1] == SignalType.BUY

    def test_non_positive_multiplier(self):
        with pytest.raises(InvalidParameterError, match="multiplier"):
            create_indicator("BOLLINGER", multiplier=0)


class TestIndicatorResult:
    def test_reading_outside_range_is_none(self):
        result = compute(_make_series(range(1, 26)), IndicatorConfig.of("SMA", window=20))
        assert result.reading_at(18) is None
        assert result.reading_at(25) is None
        assert result.signal_at(5) == SignalType.HOLD

    def test_first_reading_has_no_previous(self):
        result = compute(_make_series(range(1, 26)), IndicatorConfig.of("SMA", window=20))
        first = result.reading_at(19)
        assert first.previous is None
        assert first.bar_date == date(2024, 1, 20)
        assert result.reading_at(20).previous == {"value": pytest.approx(10.5)}

    def test_summary_scalar_and_composite(self):
        series = _make_series(_wave())
        assert isinstance(compute(series, IndicatorConfig.of("RSI")).summary().value, float)
        summary = compute(series, IndicatorConfig.of("BOLLINGER")).summary()
        assert set(summary.value) == {"upper", "middle", "lower"}

    def test_latest_on_empty_result_raises(self):
        empty = IndicatorResult(
            type=IndicatorType.SMA, key="SMA(5)", params={"window": 5}, start_index=4,
            dates=(), values=(), signals=(), strengths=(),
        )
        with pytest.raises(IndicatorComputationError, match="no values"):
            empty.latest()

    def test_repeat_calls_are_equal(self):
        series = _make_series(_wave())
        config = IndicatorConfig.of("MACD")
        assert compute(series, config) == compute(series, config)


class TestFactory:
    def test_available_indicators(self):
        info = {i["type"]: i for i in available_indicators()}
        assert set(info) == {"SMA", "EMA", "RSI", "MACD", "BOLLINGER"}
        assert info["MACD"]["default_window"] == 34
        assert info["BOLLINGER"]["name"] == "Bollinger Bands"

    def test_calculate_all_collects_errors(self):
        results, errors = calculate_all(_make_series(_wave(20)), ["SMA", "RSI", "MACD"])
        assert set(results) == {"SMA", "RSI"}
        assert "MACD" in errors
        assert "Insufficient data" in errors["MACD"]

    def test_calculate_all_unknown_type(self):
        results, errors = calculate_all(_make_series(_wave(30)), ["SMA", "VWAP"])
        assert set(results) == {"SMA"}
        assert "VWAP" in errors

    def test_wrong_config_for_class(self):
        from horizon.indicators.moving_average import SMAIndicator

        with pytest.raises(InvalidParameterError):
            SMAIndicator(IndicatorConfig.of("EMA"))

    def test_non_finite_values_rejected(self):
        from horizon.indicators.moving_average import SMAIndicator

        class BrokenSMA(SMAIndicator):
            def _values(self, prices):
                arrays, start = super()._values(prices)
                arrays["value"][0] = float("inf")
                return arrays, start

        with pytest.raises(IndicatorComputationError):
            BrokenSMA(IndicatorConfig.of("SMA", window=3)).compute(_make_series(range(1, 10)))
