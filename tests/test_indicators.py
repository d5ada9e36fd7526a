"""Tests for the technical indicator library."""

from datetime import datetime, timedelta, timezone

import pytest

from trade_journal.services.indicators import (
    calculate_ema,
    calculate_macd,
    calculate_moving_averages,
    calculate_rsi,
    calculate_sma,
    calculate_support_resistance,
)
from trade_journal.services.market_data import PriceBar


class TestRSI:
    def test_monotonic_increase_is_100(self):
        prices = [100 + i for i in range(15)]
        assert calculate_rsi(prices, 14) == 100.0

    def test_monotonic_decrease_is_0(self):
        prices = [200 - i for i in range(30)]
        assert calculate_rsi(prices, 14) == 0.0

    def test_needs_period_plus_one(self):
        assert calculate_rsi([100 + i for i in range(14)], 14) is None

    def test_bounded(self):
        prices = [100, 102, 101, 105, 103, 104, 108, 107, 106, 109, 111, 110, 112, 115, 113, 116]
        rsi = calculate_rsi(prices, 14)
        assert 0 <= rsi <= 100


class TestMovingAverages:
    def test_sma(self):
        assert calculate_sma([10, 20, 30], 3) == 20.0

    def test_sma_uses_last_period_values(self):
        assert calculate_sma([1, 2, 3, 4, 5], 2) == 4.5

    def test_sma_short_input(self):
        assert calculate_sma([10, 20], 3) is None

    def test_ema_seeded_with_sma(self):
        # seed (1+2+3)/3 = 2, multiplier 0.5 -> 3 -> 4
        assert calculate_ema([1, 2, 3, 4, 5], 3) == 4.0

    def test_ema_short_input(self):
        assert calculate_ema([1, 2], 3) is None

    def test_only_computable_periods(self):
        result = calculate_moving_averages([float(i) for i in range(60)])
        assert set(result.sma) == {20, 50}
        assert set(result.ema) == {20, 50}
        assert result.sma[20] == pytest.approx(49.5)


class TestMACD:
    def test_flat_series(self):
        result = calculate_macd([100.0] * 30)
        assert (result.macd, result.signal, result.histogram) == (0.0, 0.0, 0.0)

    def test_uptrend_positive(self):
        result = calculate_macd([100 + i for i in range(40)])
        assert result.macd > 0
        assert result.signal == pytest.approx(round(result.macd * 0.8, 2), abs=0.01)

    def test_short_input_undefined(self):
        result = calculate_macd([100 + i for i in range(25)])
        assert result.macd is None
        assert result.signal is None
        assert result.histogram is None


class TestSupportResistance:
    def test_recent_fifth_of_plain_prices(self):
        levels = calculate_support_resistance([float(i) for i in range(1, 26)])
        assert levels.support == 21.0
        assert levels.resistance == 25.0

    def test_uses_bar_highs_and_lows(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        bars = [
            PriceBar(timestamp=start + timedelta(days=i), open=100, high=110 + i, low=90 - i, close=100)
            for i in range(20)
        ]
        levels = calculate_support_resistance(bars)
        # last 4 bars: i = 16..19
        assert levels.support == 71.0
        assert levels.resistance == 129.0

    def test_needs_twenty_bars(self):
        levels = calculate_support_resistance([100.0] * 19)
        assert levels.support is None
        assert levels.resistance is None
