"""Tests for indicator voting and the direction predictor."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from trade_journal.errors import InsufficientDataError, NotFoundError, TradeValidationError
from trade_journal.models.trade import Exchange
from trade_journal.schemas.market import Direction
from trade_journal.services.market_data import PriceBar, Quote
from trade_journal.services.predictor import (
    IndicatorSnapshot,
    analyze_price_history,
    predict_direction,
    predict_many,
    score_indicators,
)

START = datetime(2023, 1, 2, tzinfo=timezone.utc)


def _rising_bars(n: int) -> list[PriceBar]:
    return [
        PriceBar(
            timestamp=START + timedelta(days=i),
            open=100.0 + i,
            high=101.0 + i,
            low=99.0 + i,
            close=100.0 + i,
            volume=1000,
        )
        for i in range(n)
    ]


def _market_data(bars: list[PriceBar], price: float) -> MagicMock:
    client = MagicMock()
    client.get_quote_with_history = AsyncMock(
        return_value=(Quote(symbol="TCS", exchange="NSE", price=price), bars)
    )
    return client


# ---------------------------------------------------------------------------
# Voting
# ---------------------------------------------------------------------------

class TestScoreIndicators:
    def test_all_bullish_clamped_to_95(self):
        snapshot = IndicatorSnapshot(
            current_price=105.0, rsi=25.0, macd=1.5,
            sma50=100.0, sma200=90.0, support=100.0, resistance=130.0,
        )
        score = score_indicators(snapshot)
        assert score.direction == Direction.BULLISH
        assert score.confidence == 95.0
        assert score.total_signals == 4
        assert score.bullish == 4.0

    def test_all_bearish(self):
        snapshot = IndicatorSnapshot(
            current_price=80.0, rsi=75.0, macd=-2.0,
            sma50=90.0, sma200=100.0, support=60.0, resistance=82.0,
        )
        score = score_indicators(snapshot)
        assert score.direction == Direction.BEARISH
        assert 55.0 <= score.confidence <= 95.0

    def test_undefined_indicators_abstain(self):
        snapshot = IndicatorSnapshot(current_price=100.0, rsi=25.0)
        score = score_indicators(snapshot)
        assert score.total_signals == 1
        assert score.direction == Direction.BULLISH

    def test_flat_range_counts_as_mid_range(self):
        snapshot = IndicatorSnapshot(current_price=100.0, support=100.0, resistance=100.0)
        score = score_indicators(snapshot)
        assert score.bullish == 0.5
        assert score.bearish == 0.0

    def test_no_indicators_raises(self):
        with pytest.raises(InsufficientDataError):
            score_indicators(IndicatorSnapshot(current_price=100.0))

    def test_close_scores_are_neutral(self):
        # 0.5 bullish (RSI > 50) against 0.5 bearish (price below SMA50 only)
        snapshot = IndicatorSnapshot(current_price=95.0, rsi=55.0, sma50=100.0, sma200=90.0)
        score = score_indicators(snapshot)
        assert score.direction == Direction.NEUTRAL
        assert score.confidence == 50.0


# ---------------------------------------------------------------------------
# Price history analysis
# ---------------------------------------------------------------------------

class TestAnalyzePriceHistory:
    def test_long_uptrend_splits_votes(self):
        # RSI overbought and price near resistance offset MACD and golden cross
        report = analyze_price_history("tcs", Exchange.NSE, _rising_bars(250), 349.0)
        assert report.symbol == "TCS"
        assert report.direction == Direction.NEUTRAL
        assert report.confidence == 50.0
        assert report.indicators.rsi == 100.0
        assert report.indicators.macd > 0
        assert report.indicators.sma50 == 324.5
        assert report.indicators.sma200 == 249.5
        assert report.support == 299.0
        assert report.resistance == 350.0

    def test_short_history_skips_sma200(self):
        report = analyze_price_history("TCS", Exchange.NSE, _rising_bars(60), 159.0)
        assert report.indicators.sma200 is None
        assert report.direction == Direction.BEARISH
        assert report.confidence == 66.7

    def test_price_falls_back_to_last_close(self):
        report = analyze_price_history("TCS", Exchange.NSE, _rising_bars(60), None)
        assert report.indicators.current_price == 159.0

    def test_thirty_bars_is_insufficient(self):
        with pytest.raises(InsufficientDataError):
            analyze_price_history("TCS", Exchange.NSE, _rising_bars(30), 129.0)

    def test_serializes_camel_case(self):
        report = analyze_price_history("TCS", Exchange.NSE, _rising_bars(60), 159.0)
        payload = report.model_dump(mode="json", by_alias=True)
        assert "currentPrice" in payload["indicators"]
        assert "macdHistogram" in payload["indicators"]


# ---------------------------------------------------------------------------
# Market data integration
# ---------------------------------------------------------------------------

class TestPredictDirection:
    @pytest.mark.asyncio
    async def test_fetches_and_predicts(self):
        client = _market_data(_rising_bars(60), 159.0)
        report = await predict_direction(" tcs ", Exchange.BSE, client, "1y")
        client.get_quote_with_history.assert_awaited_once_with("TCS", "BSE", "1y")
        assert report.exchange == Exchange.BSE
        assert report.direction == Direction.BEARISH

    @pytest.mark.asyncio
    async def test_empty_symbol_rejected(self):
        with pytest.raises(TradeValidationError):
            await predict_direction("  ", Exchange.NSE, _market_data([], 0.0))

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self):
        client = MagicMock()
        client.get_quote_with_history = AsyncMock(side_effect=NotFoundError("Stock XYZ not found"))
        with pytest.raises(NotFoundError):
            await predict_direction("XYZ", Exchange.NSE, client)


class TestPredictMany:
    @pytest.mark.asyncio
    async def test_collects_per_symbol_failures(self):
        bars = _rising_bars(60)

        def fetch(symbol, exchange, period):
            if symbol == "BAD":
                raise NotFoundError("Stock BAD not found on NSE")
            return Quote(symbol=symbol, exchange=exchange, price=159.0), bars

        client = MagicMock()
        client.get_quote_with_history = AsyncMock(side_effect=fetch)

        report = await predict_many(["tcs", "BAD", "infy"], Exchange.NSE, client)
        assert [p.symbol for p in report.predictions] == ["TCS", "INFY"]
        assert len(report.errors) == 1
        assert report.errors[0].symbol == "BAD"
        assert "not found" in report.errors[0].error

    @pytest.mark.asyncio
    async def test_too_many_symbols(self):
        with pytest.raises(TradeValidationError):
            await predict_many([f"S{i}" for i in range(11)], Exchange.NSE, MagicMock())

    @pytest.mark.asyncio
    async def test_blank_symbols_rejected(self):
        with pytest.raises(TradeValidationError):
            await predict_many(["", "  "], Exchange.NSE, MagicMock())

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_raised(self):
        client = MagicMock()
        client.get_quote_with_history = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await predict_many(["TCS"], Exchange.NSE, client)
