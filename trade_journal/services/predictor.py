"""Heuristic direction prediction from technical indicators.

Each defined indicator casts a 0.5 or 1 point vote for the bullish or the
bearish side; undefined indicators abstain and do not count towards the
total. ``score_indicators`` and ``analyze_price_history`` are pure;
``predict_direction`` adds the market-data fetch.
"""

import asyncio
import logging
from dataclasses import dataclass

from trade_journal.errors import InsufficientDataError, JournalError, TradeValidationError
from trade_journal.models.trade import Exchange
from trade_journal.schemas.market import (
    BulkPredictionReport,
    Direction,
    DirectionReport,
    IndicatorValues,
    PredictionFailure,
)
from trade_journal.services import indicators
from trade_journal.services.market_data import MarketDataClient, PriceBar
from trade_journal.utils.constants import (
    DEFAULT_HISTORY_PERIOD,
    MAX_BULK_SYMBOLS,
    MIN_PREDICTION_BARS,
)
from trade_journal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class IndicatorSnapshot:
    """Indicator values the vote is taken over. None means undefined."""
    current_price: float
    rsi: float | None = None
    macd: float | None = None
    sma50: float | None = None
    sma200: float | None = None
    support: float | None = None
    resistance: float | None = None


@dataclass
class SignalScore:
    direction: Direction
    confidence: float
    bullish: float
    bearish: float
    total_signals: int

    @property
    def bullish_score(self) -> float:
        return self.bullish / self.total_signals * 100 if self.total_signals else 0.0

    @property
    def bearish_score(self) -> float:
        return self.bearish / self.total_signals * 100 if self.total_signals else 0.0


# ---------------------------------------------------------------------------
# Voting
# ---------------------------------------------------------------------------

def _rsi_vote(rsi: float) -> tuple[float, float]:
    if rsi < 30:
        return 1.0, 0.0  # oversold
    if rsi > 70:
        return 0.0, 1.0  # overbought
    if rsi > 50:
        return 0.5, 0.0
    return 0.0, 0.5


def _macd_vote(macd: float) -> tuple[float, float]:
    return (1.0, 0.0) if macd > 0 else (0.0, 1.0)


def _moving_average_vote(price: float, sma50: float, sma200: float) -> tuple[float, float]:
    if price > sma50 > sma200:
        return 1.0, 0.0  # golden-cross regime
    if price < sma50 < sma200:
        return 0.0, 1.0  # death-cross regime
    if price > sma50:
        return 0.5, 0.0
    return 0.0, 0.5


def _range_vote(price: float, support: float, resistance: float) -> tuple[float, float]:
    price_range = resistance - support
    if price_range == 0:
        return 0.5, 0.0  # flat range counts as mid-range
    position = (price - support) / price_range
    if position > 0.7:
        return 0.0, 1.0  # near resistance
    if position < 0.3:
        return 1.0, 0.0  # near support
    return 0.5, 0.0


def score_indicators(snapshot: IndicatorSnapshot) -> SignalScore:
    """Combine indicator votes into a direction and confidence."""
    votes: list[tuple[float, float]] = []
    price = snapshot.current_price

    if snapshot.rsi is not None:
        votes.append(_rsi_vote(snapshot.rsi))
    if snapshot.macd is not None:
        votes.append(_macd_vote(snapshot.macd))
    if snapshot.sma50 is not None and snapshot.sma200 is not None:
        votes.append(_moving_average_vote(price, snapshot.sma50, snapshot.sma200))
    if snapshot.support is not None and snapshot.resistance is not None:
        votes.append(_range_vote(price, snapshot.support, snapshot.resistance))

    total = len(votes)
    if total == 0:
        raise InsufficientDataError("No technical indicator could be computed from the price history")

    bullish = sum(v[0] for v in votes)
    bearish = sum(v[1] for v in votes)
    bullish_score = bullish / total * 100
    bearish_score = bearish / total * 100

    if bullish_score > bearish_score + 10:
        direction = Direction.BULLISH
        confidence = min(95.0, max(55.0, bullish_score))
    elif bearish_score > bullish_score + 10:
        direction = Direction.BEARISH
        confidence = min(95.0, max(55.0, bearish_score))
    else:
        direction = Direction.NEUTRAL
        confidence = 50.0

    return SignalScore(
        direction=direction,
        confidence=round(confidence, 1),
        bullish=bullish,
        bearish=bearish,
        total_signals=total,
    )


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------

def analyze_price_history(
    symbol: str,
    exchange: Exchange,
    bars: list[PriceBar],
    current_price: float | None = None,
) -> DirectionReport:
    """Build a DirectionReport from daily bars (oldest first).

    ``current_price`` defaults to the last close when the quote had none.
    """
    if len(bars) < MIN_PREDICTION_BARS:
        raise InsufficientDataError(
            f"Insufficient historical data for technical analysis. "
            f"Need at least {MIN_PREDICTION_BARS} data points, got {len(bars)}."
        )

    closes = [bar.close for bar in bars]
    price = current_price if current_price else closes[-1]

    rsi = indicators.calculate_rsi(closes, 14)
    macd = indicators.calculate_macd(closes)
    averages = indicators.calculate_moving_averages(closes, (50, 200))
    levels = indicators.calculate_support_resistance(bars)

    snapshot = IndicatorSnapshot(
        current_price=price,
        rsi=rsi,
        macd=macd.macd,
        sma50=averages.sma.get(50),
        sma200=averages.sma.get(200),
        support=levels.support,
        resistance=levels.resistance,
    )
    score = score_indicators(snapshot)

    return DirectionReport(
        symbol=symbol.strip().upper(),
        exchange=exchange,
        direction=score.direction,
        confidence=score.confidence,
        indicators=IndicatorValues(
            rsi=rsi,
            macd=macd.macd,
            macd_signal=macd.signal,
            macd_histogram=macd.histogram,
            sma50=snapshot.sma50,
            sma200=snapshot.sma200,
            current_price=price,
        ),
        support=levels.support,
        resistance=levels.resistance,
        timestamp=utcnow(),
    )


async def predict_direction(
    symbol: str,
    exchange: Exchange,
    market_data: MarketDataClient,
    period: str = DEFAULT_HISTORY_PERIOD,
) -> DirectionReport:
    """Fetch quote + history and predict. Fetch failures propagate unchanged."""
    symbol = symbol.strip().upper()
    if not symbol:
        raise TradeValidationError("Stock symbol is required")

    logger.info(f"Predicting direction for {symbol} ({exchange.value})")
    quote, bars = await market_data.get_quote_with_history(symbol, exchange.value, period)
    report = analyze_price_history(symbol, exchange, bars, quote.price)
    logger.info(
        f"Prediction for {symbol}: {report.direction.value} "
        f"({report.confidence:.1f}% confidence, {len(bars)} bars)"
    )
    return report


async def predict_many(
    symbols: list[str],
    exchange: Exchange,
    market_data: MarketDataClient,
    period: str = DEFAULT_HISTORY_PERIOD,
) -> BulkPredictionReport:
    """Predict several symbols; per-symbol failures are collected, not raised."""
    if len(symbols) > MAX_BULK_SYMBOLS:
        raise TradeValidationError(f"Maximum {MAX_BULK_SYMBOLS} symbols allowed per request")

    cleaned = [s.strip().upper() for s in symbols if s.strip()]
    if not cleaned:
        raise TradeValidationError("Symbols array is required")

    results = await asyncio.gather(
        *(predict_direction(s, exchange, market_data, period) for s in cleaned),
        return_exceptions=True,
    )

    report = BulkPredictionReport()
    for symbol, result in zip(cleaned, results):
        if isinstance(result, JournalError):
            logger.warning(f"Bulk prediction failed for {symbol}: {result.message}")
            report.errors.append(PredictionFailure(symbol=symbol, error=result.message))
        elif isinstance(result, BaseException):
            raise result
        else:
            report.predictions.append(result)
    return report
