"""Pydantic schemas for the market prediction API (camelCase on the wire)."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from trade_journal.models.trade import Exchange
from trade_journal.schemas.common import CamelModel


class Direction(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class IndicatorValues(CamelModel):
    rsi: float | None = None
    macd: float | None = None
    macd_signal: float | None = None
    macd_histogram: float | None = None
    sma50: float | None = None
    sma200: float | None = None
    current_price: float


class DirectionReport(CamelModel):
    symbol: str
    exchange: Exchange
    direction: Direction
    confidence: float
    indicators: IndicatorValues
    support: float | None = None
    resistance: float | None = None
    timestamp: datetime


class BulkPredictRequest(CamelModel):
    symbols: list[str] = Field(min_length=1)
    exchange: Exchange = Exchange.NSE


class PredictionFailure(CamelModel):
    symbol: str
    error: str


class BulkPredictionReport(CamelModel):
    predictions: list[DirectionReport] = Field(default_factory=list)
    errors: list[PredictionFailure] = Field(default_factory=list)
