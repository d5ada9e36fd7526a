"""Stateless technical indicators over ordered price series (oldest first).

All functions are pure computation with no I/O. Insufficient input never
raises: scalar indicators return None and composite ones return a result
whose fields are None. Values are rounded to 2 decimals.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


def _round2(value: float) -> float:
    return round(float(value), 2)


# ---------------------------------------------------------------------------
# Scalar indicators
# ---------------------------------------------------------------------------

def calculate_rsi(prices: Sequence[float], period: int = 14) -> float | None:
    """RSI with Wilder's smoothing. None unless len(prices) >= period + 1."""
    values = np.asarray(prices, dtype=float)
    if period < 1 or len(values) < period + 1:
        return None

    deltas = np.diff(values)
    gains = np.maximum(deltas, 0.0)
    losses = np.maximum(-deltas, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return _round2(100.0 - 100.0 / (1.0 + rs))


def calculate_sma(prices: Sequence[float], period: int) -> float | None:
    """Mean of the last `period` values."""
    values = np.asarray(prices, dtype=float)
    if period < 1 or len(values) < period:
        return None
    return _round2(np.mean(values[-period:]))


def calculate_ema(prices: Sequence[float], period: int) -> float | None:
    """EMA seeded with the SMA of the first `period` values."""
    values = np.asarray(prices, dtype=float)
    if period < 1 or len(values) < period:
        return None

    ema = calculate_sma(values[:period], period)
    multiplier = 2.0 / (period + 1)
    for price in values[period:]:
        ema = (price - ema) * multiplier + ema
    return _round2(ema)


# ---------------------------------------------------------------------------
# Composite indicators
# ---------------------------------------------------------------------------

@dataclass
class MACDResult:
    macd: float | None = None
    signal: float | None = None
    histogram: float | None = None


@dataclass
class SupportResistance:
    support: float | None = None
    resistance: float | None = None


@dataclass
class MovingAverages:
    sma: dict[int, float]
    ema: dict[int, float]


def calculate_macd(prices: Sequence[float]) -> MACDResult:
    """MACD = EMA(12) - EMA(26).

    The signal line is approximated as ``macd * 0.8`` rather than an EMA(9)
    of the MACD series.
    """
    if len(prices) < 26:
        return MACDResult()

    ema12 = calculate_ema(prices, 12)
    ema26 = calculate_ema(prices, 26)
    if ema12 is None or ema26 is None:
        return MACDResult()

    macd = ema12 - ema26
    signal = macd * 0.8
    return MACDResult(
        macd=_round2(macd),
        signal=_round2(signal),
        histogram=_round2(macd - signal),
    )


def calculate_moving_averages(
    prices: Sequence[float],
    periods: Sequence[int] = (20, 50, 200),
) -> MovingAverages:
    """SMA and EMA for every period the series is long enough for."""
    result = MovingAverages(sma={}, ema={})
    for period in periods:
        if len(prices) >= period:
            result.sma[period] = calculate_sma(prices, period)
            result.ema[period] = calculate_ema(prices, period)
    return result


def _bar_value(bar, field: str) -> float | None:
    """High/low of a bar, falling back to its close; plain numbers pass through."""
    if isinstance(bar, (int, float)):
        return float(bar)
    value = getattr(bar, field, None) or getattr(bar, "close", None)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return float(value)


def calculate_support_resistance(bars: Sequence) -> SupportResistance:
    """Support/resistance from the most recent 20% of bars (needs >= 20 bars)."""
    if len(bars) < 20:
        return SupportResistance()

    highs = [v for v in (_bar_value(b, "high") for b in bars) if v is not None]
    lows = [v for v in (_bar_value(b, "low") for b in bars) if v is not None]
    if not highs or not lows:
        return SupportResistance()

    recent_highs = highs[-max(1, math.floor(len(highs) * 0.2)):]
    recent_lows = lows[-max(1, math.floor(len(lows) * 0.2)):]

    return SupportResistance(
        support=_round2(min(recent_lows)),
        resistance=_round2(max(recent_highs)),
    )
