"""Market data fetching for NSE/BSE stocks.

Quotes and daily candles come from the Yahoo Finance chart API. Unknown
symbols raise NotFoundError, a slow upstream raises UpstreamTimeoutError,
and anything else raises UpstreamError; failures are never turned into
empty data.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx
import pandas as pd

from trade_journal.errors import NotFoundError, UpstreamError, UpstreamTimeoutError
from trade_journal.utils.constants import (
    DEFAULT_HISTORY_PERIOD,
    VALID_HISTORY_PERIODS,
    YAHOO_SUFFIX,
)

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": "Mozilla/5.0"}


@dataclass
class PriceBar:
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


@dataclass
class Quote:
    symbol: str
    exchange: str
    price: float
    previous_close: float | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def to_yahoo_symbol(symbol: str, exchange: str = "NSE") -> str:
    """RELIANCE on NSE -> RELIANCE.NS, on BSE -> RELIANCE.BO."""
    clean = symbol.strip().upper()
    return f"{clean}{YAHOO_SUFFIX.get(exchange, YAHOO_SUFFIX['NSE'])}"


def _round_or_none(value) -> float | None:
    if value is None:
        return None
    return round(float(value), 2)


class MarketDataClient:
    """Async client for the Yahoo Finance chart endpoint.

    Built once at startup from settings and injected into request handlers.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=_HEADERS)

    async def close(self):
        await self._client.aclose()

    async def _fetch_chart(self, symbol: str, exchange: str, range_: str) -> dict:
        yahoo_symbol = to_yahoo_symbol(symbol, exchange)
        url = f"{self.base_url}/{yahoo_symbol}"
        try:
            response = await self._client.get(
                url,
                params={"interval": "1d", "range": range_},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"Market data timeout for {yahoo_symbol}: {e}")
            raise UpstreamTimeoutError(
                f"Market data request for {symbol} timed out. Please try again."
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Market data request failed for {yahoo_symbol}: {e}")
            raise UpstreamError(f"Failed to fetch market data: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(
                f"Stock {symbol} not found on {exchange}. Please check the symbol and exchange."
            )
        if response.status_code >= 400:
            logger.error(f"Market data HTTP {response.status_code} for {yahoo_symbol}")
            raise UpstreamError(f"Market data provider returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Market data provider returned invalid JSON") from e

        results = (payload.get("chart") or {}).get("result") or []
        if not results:
            raise NotFoundError(f"No data found for {symbol} on {exchange}")
        return results[0]

    async def get_current_price(self, symbol: str, exchange: str = "NSE") -> Quote:
        result = await self._fetch_chart(symbol, exchange, "1d")
        quote = _parse_quote(result, symbol, exchange)
        logger.info(f"Quote for {quote.symbol} ({exchange}): {quote.price}")
        return quote

    async def get_historical_bars(
        self,
        symbol: str,
        exchange: str = "NSE",
        period: str = DEFAULT_HISTORY_PERIOD,
    ) -> list[PriceBar]:
        """Daily bars ordered oldest first."""
        range_ = period if period in VALID_HISTORY_PERIODS else DEFAULT_HISTORY_PERIOD
        result = await self._fetch_chart(symbol, exchange, range_)
        bars = _parse_bars(result)
        logger.info(f"Fetched {len(bars)} daily bars for {symbol.upper()} ({exchange}, {range_})")
        return bars

    async def get_quote_with_history(
        self,
        symbol: str,
        exchange: str = "NSE",
        period: str = DEFAULT_HISTORY_PERIOD,
    ) -> tuple[Quote, list[PriceBar]]:
        """Fetch the current quote and the history concurrently."""
        quote, bars = await asyncio.gather(
            self.get_current_price(symbol, exchange),
            self.get_historical_bars(symbol, exchange, period),
        )
        return quote, bars


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_quote(result: dict, symbol: str, exchange: str) -> Quote:
    meta = result.get("meta") or {}
    price = meta.get("regularMarketPrice") or meta.get("previousClose") or 0.0
    return Quote(
        symbol=symbol.strip().upper(),
        exchange=exchange,
        price=round(float(price), 2),
        previous_close=_round_or_none(meta.get("previousClose")),
        open=_round_or_none(meta.get("regularMarketOpen")),
        high=_round_or_none(meta.get("regularMarketDayHigh")),
        low=_round_or_none(meta.get("regularMarketDayLow")),
        volume=meta.get("regularMarketVolume"),
    )


def _parse_bars(result: dict) -> list[PriceBar]:
    """Parse a chart result into PriceBars, dropping candles without a close.

    The result carries parallel arrays:
        {"timestamp": [1704067200, ...],
         "indicators": {"quote": [{"open": [...], "high": [...], "low": [...],
                                   "close": [...], "volume": [...]}]}}
    Missing open/high/low fall back to the close.
    """
    timestamps = result.get("timestamp") or []
    quotes = (result.get("indicators") or {}).get("quote") or [{}]
    quote = quotes[0] or {}
    if not timestamps:
        return []

    n = len(timestamps)

    def column(name: str) -> list:
        values = list(quote.get(name) or [])
        return (values + [None] * n)[:n]

    df = pd.DataFrame({
        "t": timestamps,
        "open": column("open"),
        "high": column("high"),
        "low": column("low"),
        "close": column("close"),
        "volume": column("volume"),
    })
    for col in ("open", "high", "low", "close", "volume"):
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df = df.dropna(subset=["close"])
    if df.empty:
        return []

    for col in ("open", "high", "low"):
        df[col] = df[col].fillna(df["close"])
    df["volume"] = df["volume"].fillna(0)
    df["t"] = pd.to_datetime(df["t"], unit="s", utc=True)
    df = df.sort_values("t")

    return [
        PriceBar(
            timestamp=row.t.to_pydatetime(),
            open=round(float(row.open), 2),
            high=round(float(row.high), 2),
            low=round(float(row.low), 2),
            close=round(float(row.close), 2),
            volume=int(row.volume),
        )
        for row in df.itertuples(index=False)
    ]
