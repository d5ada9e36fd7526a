"""Tests for the Yahoo chart API client."""

import httpx
import pytest

from trade_journal.errors import NotFoundError, UpstreamError, UpstreamTimeoutError
from trade_journal.services.market_data import MarketDataClient, to_yahoo_symbol

BASE_URL = "https://chart.test/v8/finance/chart"


def _chart(timestamps, closes, meta=None):
    n = len(timestamps)
    return {
        "chart": {
            "result": [{
                "meta": meta or {"regularMarketPrice": 2950.5, "previousClose": 2900.0},
                "timestamp": timestamps,
                "indicators": {"quote": [{
                    "open": [c - 1 if c is not None else None for c in closes],
                    "high": [None] * n,
                    "low": [c - 2 if c is not None else None for c in closes],
                    "close": closes,
                    "volume": [1000] * n,
                }]},
            }],
            "error": None,
        }
    }


def _client(handler) -> MarketDataClient:
    transport = httpx.MockTransport(handler)
    return MarketDataClient(BASE_URL, timeout=5.0, client=httpx.AsyncClient(transport=transport))


def test_yahoo_symbols():
    assert to_yahoo_symbol(" reliance ", "NSE") == "RELIANCE.NS"
    assert to_yahoo_symbol("TCS", "BSE") == "TCS.BO"


class TestHistoricalBars:
    @pytest.mark.asyncio
    async def test_parses_and_orders_bars(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_chart([1704240000, 1704067200, 1704153600], [12.0, 10.0, None]))

        client = _client(handler)
        bars = await client.get_historical_bars("reliance", "NSE", "1y")
        await client.close()

        assert requests[0].url.path.endswith("/RELIANCE.NS")
        assert requests[0].url.params["range"] == "1y"
        assert requests[0].url.params["interval"] == "1d"
        assert [b.close for b in bars] == [10.0, 12.0]
        assert bars[0].timestamp < bars[1].timestamp
        assert bars[0].open == 9.0
        assert bars[0].high == 10.0  # missing high falls back to close
        assert bars[0].low == 8.0
        assert bars[0].volume == 1000

    @pytest.mark.asyncio
    async def test_invalid_period_falls_back(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["range"] = request.url.params["range"]
            return httpx.Response(200, json=_chart([1704067200], [10.0]))

        client = _client(handler)
        await client.get_historical_bars("TCS", "NSE", "10y")
        assert seen["range"] == "6mo"


class TestQuote:
    @pytest.mark.asyncio
    async def test_current_price(self):
        client = _client(lambda r: httpx.Response(200, json=_chart([1704067200], [10.0])))
        quote = await client.get_current_price("RELIANCE", "NSE")
        assert quote.symbol == "RELIANCE"
        assert quote.price == 2950.5
        assert quote.previous_close == 2900.0

    @pytest.mark.asyncio
    async def test_falls_back_to_previous_close(self):
        payload = _chart([1704067200], [10.0], meta={"previousClose": 1500.25})
        client = _client(lambda r: httpx.Response(200, json=payload))
        quote = await client.get_current_price("INFY", "BSE")
        assert quote.price == 1500.25

    @pytest.mark.asyncio
    async def test_quote_with_history(self):
        client = _client(lambda r: httpx.Response(200, json=_chart([1704067200, 1704153600], [10.0, 11.0])))
        quote, bars = await client.get_quote_with_history("TCS", "NSE", "3mo")
        assert quote.price == 2950.5
        assert len(bars) == 2


class TestErrors:
    @pytest.mark.asyncio
    async def test_unknown_symbol(self):
        client = _client(lambda r: httpx.Response(404, json={"chart": {"result": None}}))
        with pytest.raises(NotFoundError):
            await client.get_current_price("NOPE", "NSE")

    @pytest.mark.asyncio
    async def test_empty_result(self):
        client = _client(lambda r: httpx.Response(200, json={"chart": {"result": []}}))
        with pytest.raises(NotFoundError):
            await client.get_historical_bars("NOPE", "NSE")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError):
            await _client(handler).get_current_price("TCS", "NSE")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError):
            await _client(handler).get_current_price("TCS", "NSE")

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = _client(lambda r: httpx.Response(503, text="unavailable"))
        with pytest.raises(UpstreamError) as exc_info:
            await client.get_historical_bars("TCS", "NSE")
        assert "503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = _client(lambda r: httpx.Response(200, content=b"<html>"))
        with pytest.raises(UpstreamError):
            await client.get_current_price("TCS", "NSE")
