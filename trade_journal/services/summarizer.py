"""AI trade summaries via the Anthropic Messages API.

The model is asked for a JSON object; replies that cannot be parsed degrade
to a fallback analysis built from the raw text. Transport failures are not
masked: timeouts raise UpstreamTimeoutError, other API errors UpstreamError.
"""

import json
import logging
import re
import time
from datetime import datetime
from typing import Sequence

import anthropic

from trade_journal.errors import ServiceUnavailableError, UpstreamError, UpstreamTimeoutError
from trade_journal.models.trade import Trade, TradeStatus
from trade_journal.schemas.analytics import TradeAnalysis
from trade_journal.utils.timeutils import as_utc

logger = logging.getLogger(__name__)

MAX_SIMILAR_TRADES = 5
FALLBACK_SUMMARY = "Analysis generated successfully. Please review the trade details."
FALLBACK_INSIGHTS = "The AI analysis encountered a formatting issue. Please review your trade manually."

_FENCE_RE = re.compile(r"```(?:json)?\n?")
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

_RESPONSE_FORMAT = """{
  "summary": "A 2-3 sentence summary of this trade analyzing its performance, entry/exit timing, and key outcomes.",
  "patterns": ["Trading or behavioral patterns identified, recurring strategies or mistakes"],
  "strengths": ["What went well, good decision-making or execution worth replicating"],
  "weaknesses": ["Areas to improve, mistakes or missed opportunities to avoid"],
  "insights": "A paragraph (3-4 sentences) with actionable, specific recommendations for similar future trades."
}"""


def _format_date(value: datetime | None, default: str) -> str:
    if value is None:
        return default
    d = as_utc(value)
    return f"{d.day}/{d.month}/{d.year}"


def similar_trades(trade: Trade, history: Sequence[Trade]) -> list[dict]:
    """Up to five other trades in the same symbol or direction, newest first."""
    rows = []
    for other in history:
        if other.id == trade.id:
            continue
        if other.symbol != trade.symbol and other.trade_type != trade.trade_type:
            continue
        rows.append({
            "symbol": other.symbol,
            "tradeType": other.trade_type.value,
            "profitLoss": other.profit_loss or 0,
            "status": other.status.value,
        })
        if len(rows) == MAX_SIMILAR_TRADES:
            break
    return rows


def build_prompt(trade: Trade, history: Sequence[Trade]) -> str:
    closed = [t for t in history if t.status == TradeStatus.CLOSED]
    wins = sum(1 for t in closed if (t.profit_loss or 0) > 0)
    win_rate = f"{wins / len(closed) * 100:.1f}" if closed else "0"
    total_pnl = sum(t.profit_loss or 0 for t in closed)
    similar = similar_trades(trade, history)

    if trade.status == TradeStatus.CLOSED:
        profit_loss = f"₹{trade.profit_loss:.2f}"
    else:
        profit_loss = "Not calculated"

    return f"""You are an expert Indian stock market trading analyst. Analyze the following trade and provide comprehensive insights.

TRADE DETAILS:
- Symbol: {trade.symbol}
- Exchange: {trade.exchange.value}
- Trade Type: {trade.trade_type.value.upper()}
- Entry Price: ₹{trade.entry_price}
- Exit Price: {trade.exit_price if trade.exit_price is not None else "Not exited yet"}
- Quantity: {trade.quantity} shares
- Entry Date: {_format_date(trade.entry_date, "Unknown")}
- Exit Date: {_format_date(trade.exit_date, "Still open")}
- Profit/Loss: {profit_loss}
- Fees: ₹{trade.fees or 0}
- Emotion: {trade.emotion.value if trade.emotion else "Not specified"}
- Status: {trade.status.value.upper()}
- Tags: {", ".join(trade.tags or []) or "None"}
- Notes: {trade.notes or "No notes"}

USER'S TRADING STATISTICS:
- Total Closed Trades: {len(closed)}
- Win Rate: {win_rate}%
- Total P&L: ₹{total_pnl:.2f}
- Similar Recent Trades: {json.dumps(similar, indent=2) if similar else "None"}

Respond ONLY with a JSON object in this format:
{_RESPONSE_FORMAT}

Guidelines:
- Focus on Indian stock market context (NSE/BSE)
- Be constructive and actionable
- If the trade is still open, focus on entry analysis and management
- Compare with the user's historical performance when relevant
- Consider the emotion and psychological aspects
- Use Indian Rupee (₹) for all monetary values"""


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]


def parse_analysis(text: str) -> TradeAnalysis:
    """Turn a model reply into a TradeAnalysis, filling gaps with defaults."""
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    match = _OBJECT_RE.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except ValueError:
        data = None

    if not isinstance(data, dict):
        logger.error(f"Could not parse AI response as JSON (first 200 chars): {text[:200]!r}")
        return TradeAnalysis(
            summary=text[:300] or FALLBACK_SUMMARY,
            insights=FALLBACK_INSIGHTS,
        )

    defaults = TradeAnalysis()
    return TradeAnalysis(
        summary=str(data.get("summary") or defaults.summary),
        patterns=_string_list(data.get("patterns")),
        strengths=_string_list(data.get("strengths")),
        weaknesses=_string_list(data.get("weaknesses")),
        insights=str(data.get("insights") or defaults.insights),
    )


class TradeSummarizer:
    """Wraps an AsyncAnthropic client. Built once at startup and injected."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        timeout: float = 30.0,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        if client is None and api_key:
            client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def close(self):
        if self._client is not None:
            await self._client.close()

    async def summarize(self, trade: Trade, history: Sequence[Trade]) -> TradeAnalysis:
        if not self.is_configured:
            raise ServiceUnavailableError(
                "AI Summarizer is not configured. Set TJ_ANTHROPIC_API_KEY to enable it."
            )

        prompt = build_prompt(trade, history)
        logger.info(f"Requesting AI analysis for trade {trade.id} ({trade.symbol}), prompt {len(prompt)} chars")
        start = time.monotonic()
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError as e:
            logger.warning(f"AI analysis timed out for trade {trade.id}")
            raise UpstreamTimeoutError("AI analysis timed out. Please try again.") from e
        except anthropic.APIError as e:
            logger.error(f"AI analysis failed for trade {trade.id}: {e}")
            raise UpstreamError(f"AI analysis failed: {e}") from e

        text = response.content[0].text if response.content else ""
        analysis = parse_analysis(text)
        logger.info(f"AI analysis for trade {trade.id} completed in {time.monotonic() - start:.2f}s")
        return analysis
