"""Trade journal API: CRUD, summary stats, AI analysis and analytics."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from trade_journal.database import get_session
from trade_journal.models.trade import Exchange, TradeStatus
from trade_journal.models.user import User
from trade_journal.api.deps import get_current_user, get_summarizer
from trade_journal.schemas.analytics import (
    PerformanceReport,
    PsychologyReport,
    TradeAnalysis,
    TradeSummaryStats,
)
from trade_journal.schemas.common import CamelModel
from trade_journal.schemas.trade import TradeCreate, TradeFilter, TradeRead, TradeUpdate
from trade_journal.services import trade_store
from trade_journal.services.performance import analyze_performance, compute_trade_summary
from trade_journal.services.psychology import analyze_psychology
from trade_journal.services.summarizer import TradeSummarizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trades", tags=["trades"], dependencies=[Depends(get_current_user)])


class TradeAnalysisResponse(CamelModel):
    trade: TradeRead
    analysis: TradeAnalysis


# ---------------------------------------------------------------------------
# Aggregates (declared before /{trade_id})
# ---------------------------------------------------------------------------

@router.get("/stats/summary", response_model=TradeSummaryStats)
def trade_summary(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trades = trade_store.find_trades_by_owner(session, user.id)
    return compute_trade_summary(trades)


@router.get("/psychology/patterns", response_model=PsychologyReport)
def psychology_patterns(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trades = trade_store.find_trades_by_owner(session, user.id)
    return analyze_psychology(trades)


@router.get("/analytics/insights", response_model=PerformanceReport)
def performance_insights(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trades = trade_store.find_trades_by_owner(session, user.id)
    return analyze_performance(trades)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get("", response_model=list[TradeRead])
def list_trades(
    status_filter: TradeStatus | None = Query(None, alias="status"),
    symbol: str | None = None,
    exchange: Exchange | None = None,
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    filters = TradeFilter(
        status=status_filter,
        symbol=symbol,
        exchange=exchange,
        date_from=date_from,
        date_to=date_to,
    )
    return trade_store.find_trades_by_owner(session, user.id, filters)


@router.post("", response_model=TradeRead, status_code=status.HTTP_201_CREATED)
def create_trade(
    body: TradeCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return trade_store.create_trade(session, user.id, body)


@router.get("/{trade_id}", response_model=TradeRead)
def get_trade(
    trade_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return trade_store.get_trade(session, user.id, trade_id)


@router.put("/{trade_id}", response_model=TradeRead)
def update_trade(
    trade_id: int,
    body: TradeUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return trade_store.update_trade(session, user.id, trade_id, body)


@router.delete("/{trade_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trade(
    trade_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trade_store.delete_trade(session, user.id, trade_id)


@router.post("/{trade_id}/analyze", response_model=TradeAnalysisResponse)
async def analyze_trade(
    trade_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    summarizer: TradeSummarizer = Depends(get_summarizer),
):
    """Run the AI summarizer over one trade and cache the result on it."""
    trade = trade_store.get_trade(session, user.id, trade_id)
    history = trade_store.find_trades_by_owner(session, user.id)
    analysis = await summarizer.summarize(trade, history)
    trade = trade_store.save_ai_analysis(session, trade, analysis.model_dump_json())
    logger.info(f"Stored AI analysis for trade {trade_id}")
    return TradeAnalysisResponse(trade=TradeRead.model_validate(trade), analysis=analysis)
