"""Persistence for trade records.

Every query is scoped to the owning user; a trade id that belongs to someone
else is indistinguishable from one that does not exist. The P&L rule runs in
the same function as the commit it precedes.
"""

import logging
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlmodel import Session, select

from trade_journal.errors import NotFoundError, TradeValidationError
from trade_journal.models.trade import Trade
from trade_journal.schemas.trade import TradeCreate, TradeFilter, TradeUpdate
from trade_journal.services.pnl import apply_pnl_rule

logger = logging.getLogger(__name__)


def find_trades_by_owner(
    session: Session,
    owner_id: int,
    filters: TradeFilter | None = None,
) -> list[Trade]:
    """All of the owner's trades, newest entry first."""
    stmt = select(Trade).where(Trade.user_id == owner_id)
    if filters is not None:
        if filters.status is not None:
            stmt = stmt.where(Trade.status == filters.status)
        if filters.symbol:
            stmt = stmt.where(Trade.symbol == filters.symbol.strip().upper())
        if filters.exchange is not None:
            stmt = stmt.where(Trade.exchange == filters.exchange)
        if filters.date_from is not None:
            stmt = stmt.where(Trade.entry_date >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(Trade.entry_date <= filters.date_to)
    stmt = stmt.order_by(Trade.entry_date.desc())
    return list(session.exec(stmt).all())


def get_trade(session: Session, owner_id: int, trade_id: int) -> Trade:
    trade = session.get(Trade, trade_id)
    if trade is None or trade.user_id != owner_id:
        raise NotFoundError("Trade not found")
    return trade


def _save(session: Session, trade: Trade) -> Trade:
    apply_pnl_rule(trade)
    session.add(trade)
    session.commit()
    session.refresh(trade)
    return trade


def create_trade(session: Session, owner_id: int, data: TradeCreate) -> Trade:
    trade = Trade(user_id=owner_id, **data.model_dump())
    trade = _save(session, trade)
    logger.info(f"Created trade {trade.id} ({trade.symbol}) for user {owner_id}")
    return trade


def update_trade(
    session: Session,
    owner_id: int,
    trade_id: int,
    data: TradeUpdate,
) -> Trade:
    trade = get_trade(session, owner_id, trade_id)
    update_data = data.model_dump(exclude_unset=True)

    # Validate the merged record so a partial update cannot bypass cross-field rules.
    current = trade.model_dump(include=set(TradeCreate.model_fields))
    merged = {**current, **update_data}
    try:
        TradeCreate.model_validate(merged)
    except ValidationError as e:
        raise TradeValidationError(str(e)) from e

    for key, value in update_data.items():
        setattr(trade, key, value)
    trade.updated_at = datetime.now(timezone.utc)

    trade = _save(session, trade)
    logger.info(f"Updated trade {trade.id} for user {owner_id} (status={trade.status.value})")
    return trade


def delete_trade(session: Session, owner_id: int, trade_id: int):
    trade = get_trade(session, owner_id, trade_id)
    session.delete(trade)
    session.commit()
    logger.info(f"Deleted trade {trade_id} for user {owner_id}")


def save_ai_analysis(session: Session, trade: Trade, analysis_json: str) -> Trade:
    """Cache the summarizer output on the record."""
    trade.ai_analysis = analysis_json
    trade.updated_at = datetime.now(timezone.utc)
    return _save(session, trade)
