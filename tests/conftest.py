"""Shared fixtures: trade factory and an in-memory database."""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

import trade_journal.models  # noqa: F401
from trade_journal.models.trade import Emotion, Exchange, Trade, TradeStatus, TradeType

BASE_DATE = datetime(2024, 1, 1, 9, 15, tzinfo=timezone.utc)


@pytest.fixture
def make_trade():
    """Build detached Trade rows with derived fields set explicitly."""
    ids = count(1)

    def _make(
        pnl: float | None = 0.0,
        symbol: str = "RELIANCE",
        status: TradeStatus = TradeStatus.CLOSED,
        entry_date: datetime | None = None,
        exit_date: datetime | None = None,
        days: int = 0,
        trade_type: TradeType = TradeType.LONG,
        exchange: Exchange = Exchange.NSE,
        entry_price: float = 100.0,
        quantity: int = 10,
        tags: list[str] | None = None,
        emotion: Emotion = Emotion.UNSET,
    ) -> Trade:
        entry = entry_date or BASE_DATE + timedelta(days=days)
        if exit_date is None and status == TradeStatus.CLOSED:
            exit_date = entry + timedelta(hours=5)
        return Trade(
            id=next(ids),
            user_id=1,
            symbol=symbol,
            exchange=exchange,
            trade_type=trade_type,
            entry_price=entry_price,
            exit_price=entry_price if status == TradeStatus.CLOSED else None,
            quantity=quantity,
            entry_date=entry,
            exit_date=exit_date,
            profit_loss=pnl,
            status=status,
            tags=tags or [],
            emotion=emotion,
        )

    return _make


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session
