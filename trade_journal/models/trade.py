"""Trade model: one journal entry, owned by a single user."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON
from sqlmodel import SQLModel, Field, Column


class Exchange(str, Enum):
    NSE = "NSE"
    BSE = "BSE"


class TradeType(str, Enum):
    LONG = "long"
    SHORT = "short"


class TradeStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class Emotion(str, Enum):
    FEAR = "fear"
    GREED = "greed"
    CONFIDENCE = "confidence"
    ANXIETY = "anxiety"
    CALM = "calm"
    UNSET = ""


# Emotions that count towards the distribution, in display order
TRACKED_EMOTIONS = [e for e in Emotion if e is not Emotion.UNSET]


class Trade(SQLModel, table=True):
    __tablename__ = "trade"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    symbol: str = Field(index=True)
    exchange: Exchange = Exchange.NSE
    trade_type: TradeType
    entry_price: float
    exit_price: float | None = None
    quantity: int
    entry_date: datetime = Field(index=True)
    exit_date: datetime | None = None
    fees: float = 0.0

    # Derived by services.pnl.apply_pnl_rule before every write
    profit_loss: float = 0.0
    status: TradeStatus = Field(default=TradeStatus.OPEN, index=True)

    notes: str = ""
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    emotion: Emotion = Emotion.UNSET
    ai_analysis: str | None = None  # JSON text written back by the summarizer

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
