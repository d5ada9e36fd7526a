"""Pydantic schemas for the Trade API.

Fields go out in camelCase (``entryPrice``, ``profitLoss``) and are accepted
in either camelCase or snake_case. ``profit_loss`` and ``status`` are
derived by the P&L rule and are never accepted from the client.
"""

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator, model_validator

from trade_journal.models.trade import Emotion, Exchange, TradeStatus, TradeType
from trade_journal.schemas.common import CamelModel
from trade_journal.utils.timeutils import as_utc


def _clean_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    tags: list[str] = []
    for tag in value:
        text = tag.strip()
        if text and text not in tags:
            tags.append(text)
    return tags


def _check_exit_after_entry(entry: datetime | None, exit_: datetime | None):
    if entry is not None and exit_ is not None and as_utc(exit_) < as_utc(entry):
        raise ValueError("exitDate must not be before entryDate")


class TradeCreate(CamelModel):
    symbol: str = Field(min_length=1, max_length=20)
    exchange: Exchange = Exchange.NSE
    trade_type: TradeType
    entry_price: float = Field(ge=0)
    exit_price: float | None = Field(default=None, ge=0)
    quantity: int = Field(ge=1)
    entry_date: datetime
    exit_date: datetime | None = None
    fees: float = Field(default=0.0, ge=0)
    notes: str = Field(default="", max_length=5000)
    tags: list[str] = Field(default_factory=list)
    emotion: Emotion = Emotion.UNSET

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("notes")
    @classmethod
    def _trim_notes(cls, value: str) -> str:
        return value.strip()

    @field_validator("tags")
    @classmethod
    def _trim_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)

    @model_validator(mode="after")
    def _validate_dates(self):
        _check_exit_after_entry(self.entry_date, self.exit_date)
        return self


class TradeUpdate(CamelModel):
    symbol: str | None = Field(default=None, min_length=1, max_length=20)
    exchange: Exchange | None = None
    trade_type: TradeType | None = None
    entry_price: float | None = Field(default=None, ge=0)
    exit_price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=1)
    entry_date: datetime | None = None
    exit_date: datetime | None = None
    fees: float | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=5000)
    tags: list[str] | None = None
    emotion: Emotion | None = None

    @field_validator("symbol")
    @classmethod
    def _normalize_optional_symbol(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("notes")
    @classmethod
    def _trim_optional_notes(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator("tags")
    @classmethod
    def _trim_optional_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)

    @model_validator(mode="after")
    def _validate_optional_dates(self):
        _check_exit_after_entry(self.entry_date, self.exit_date)
        return self


class TradeFilter(CamelModel):
    status: TradeStatus | None = None
    symbol: str | None = None
    exchange: Exchange | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class TradeRead(CamelModel):
    id: int
    user_id: int
    symbol: str
    exchange: Exchange
    trade_type: TradeType
    entry_price: float
    exit_price: float | None
    quantity: int
    entry_date: datetime
    exit_date: datetime | None
    fees: float
    profit_loss: float
    status: TradeStatus
    notes: str
    tags: list[str]
    emotion: Emotion
    ai_analysis: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
