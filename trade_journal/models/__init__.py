"""Database models."""

from trade_journal.models.trade import Trade, Exchange, TradeType, TradeStatus, Emotion
from trade_journal.models.user import User

__all__ = [
    "Trade",
    "Exchange",
    "TradeType",
    "TradeStatus",
    "Emotion",
    "User",
]
