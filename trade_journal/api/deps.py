"""Shared API dependencies."""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from trade_journal.config import settings
from trade_journal.database import get_session
from trade_journal.errors import UnauthorizedError
from trade_journal.models.user import User
from trade_journal.services.auth import decode_access_token
from trade_journal.services.market_data import MarketDataClient
from trade_journal.services.summarizer import TradeSummarizer

bearer_scheme = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Validate JWT and return the current user."""
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise UnauthorizedError("Invalid or expired token")
    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


def get_market_data(request: Request) -> MarketDataClient:
    return request.app.state.market_data


def get_summarizer(request: Request) -> TradeSummarizer:
    return request.app.state.summarizer


def get_history_period() -> str:
    return settings.history_period
