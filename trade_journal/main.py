"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trade_journal.config import settings
from trade_journal.database import create_db_and_tables
from trade_journal.errors import JournalError
from trade_journal.services.market_data import MarketDataClient
from trade_journal.services.summarizer import TradeSummarizer
from trade_journal.utils.logging import setup_logging
from trade_journal.api import auth, market, system, trades

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()

    app.state.market_data = MarketDataClient(
        base_url=settings.market_data_base_url,
        timeout=settings.market_data_timeout,
    )
    app.state.summarizer = TradeSummarizer(
        api_key=settings.anthropic_api_key,
        model=settings.ai_model,
        max_tokens=settings.ai_max_tokens,
        timeout=settings.ai_timeout,
    )
    if app.state.summarizer.is_configured:
        logger.info(f"AI Summarizer enabled (model {settings.ai_model})")
    else:
        logger.warning("TJ_ANTHROPIC_API_KEY not set, AI Summarizer disabled")

    yield

    await app.state.market_data.close()
    await app.state.summarizer.close()


app = FastAPI(
    title="Trade Journal",
    description="Trading journal for NSE/BSE equities with performance, psychology and AI analysis",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Mount routers
app.include_router(auth.router)
app.include_router(trades.router)
app.include_router(market.router)
app.include_router(system.router)
