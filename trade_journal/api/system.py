"""System API: health check and AI summarizer status."""

from fastapi import APIRouter, Depends

from trade_journal.api.deps import get_summarizer
from trade_journal.services.summarizer import TradeSummarizer

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/ai-status")
def ai_status(summarizer: TradeSummarizer = Depends(get_summarizer)):
    """Whether AI trade summaries are available."""
    configured = summarizer.is_configured
    return {
        "configured": configured,
        "model": summarizer.model if configured else None,
        "message": (
            "AI Summarizer is enabled" if configured
            else "AI Summarizer is disabled. Set TJ_ANTHROPIC_API_KEY to enable it."
        ),
    }
