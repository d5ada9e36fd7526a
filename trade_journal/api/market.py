"""Market API: technical-indicator direction predictions for NSE/BSE stocks."""

from fastapi import APIRouter, Depends

from trade_journal.api.deps import get_current_user, get_history_period, get_market_data
from trade_journal.models.trade import Exchange
from trade_journal.schemas.market import BulkPredictionReport, BulkPredictRequest, DirectionReport
from trade_journal.services.market_data import MarketDataClient
from trade_journal.services.predictor import predict_direction, predict_many

router = APIRouter(prefix="/api/market", tags=["market"], dependencies=[Depends(get_current_user)])


@router.get("/predict/{symbol}", response_model=DirectionReport)
async def predict_symbol(
    symbol: str,
    exchange: Exchange = Exchange.NSE,
    market_data: MarketDataClient = Depends(get_market_data),
    period: str = Depends(get_history_period),
):
    """Predict the short-term direction of one stock."""
    return await predict_direction(symbol, exchange, market_data, period)


@router.post("/predict/bulk", response_model=BulkPredictionReport)
async def predict_bulk(
    body: BulkPredictRequest,
    market_data: MarketDataClient = Depends(get_market_data),
    period: str = Depends(get_history_period),
):
    """Predict up to ten stocks at once; failures are reported per symbol."""
    return await predict_many(body.symbols, body.exchange, market_data, period)
