"""Profit/loss rule for trade records.

All functions are pure computation with no I/O. ``apply_pnl_rule`` is called by
the trade store immediately before every create/update commit, so derived
fields are never persisted out of sync with the inputs that produced them.
"""

from dataclasses import dataclass
from datetime import datetime

from trade_journal.models.trade import Trade, TradeStatus, TradeType


@dataclass(frozen=True)
class PnLResult:
    profit_loss: float
    status: TradeStatus


def compute_profit_loss(
    trade_type: TradeType,
    entry_price: float,
    exit_price: float | None,
    quantity: int,
    fees: float = 0.0,
) -> float:
    """Realized P&L after fees; 0 while the position has no exit price."""
    if exit_price is None:
        return 0.0
    fees = fees or 0.0
    if trade_type == TradeType.LONG:
        return (exit_price - entry_price) * quantity - fees
    return (entry_price - exit_price) * quantity - fees


def derive_status(exit_price: float | None, exit_date: datetime | None) -> TradeStatus:
    """A trade is closed only once both the exit price and exit date are known."""
    if exit_price is not None and exit_date is not None:
        return TradeStatus.CLOSED
    return TradeStatus.OPEN


def evaluate_pnl(trade: Trade) -> PnLResult:
    return PnLResult(
        profit_loss=compute_profit_loss(
            trade.trade_type,
            trade.entry_price,
            trade.exit_price,
            trade.quantity,
            trade.fees,
        ),
        status=derive_status(trade.exit_price, trade.exit_date),
    )


def apply_pnl_rule(trade: Trade) -> Trade:
    """Recompute ``profit_loss`` and ``status`` from the trade's inputs.

    Idempotent: applying it twice yields the same derived values.
    """
    result = evaluate_pnl(trade)
    trade.profit_loss = result.profit_loss
    trade.status = result.status
    return trade
