"""Tests for the P&L rule."""

from datetime import datetime, timezone

from trade_journal.models.trade import Trade, TradeStatus, TradeType
from trade_journal.services.pnl import apply_pnl_rule, compute_profit_loss, derive_status

ENTRY = datetime(2024, 3, 4, 9, 30, tzinfo=timezone.utc)
EXIT = datetime(2024, 3, 8, 15, 0, tzinfo=timezone.utc)


def _trade(**overrides) -> Trade:
    fields = dict(
        user_id=1,
        symbol="INFY",
        trade_type=TradeType.LONG,
        entry_price=100.0,
        exit_price=120.0,
        quantity=10,
        entry_date=ENTRY,
        exit_date=EXIT,
        fees=50.0,
    )
    fields.update(overrides)
    return Trade(**fields)


class TestComputeProfitLoss:
    def test_long(self):
        assert compute_profit_loss(TradeType.LONG, 100.0, 120.0, 10, 50.0) == 150.0

    def test_short(self):
        assert compute_profit_loss(TradeType.SHORT, 100.0, 80.0, 10, 20.0) == 180.0

    def test_short_losing(self):
        assert compute_profit_loss(TradeType.SHORT, 100.0, 110.0, 5) == -50.0

    def test_no_exit_price_is_zero(self):
        assert compute_profit_loss(TradeType.LONG, 100.0, None, 10, 25.0) == 0.0


class TestDeriveStatus:
    def test_closed_needs_price_and_date(self):
        assert derive_status(120.0, EXIT) == TradeStatus.CLOSED

    def test_exit_price_without_date_stays_open(self):
        assert derive_status(120.0, None) == TradeStatus.OPEN

    def test_exit_date_without_price_stays_open(self):
        assert derive_status(None, EXIT) == TradeStatus.OPEN

    def test_zero_exit_price_counts_as_present(self):
        assert derive_status(0.0, EXIT) == TradeStatus.CLOSED


class TestApplyPnlRule:
    def test_sets_derived_fields(self):
        trade = apply_pnl_rule(_trade())
        assert trade.profit_loss == 150.0
        assert trade.status == TradeStatus.CLOSED

    def test_exit_price_without_exit_date_stays_open(self):
        trade = apply_pnl_rule(_trade(exit_date=None))
        assert trade.status == TradeStatus.OPEN
        assert trade.profit_loss == 150.0

    def test_idempotent(self):
        trade = apply_pnl_rule(_trade(trade_type=TradeType.SHORT, exit_price=80.0, fees=20.0))
        first = (trade.profit_loss, trade.status)
        apply_pnl_rule(trade)
        assert (trade.profit_loss, trade.status) == first == (180.0, TradeStatus.CLOSED)

    def test_client_supplied_derived_values_are_overwritten(self):
        trade = _trade(exit_price=None, exit_date=None, profit_loss=999.0, status=TradeStatus.CLOSED)
        apply_pnl_rule(trade)
        assert trade.profit_loss == 0.0
        assert trade.status == TradeStatus.OPEN
