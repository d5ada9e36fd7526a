"""Trading performance analytics over a user's trade records.

All functions are pure computation with no I/O. Most metrics only look at
closed trades; an empty portfolio yields a zeroed report rather than an
error. Monetary outputs are rounded to 2 decimals.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from trade_journal.models.trade import Exchange, Trade, TradeStatus, TradeType
from trade_journal.schemas.analytics import (
    EquityPoint,
    InsightType,
    MonthlyPerformance,
    PerformanceInsight,
    PerformanceMetrics,
    PerformanceReport,
    Priority,
    StockPnL,
    StrategyPerformance,
    Strength,
    SummaryCounts,
    SymbolPerformance,
    TradeHighlight,
    TradeSummaryStats,
    TypeBreakdown,
    Weakness,
    WeeklyPerformance,
    WinLossDistribution,
)
from trade_journal.utils.constants import (
    MIN_HIGHLIGHT_TRADES,
    MIN_STRATEGY_TRADES,
    RECENT_WEEKS,
    TOP_N,
    UNTAGGED_STRATEGY,
)
from trade_journal.utils.timeutils import as_utc

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def closed_trades(trades: Sequence[Trade]) -> list[Trade]:
    return [
        t for t in trades
        if t.status == TradeStatus.CLOSED and t.profit_loss is not None
    ]


def _pct(part: int, whole: int, digits: int = 2) -> float:
    return round(part / whole * 100, digits) if whole else 0.0


def _money(value: float) -> str:
    return f"₹{value:,.2f}"


def _format_factor(value: float) -> str:
    return "∞" if math.isinf(value) else f"{value}"


@dataclass
class _Aggregate:
    total_pnl: float = 0.0
    count: int = 0
    wins: int = 0
    losses: int = 0

    def add(self, pnl: float):
        self.total_pnl += pnl
        self.count += 1
        if pnl > 0:
            self.wins += 1
        elif pnl < 0:
            self.losses += 1

    @property
    def avg_pnl(self) -> float:
        return round(self.total_pnl / self.count, 2) if self.count else 0.0

    @property
    def win_rate(self) -> float:
        return _pct(self.wins, self.count)


def _month_key(trade: Trade) -> str:
    exit_date = as_utc(trade.exit_date)
    return f"{exit_date.year}-{exit_date.month:02d}"


def _week_key(trade: Trade) -> str:
    iso_year, iso_week, _ = as_utc(trade.exit_date).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def _profit_factor(total_wins: float, total_losses: float) -> float:
    if total_wins > 0 and total_losses > 0:
        return round(total_wins / total_losses, 2)
    if total_losses == 0 and total_wins > 0:
        return math.inf
    return 0.0


def _symbol_rankings(closed: list[Trade]) -> tuple[list[SymbolPerformance], list[SymbolPerformance]]:
    aggregates: dict[str, _Aggregate] = {}
    exchanges: dict[str, Exchange] = {}
    for trade in closed:
        aggregates.setdefault(trade.symbol, _Aggregate()).add(trade.profit_loss)
        exchanges.setdefault(trade.symbol, trade.exchange)

    rows = [
        SymbolPerformance(
            symbol=symbol,
            exchange=exchanges[symbol],
            pnl=round(agg.total_pnl, 2),
            count=agg.count,
            avg_pnl=agg.avg_pnl,
            win_rate=agg.win_rate,
        )
        for symbol, agg in aggregates.items()
    ]
    best = sorted(rows, key=lambda r: r.pnl, reverse=True)[:TOP_N]
    worst = sorted(rows, key=lambda r: r.pnl)[:TOP_N]
    return best, worst


def _strategy_rankings(closed: list[Trade]) -> tuple[list[StrategyPerformance], list[StrategyPerformance]]:
    aggregates: dict[str, _Aggregate] = {}
    for trade in closed:
        for tag in trade.tags or [UNTAGGED_STRATEGY]:
            aggregates.setdefault(tag, _Aggregate()).add(trade.profit_loss)

    rows = [
        StrategyPerformance(
            strategy=tag,
            pnl=round(agg.total_pnl, 2),
            count=agg.count,
            avg_pnl=agg.avg_pnl,
            win_rate=agg.win_rate,
        )
        for tag, agg in aggregates.items()
        if agg.count >= MIN_STRATEGY_TRADES
    ]
    best = sorted(rows, key=lambda r: r.pnl, reverse=True)[:TOP_N]
    worst = sorted(rows, key=lambda r: r.pnl)[:TOP_N]
    return best, worst


def _monthly_performance(closed: list[Trade]) -> list[MonthlyPerformance]:
    buckets: dict[str, _Aggregate] = {}
    for trade in closed:
        if trade.exit_date is not None:
            buckets.setdefault(_month_key(trade), _Aggregate()).add(trade.profit_loss)
    return [
        MonthlyPerformance(
            month=key,
            pnl=round(agg.total_pnl, 2),
            count=agg.count,
            wins=agg.wins,
            losses=agg.losses,
            win_rate=agg.win_rate,
        )
        for key, agg in sorted(buckets.items())
    ]


def _weekly_performance(closed: list[Trade]) -> list[WeeklyPerformance]:
    buckets: dict[str, _Aggregate] = {}
    for trade in closed:
        if trade.exit_date is not None:
            buckets.setdefault(_week_key(trade), _Aggregate()).add(trade.profit_loss)
    return [
        WeeklyPerformance(
            week=key,
            pnl=round(agg.total_pnl, 2),
            count=agg.count,
            wins=agg.wins,
            losses=agg.losses,
            win_rate=agg.win_rate,
        )
        for key, agg in sorted(buckets.items())[-RECENT_WEEKS:]
    ]


def calculate_performance_metrics(trades: Sequence[Trade]) -> PerformanceMetrics:
    """Win/loss statistics, rankings and time buckets over closed trades."""
    closed = closed_trades(trades)
    if not closed:
        return PerformanceMetrics()

    wins = [t.profit_loss for t in closed if t.profit_loss > 0]
    losses = [t.profit_loss for t in closed if t.profit_loss < 0]
    breakeven = len(closed) - len(wins) - len(losses)

    total_wins = sum(wins)
    total_losses = abs(sum(losses))

    best_stocks, worst_stocks = _symbol_rankings(closed)
    best_strategies, worst_strategies = _strategy_rankings(closed)

    return PerformanceMetrics(
        win_rate=_pct(len(wins), len(closed)),
        loss_rate=_pct(len(losses), len(closed)),
        average_win=round(total_wins / len(wins), 2) if wins else 0.0,
        average_loss=round(total_losses / len(losses), 2) if losses else 0.0,
        profit_factor=_profit_factor(total_wins, total_losses),
        breakeven_trades=breakeven,
        best_performing_stocks=best_stocks,
        worst_performing_stocks=worst_stocks,
        best_performing_strategies=best_strategies,
        worst_performing_strategies=worst_strategies,
        monthly_performance=_monthly_performance(closed),
        weekly_performance=_weekly_performance(closed),
    )


# ---------------------------------------------------------------------------
# Strengths & weaknesses
# ---------------------------------------------------------------------------

def identify_strengths(
    trades: Sequence[Trade],
    metrics: PerformanceMetrics | None = None,
) -> list[Strength]:
    """What is working well, gated by fixed thresholds."""
    if not closed_trades(trades):
        return []
    if metrics is None:
        metrics = calculate_performance_metrics(trades)
    strengths: list[Strength] = []

    if metrics.win_rate >= 60:
        strengths.append(Strength(
            title="High Win Rate",
            description=(
                f"Your win rate is {metrics.win_rate:.1f}%, which is excellent. "
                "You're picking winning trades consistently."
            ),
            category="performance",
            value=metrics.win_rate,
        ))
    elif metrics.win_rate >= 50:
        strengths.append(Strength(
            title="Good Win Rate",
            description=(
                f"Your win rate is {metrics.win_rate:.1f}%, which is above average. "
                "Keep refining your entry criteria."
            ),
            category="performance",
            value=metrics.win_rate,
        ))

    pf = metrics.profit_factor
    if pf >= 2.0:
        strengths.append(Strength(
            title="Excellent Profit Factor",
            description=(
                f"Your profit factor is {_format_factor(pf)}. This means your average wins "
                "are significantly larger than your average losses."
            ),
            category="risk_management",
            value=pf,
        ))
    elif pf >= 1.5:
        strengths.append(Strength(
            title="Good Profit Factor",
            description=(
                f"Your profit factor is {_format_factor(pf)}. "
                "Your wins are larger than your losses on average."
            ),
            category="risk_management",
            value=pf,
        ))

    if metrics.best_performing_stocks:
        top = metrics.best_performing_stocks[0]
        if top.pnl > 0 and top.count >= MIN_HIGHLIGHT_TRADES:
            strengths.append(Strength(
                title=f"Strong Performance in {top.symbol}",
                description=(
                    f"{top.symbol} has been your best performer with {_money(top.pnl)} total P&L "
                    f"across {top.count} trades (avg: {_money(top.avg_pnl)}, "
                    f"win rate: {top.win_rate:.1f}%)."
                ),
                category="stock_selection",
                value=top.pnl,
            ))

    if metrics.best_performing_strategies:
        top = metrics.best_performing_strategies[0]
        if top.pnl > 0 and top.count >= MIN_HIGHLIGHT_TRADES:
            strengths.append(Strength(
                title=f"Strong Strategy: {top.strategy}",
                description=(
                    f'Your "{top.strategy}" strategy is working well with {_money(top.pnl)} '
                    f"total P&L across {top.count} trades (avg: {_money(top.avg_pnl)}, "
                    f"win rate: {top.win_rate:.1f}%)."
                ),
                category="strategy",
                value=top.pnl,
            ))

    months = metrics.monthly_performance
    if len(months) >= 3:
        profitable = sum(1 for m in months if m.pnl > 0)
        share = profitable / len(months) * 100
        if share >= 70:
            strengths.append(Strength(
                title="Consistent Monthly Performance",
                description=(
                    f"You've been profitable in {profitable} out of {len(months)} months "
                    f"({share:.0f}%), showing strong consistency."
                ),
                category="consistency",
                value=round(share, 2),
            ))

    return strengths


def identify_weaknesses(
    trades: Sequence[Trade],
    metrics: PerformanceMetrics | None = None,
) -> list[Weakness]:
    """Areas for improvement, mirroring the strength thresholds."""
    if not closed_trades(trades):
        return []
    if metrics is None:
        metrics = calculate_performance_metrics(trades)
    weaknesses: list[Weakness] = []

    if metrics.win_rate < 40:
        weaknesses.append(Weakness(
            title="Low Win Rate",
            description=(
                f"Your win rate is {metrics.win_rate:.1f}%, which is below optimal. Focus on "
                "improving entry criteria and wait for high-probability setups."
            ),
            category="performance",
            value=metrics.win_rate,
            recommendation="Review your entry strategies and be more selective with trade setups.",
        ))
    elif metrics.win_rate < 50:
        weaknesses.append(Weakness(
            title="Below Average Win Rate",
            description=(
                f"Your win rate is {metrics.win_rate:.1f}%. "
                "There's room for improvement in trade selection."
            ),
            category="performance",
            value=metrics.win_rate,
            recommendation="Focus on quality over quantity in trade selection.",
        ))

    pf = metrics.profit_factor
    if 0 < pf < 1.0:
        weaknesses.append(Weakness(
            title="Profit Factor Below 1.0",
            description=(
                f"Your profit factor is {_format_factor(pf)}. This means your losses are larger "
                "than your wins on average. Focus on risk management."
            ),
            category="risk_management",
            value=pf,
            recommendation=(
                "Work on cutting losses quickly and letting winners run. "
                "Consider using stop-loss orders."
            ),
        ))

    if metrics.worst_performing_stocks:
        worst = metrics.worst_performing_stocks[0]
        if worst.pnl < 0 and worst.count >= MIN_HIGHLIGHT_TRADES:
            weaknesses.append(Weakness(
                title=f"Poor Performance in {worst.symbol}",
                description=(
                    f"{worst.symbol} has been losing money with {_money(abs(worst.pnl))} total "
                    f"loss across {worst.count} trades (avg: {_money(worst.avg_pnl)}, "
                    f"win rate: {worst.win_rate:.1f}%)."
                ),
                category="stock_selection",
                value=worst.pnl,
                recommendation=(
                    f"Consider avoiding {worst.symbol} or revisiting your approach to trading this stock."
                ),
            ))

    if metrics.worst_performing_strategies:
        worst = metrics.worst_performing_strategies[0]
        if worst.pnl < 0 and worst.count >= MIN_HIGHLIGHT_TRADES:
            weaknesses.append(Weakness(
                title=f"Weak Strategy: {worst.strategy}",
                description=(
                    f'Your "{worst.strategy}" strategy is underperforming with '
                    f"{_money(abs(worst.pnl))} total loss across {worst.count} trades "
                    f"(avg: {_money(worst.avg_pnl)}, win rate: {worst.win_rate:.1f}%)."
                ),
                category="strategy",
                value=worst.pnl,
                recommendation=(
                    f'Revise or eliminate the "{worst.strategy}" strategy, '
                    "or reduce position sizes when using it."
                ),
            ))

    months = metrics.monthly_performance
    if len(months) >= 3:
        losing = sum(1 for m in months if m.pnl < 0)
        share = losing / len(months) * 100
        if share >= 50:
            weaknesses.append(Weakness(
                title="Inconsistent Performance",
                description=(
                    f"You've had losses in {losing} out of {len(months)} months "
                    f"({share:.0f}%), indicating inconsistency."
                ),
                category="consistency",
                value=round(share, 2),
                recommendation=(
                    "Focus on developing consistent trading habits and sticking to your proven strategies."
                ),
            ))

    if metrics.average_win > 0 and metrics.average_loss > metrics.average_win * 1.5:
        weaknesses.append(Weakness(
            title="Large Average Loss",
            description=(
                f"Your average loss ({_money(metrics.average_loss)}) is significantly larger than "
                f"your average win ({_money(metrics.average_win)}). This suggests poor risk management."
            ),
            category="risk_management",
            value=metrics.average_loss,
            recommendation="Implement strict stop-loss orders and exit losing trades faster.",
        ))

    return weaknesses


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

def generate_insights(
    trades: Sequence[Trade],
    metrics: PerformanceMetrics | None = None,
    strengths: list[Strength] | None = None,
    weaknesses: list[Weakness] | None = None,
) -> list[PerformanceInsight]:
    """Prioritized, ordered insights built from metrics, strengths and weaknesses."""
    closed = closed_trades(trades)
    if not closed:
        return [PerformanceInsight(
            type=InsightType.INFO,
            title="Start Trading to See Insights",
            message="Add and close some trades to get performance insights and recommendations.",
            priority=Priority.LOW,
        )]

    if metrics is None:
        metrics = calculate_performance_metrics(trades)
    strengths = strengths if strengths is not None else identify_strengths(trades, metrics)
    weaknesses = weaknesses if weaknesses is not None else identify_weaknesses(trades, metrics)
    insights: list[PerformanceInsight] = []

    total_pnl = sum(t.profit_loss for t in closed)
    if total_pnl > 0:
        insights.append(PerformanceInsight(
            type=InsightType.SUCCESS,
            title="Overall Profitable Trading",
            message=(
                f"You're currently profitable with {_money(total_pnl)} total P&L. "
                "Keep up the good work and focus on maintaining consistency."
            ),
            priority=Priority.HIGH,
        ))
    else:
        focus = (
            weaknesses[0].recommendation if weaknesses
            else "improving your win rate and risk management"
        )
        insights.append(PerformanceInsight(
            type=InsightType.WARNING,
            title="Focus on Becoming Profitable",
            message=(
                f"You're currently at {_money(total_pnl)} total P&L. "
                f"Review your trading plan and focus on {focus}."
            ),
            priority=Priority.HIGH,
        ))

    if metrics.win_rate < 50:
        insights.append(PerformanceInsight(
            type=InsightType.WARNING,
            title="Win Rate Below 50%",
            message=(
                f"Your win rate is {metrics.win_rate:.1f}%. While you can still be profitable with "
                "proper risk management, improving your win rate will make trading easier. "
                "Focus on higher probability setups."
            ),
            priority=Priority.MEDIUM,
        ))

    if metrics.average_win > 0 and metrics.average_loss > 0:
        ratio = metrics.average_win / metrics.average_loss
        if ratio < 1.0:
            insights.append(PerformanceInsight(
                type=InsightType.DANGER,
                title="Poor Risk-Reward Ratio",
                message=(
                    f"Your average win ({_money(metrics.average_win)}) is smaller than your average "
                    f"loss ({_money(metrics.average_loss)}). Aim for at least a 2:1 risk-reward ratio "
                    "by letting winners run and cutting losses quickly."
                ),
                priority=Priority.HIGH,
            ))
        elif ratio >= 2.0:
            insights.append(PerformanceInsight(
                type=InsightType.SUCCESS,
                title="Excellent Risk-Reward Ratio",
                message=(
                    f"Your risk-reward ratio is {ratio:.2f}:1. You're letting winners run "
                    "while cutting losses quickly."
                ),
                priority=Priority.LOW,
            ))

    unique_symbols = len({t.symbol for t in closed})
    if unique_symbols < 3 and len(closed) > 5:
        insights.append(PerformanceInsight(
            type=InsightType.INFO,
            title="Consider Diversification",
            message=(
                f"You've traded only {unique_symbols} stock(s) across {len(closed)} trades. "
                "While focus can be good, consider diversifying to reduce concentration risk."
            ),
            priority=Priority.LOW,
        ))

    if len(closed) > 100:
        per_month = len(closed) / (len(metrics.monthly_performance) or 1)
        if per_month > 20:
            insights.append(PerformanceInsight(
                type=InsightType.WARNING,
                title="High Trade Frequency",
                message=(
                    f"You're averaging {per_month:.1f} trades per month. Quality over quantity - "
                    "focus on high-probability setups rather than frequent trading."
                ),
                priority=Priority.MEDIUM,
            ))

    if strengths:
        insights.append(PerformanceInsight(
            type=InsightType.SUCCESS,
            title=f"Key Strength: {strengths[0].title}",
            message=strengths[0].description,
            priority=Priority.LOW,
        ))

    if weaknesses:
        insights.append(PerformanceInsight(
            type=InsightType.WARNING,
            title=f"Key Area for Improvement: {weaknesses[0].title}",
            message=f"{weaknesses[0].description} {weaknesses[0].recommendation}",
            priority=Priority.HIGH,
        ))

    return insights


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def build_equity_curve(trades: Sequence[Trade]) -> list[EquityPoint]:
    """Cumulative P&L, one point per closed trade, ordered by exit date."""
    dated = sorted(
        (t for t in closed_trades(trades) if t.exit_date is not None),
        key=lambda t: as_utc(t.exit_date),
    )
    curve: list[EquityPoint] = []
    cumulative = 0.0
    for trade in dated:
        cumulative += trade.profit_loss
        exit_date = as_utc(trade.exit_date)
        curve.append(EquityPoint(
            date=f"{exit_date.day} {exit_date:%b}",
            pnl=round(cumulative, 2),
            date_value=exit_date,
        ))
    return curve


def analyze_performance(trades: Sequence[Trade]) -> PerformanceReport:
    """Full performance report for one user's trades."""
    if not trades:
        return PerformanceReport()

    metrics = calculate_performance_metrics(trades)
    strengths = identify_strengths(trades, metrics)
    weaknesses = identify_weaknesses(trades, metrics)
    insights = generate_insights(trades, metrics, strengths, weaknesses)

    closed = closed_trades(trades)
    distribution = WinLossDistribution(
        wins=sum(1 for t in closed if t.profit_loss > 0),
        losses=sum(1 for t in closed if t.profit_loss < 0),
        breakeven=sum(1 for t in closed if t.profit_loss == 0),
    )
    total_pnl = sum(t.profit_loss or 0.0 for t in trades if t.status == TradeStatus.CLOSED)

    report = PerformanceReport(
        total_pnl=round(total_pnl, 2),
        win_rate=metrics.win_rate,
        total_trades=len(trades),
        open_positions=sum(1 for t in trades if t.status == TradeStatus.OPEN),
        metrics=metrics,
        strengths=strengths,
        weaknesses=weaknesses,
        insights=insights,
        win_loss_distribution=distribution,
        stock_performance=[
            StockPnL(symbol=s.symbol, pnl=s.pnl, count=s.count)
            for s in metrics.best_performing_stocks
        ],
        equity_curve=build_equity_curve(trades),
    )
    logger.info(
        f"Performance analysis: {len(trades)} trades, {len(closed)} closed, "
        f"{len(strengths)} strengths, {len(weaknesses)} weaknesses, {len(insights)} insights"
    )
    return report


def compute_trade_summary(trades: Sequence[Trade]) -> TradeSummaryStats:
    """Headline counts for the dashboard cards.

    ``profit_factor`` here is gross wins over gross losses, the same ratio
    ``calculate_performance_metrics`` reports. It is not average win over
    average loss, so dashboards built against that older definition will
    show a different number whenever win and loss counts differ.
    """
    closed = closed_trades(trades)
    wins = [t.profit_loss for t in closed if t.profit_loss > 0]
    losses = [t.profit_loss for t in closed if t.profit_loss < 0]

    summary = SummaryCounts(
        total_trades=len(trades),
        open_trades=sum(1 for t in trades if t.status == TradeStatus.OPEN),
        closed_trades=len(closed),
        total_profit_loss=round(sum(t.profit_loss for t in closed), 2),
        win_rate=_pct(len(wins), len(closed)),
        winning_trades=len(wins),
        losing_trades=len(losses),
        breakeven_trades=len(closed) - len(wins) - len(losses),
        average_win=round(sum(wins) / len(wins), 2) if wins else 0.0,
        average_loss=round(abs(sum(losses)) / len(losses), 2) if losses else 0.0,
        profit_factor=_profit_factor(sum(wins), abs(sum(losses))),
    )

    def highlight(trade: Trade) -> TradeHighlight:
        return TradeHighlight(
            id=trade.id,
            symbol=trade.symbol,
            exchange=trade.exchange,
            profit_loss=round(trade.profit_loss, 2),
        )

    by_type: dict[str, TypeBreakdown] = {}
    for trade_type in TradeType:
        subset = [t for t in closed if t.trade_type == trade_type]
        by_type[trade_type.value] = TypeBreakdown(
            count=len(subset),
            total_pnl=round(sum(t.profit_loss for t in subset), 2),
        )

    return TradeSummaryStats(
        summary=summary,
        best_trade=highlight(max(closed, key=lambda t: t.profit_loss)) if closed else None,
        worst_trade=highlight(min(closed, key=lambda t: t.profit_loss)) if closed else None,
        by_exchange={
            exchange.value: sum(1 for t in closed if t.exchange == exchange)
            for exchange in Exchange
        },
        by_trade_type=by_type,
    )
