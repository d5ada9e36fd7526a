"""Report schemas for performance, psychology and AI trade analysis.

Field names are snake_case in Python; the camelCase aliases are the
serialization contract the frontend reads.
"""

import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_serializer

from trade_journal.models.trade import Emotion, Exchange
from trade_journal.schemas.common import CamelModel


class InsightType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"
    INFO = "info"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

class SymbolPerformance(CamelModel):
    symbol: str
    exchange: Exchange
    pnl: float
    count: int
    avg_pnl: float = Field(alias="avgPnL")
    win_rate: float


class StrategyPerformance(CamelModel):
    strategy: str
    pnl: float
    count: int
    avg_pnl: float = Field(alias="avgPnL")
    win_rate: float


class MonthlyPerformance(CamelModel):
    month: str  # YYYY-MM
    pnl: float
    count: int
    wins: int
    losses: int
    win_rate: float


class WeeklyPerformance(CamelModel):
    week: str  # ISO week, YYYY-Www
    pnl: float
    count: int
    wins: int
    losses: int
    win_rate: float


class PerformanceMetrics(CamelModel):
    win_rate: float = 0.0
    loss_rate: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0  # math.inf when there are wins and no losses
    breakeven_trades: int = 0
    best_performing_stocks: list[SymbolPerformance] = Field(default_factory=list)
    worst_performing_stocks: list[SymbolPerformance] = Field(default_factory=list)
    best_performing_strategies: list[StrategyPerformance] = Field(default_factory=list)
    worst_performing_strategies: list[StrategyPerformance] = Field(default_factory=list)
    monthly_performance: list[MonthlyPerformance] = Field(default_factory=list)
    weekly_performance: list[WeeklyPerformance] = Field(default_factory=list)

    @property
    def profit_factor_is_infinite(self) -> bool:
        return math.isinf(self.profit_factor)

    @field_serializer("profit_factor", when_used="json")
    def _serialize_profit_factor(self, value: float) -> float | None:
        # JSON has no infinity
        return None if math.isinf(value) else value


class Strength(CamelModel):
    title: str
    description: str
    category: str
    value: float


class Weakness(CamelModel):
    title: str
    description: str
    category: str
    value: float
    recommendation: str


class PerformanceInsight(CamelModel):
    type: InsightType
    title: str
    message: str
    priority: Priority


class WinLossDistribution(CamelModel):
    wins: int = 0
    losses: int = 0
    breakeven: int = 0


class StockPnL(CamelModel):
    symbol: str
    pnl: float
    count: int


class EquityPoint(CamelModel):
    date: str  # short label, e.g. "5 Jan"
    pnl: float  # cumulative
    date_value: datetime


class PerformanceReport(CamelModel):
    total_pnl: float = Field(default=0.0, alias="totalPnL")
    win_rate: float = 0.0
    total_trades: int = 0
    open_positions: int = 0
    metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    strengths: list[Strength] = Field(default_factory=list)
    weaknesses: list[Weakness] = Field(default_factory=list)
    insights: list[PerformanceInsight] = Field(default_factory=list)
    win_loss_distribution: WinLossDistribution = Field(default_factory=WinLossDistribution)
    stock_performance: list[StockPnL] = Field(default_factory=list)
    equity_curve: list[EquityPoint] = Field(default_factory=list)


class TradeHighlight(CamelModel):
    id: int | None = None
    symbol: str
    exchange: Exchange
    profit_loss: float


class TypeBreakdown(CamelModel):
    count: int = 0
    total_pnl: float = Field(default=0.0, alias="totalPnL")


class SummaryCounts(CamelModel):
    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    total_profit_loss: float = 0.0
    win_rate: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0

    @field_serializer("profit_factor", when_used="json")
    def _serialize_profit_factor(self, value: float) -> float | None:
        return None if math.isinf(value) else value


class TradeSummaryStats(CamelModel):
    summary: SummaryCounts = Field(default_factory=SummaryCounts)
    best_trade: TradeHighlight | None = None
    worst_trade: TradeHighlight | None = None
    by_exchange: dict[str, int] = Field(default_factory=dict)
    by_trade_type: dict[str, TypeBreakdown] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Psychology
# ---------------------------------------------------------------------------

class EmotionShare(CamelModel):
    emotion: Emotion
    count: int
    percentage: float


class RevengeTradePair(CamelModel):
    previous_trade: str
    current_trade: str
    hours_after: float


class BehaviorPatterns(CamelModel):
    fear_exits: int = 0
    revenge_trades: int = 0
    revenge_trade_pairs: list[RevengeTradePair] = Field(default_factory=list)
    overtrading_patterns: int = 0
    total_trades_with_emotions: int = 0


class EmotionPerformance(CamelModel):
    emotion: Emotion
    avg_pnl: float = Field(alias="avgPnL")
    win_rate: float
    count: int
    total_pnl: float = Field(alias="totalPnL")


class PsychologyInsight(CamelModel):
    type: InsightType
    title: str
    message: str
    severity: Priority


class PsychologyReport(CamelModel):
    emotion_distribution: list[EmotionShare] = Field(default_factory=list)
    behavior_patterns: BehaviorPatterns = Field(default_factory=BehaviorPatterns)
    best_emotions: list[EmotionPerformance] = Field(default_factory=list)
    best_emotional_state: EmotionPerformance | None = None
    insights: list[PsychologyInsight] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# AI trade analysis
# ---------------------------------------------------------------------------

class TradeAnalysis(BaseModel):
    summary: str = "Trade analysis completed. Review the details below."
    patterns: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    insights: str = "Review your trade strategy and risk management approach."
