"""Behavioral-psychology analysis of a user's trades.

Looks at emotion tags and the timing of trades relative to each other:
fear exits (tiny wins right after a loss), revenge trades (re-entering
within a day of a loss) and overtrading days. Pure computation.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from trade_journal.models.trade import TRACKED_EMOTIONS, Emotion, Trade, TradeStatus
from trade_journal.schemas.analytics import (
    BehaviorPatterns,
    EmotionPerformance,
    EmotionShare,
    InsightType,
    Priority,
    PsychologyInsight,
    PsychologyReport,
    RevengeTradePair,
)
from trade_journal.utils.constants import (
    EMOTION_SHARE_ALERT_PCT,
    FEAR_EXIT_MAX_PROFIT_PCT,
    MIN_EMOTION_TRADES,
    OVERTRADING_DAILY_TRADES,
    REVENGE_WINDOW_HOURS,
)
from trade_journal.utils.timeutils import as_utc

logger = logging.getLogger(__name__)


@dataclass
class EmotionPatterns:
    distribution: list[EmotionShare]
    total_trades_with_emotions: int


@dataclass
class BehaviorAnalysis:
    patterns: BehaviorPatterns
    best_emotional_state: EmotionPerformance | None
    best_emotions: list[EmotionPerformance]


def _closed_by_exit(trades: Sequence[Trade]) -> list[Trade]:
    closed = [t for t in trades if t.status == TradeStatus.CLOSED and t.exit_date is not None]
    return sorted(closed, key=lambda t: as_utc(t.exit_date))


# ---------------------------------------------------------------------------
# Emotions
# ---------------------------------------------------------------------------

def analyze_emotion_patterns(trades: Sequence[Trade]) -> EmotionPatterns:
    """Count and share of each tracked emotion among emotion-tagged trades."""
    tagged = [t for t in trades if t.emotion and t.emotion != Emotion.UNSET]
    counts = Counter(Emotion(t.emotion) for t in tagged)
    total = len(tagged)

    distribution = [
        EmotionShare(
            emotion=emotion,
            count=counts.get(emotion, 0),
            percentage=round(counts.get(emotion, 0) / total * 100, 1) if total else 0.0,
        )
        for emotion in TRACKED_EMOTIONS
    ]
    return EmotionPatterns(distribution=distribution, total_trades_with_emotions=total)


def _emotion_performance(closed: list[Trade]) -> list[EmotionPerformance]:
    stats: dict[Emotion, list[float]] = {}
    for trade in closed:
        if trade.emotion and trade.emotion != Emotion.UNSET and trade.profit_loss is not None:
            stats.setdefault(Emotion(trade.emotion), []).append(trade.profit_loss)

    rows = []
    for emotion, pnls in stats.items():
        wins = sum(1 for p in pnls if p > 0)
        total = sum(pnls)
        rows.append(EmotionPerformance(
            emotion=emotion,
            avg_pnl=round(total / len(pnls), 2),
            win_rate=round(wins / len(pnls) * 100, 1),
            count=len(pnls),
            total_pnl=round(total, 2),
        ))
    return rows


# ---------------------------------------------------------------------------
# Behavior
# ---------------------------------------------------------------------------

def _count_fear_exits(ordered: list[Trade]) -> int:
    fear_exits = 0
    after_loss = False
    for trade in ordered:
        pnl = trade.profit_loss or 0.0
        if pnl < 0:
            after_loss = True
        elif after_loss and pnl > 0:
            cost_basis = trade.entry_price * trade.quantity
            if cost_basis > 0:
                profit_pct = pnl / cost_basis * 100
                if 0 < profit_pct < FEAR_EXIT_MAX_PROFIT_PCT:
                    fear_exits += 1
            after_loss = False
    return fear_exits


def _find_revenge_trades(ordered: list[Trade]) -> list[RevengeTradePair]:
    pairs = []
    for previous, current in zip(ordered, ordered[1:]):
        if (previous.profit_loss or 0.0) >= 0 or current.entry_date is None:
            continue
        gap = as_utc(current.entry_date) - as_utc(previous.exit_date)
        hours = gap.total_seconds() / 3600
        if 0 <= hours < REVENGE_WINDOW_HOURS:
            pairs.append(RevengeTradePair(
                previous_trade=previous.symbol,
                current_trade=current.symbol,
                hours_after=round(hours, 1),
            ))
    return pairs


def _count_overtrading_days(trades: Sequence[Trade]) -> int:
    per_day = Counter(as_utc(t.entry_date).date() for t in trades if t.entry_date is not None)
    return sum(1 for n in per_day.values() if n >= OVERTRADING_DAILY_TRADES)


def identify_behavior_patterns(trades: Sequence[Trade]) -> BehaviorAnalysis:
    """Fear exits, revenge trades, overtrading days and emotion rankings."""
    if not trades:
        return BehaviorAnalysis(BehaviorPatterns(), None, [])

    ordered = _closed_by_exit(trades)
    revenge_pairs = _find_revenge_trades(ordered)

    ranked = [
        row for row in _emotion_performance(ordered)
        if row.count >= MIN_EMOTION_TRADES
    ]
    ranked.sort(key=lambda row: row.avg_pnl, reverse=True)

    patterns = BehaviorPatterns(
        fear_exits=_count_fear_exits(ordered),
        revenge_trades=len(revenge_pairs),
        revenge_trade_pairs=revenge_pairs,
        overtrading_patterns=_count_overtrading_days(trades),
    )
    logger.info(
        f"Behavior patterns: fear exits={patterns.fear_exits}, "
        f"revenge trades={patterns.revenge_trades}, overtrading days={patterns.overtrading_patterns}"
    )
    return BehaviorAnalysis(
        patterns=patterns,
        best_emotional_state=ranked[0] if ranked else None,
        best_emotions=ranked[:3],
    )


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

def _share_of(emotions: EmotionPatterns, emotion: Emotion) -> float:
    for share in emotions.distribution:
        if share.emotion == emotion:
            return share.percentage
    return 0.0


def get_psychology_insights(
    trades: Sequence[Trade],
    emotions: EmotionPatterns,
    behavior: BehaviorAnalysis,
) -> list[PsychologyInsight]:
    insights: list[PsychologyInsight] = []
    patterns = behavior.patterns

    if patterns.fear_exits > 0:
        insights.append(PsychologyInsight(
            type=InsightType.WARNING,
            title="Fear Exits Detected",
            message=(
                f"You've exited {patterns.fear_exits} trade(s) early after losses, taking small "
                "profits when you should hold. This suggests fear-based decision making. "
                "Consider trusting your analysis and letting winning trades run."
            ),
            severity=Priority.HIGH if patterns.fear_exits > 3 else Priority.MEDIUM,
        ))

    if patterns.revenge_trades > 0:
        insights.append(PsychologyInsight(
            type=InsightType.DANGER,
            title="Revenge Trading Pattern Detected",
            message=(
                f"You've made {patterns.revenge_trades} trade(s) within 24 hours after losses. "
                "Revenge trading often leads to more losses. Take time to analyze and cool down "
                "before trading again after a loss."
            ),
            severity=Priority.HIGH if patterns.revenge_trades > 2 else Priority.MEDIUM,
        ))

    if patterns.overtrading_patterns > 0:
        insights.append(PsychologyInsight(
            type=InsightType.WARNING,
            title="Overtrading Detected",
            message=(
                f"You've had {patterns.overtrading_patterns} day(s) with "
                f"{OVERTRADING_DAILY_TRADES} or more trades. Quality over quantity - focus on "
                "high-probability setups rather than frequent trading."
            ),
            severity=Priority.MEDIUM,
        ))

    best = behavior.best_emotional_state
    if best is not None:
        insights.append(PsychologyInsight(
            type=InsightType.SUCCESS,
            title="Your Best Trading Emotion",
            message=(
                f"Your most profitable trades occur when you're feeling {best.emotion.value} "
                f"(avg P&L: ₹{best.avg_pnl}, win rate: {best.win_rate}%). "
                "Try to cultivate this emotional state before trading."
            ),
            severity=Priority.LOW,
        ))

    anxiety = _share_of(emotions, Emotion.ANXIETY)
    if anxiety > EMOTION_SHARE_ALERT_PCT:
        insights.append(PsychologyInsight(
            type=InsightType.INFO,
            title="High Anxiety Levels",
            message=(
                f"{anxiety}% of your trades were made with anxiety. High anxiety often leads to "
                "poor decisions. Consider meditation, reducing position sizes, or taking breaks "
                "when feeling anxious."
            ),
            severity=Priority.MEDIUM,
        ))

    greed = _share_of(emotions, Emotion.GREED)
    if greed > EMOTION_SHARE_ALERT_PCT:
        insights.append(PsychologyInsight(
            type=InsightType.WARNING,
            title="High Greed Levels",
            message=(
                f"{greed}% of your trades were made with greed. Greed can lead to overtrading "
                "and ignoring risk management. Stick to your trading plan regardless of emotions."
            ),
            severity=Priority.MEDIUM,
        ))

    if behavior.best_emotions and behavior.best_emotions[0].avg_pnl > 0:
        top = behavior.best_emotions[0]
        insights.append(PsychologyInsight(
            type=InsightType.SUCCESS,
            title="Emotional Performance Analysis",
            message=(
                f"Top performing emotion: {top.emotion.value} with average P&L of ₹{top.avg_pnl} "
                f"and {top.win_rate}% win rate across {top.count} trades."
            ),
            severity=Priority.LOW,
        ))

    if emotions.total_trades_with_emotions == 0 and trades:
        insights.append(PsychologyInsight(
            type=InsightType.INFO,
            title="Start Tracking Emotions",
            message=(
                "You haven't tracked emotions for your trades yet. Adding emotion tags to your "
                "trades will help identify psychological patterns and improve your trading performance."
            ),
            severity=Priority.LOW,
        ))

    return insights


def analyze_psychology(trades: Sequence[Trade]) -> PsychologyReport:
    """Full psychology report. Empty input yields an empty report."""
    if not trades:
        return PsychologyReport()

    emotions = analyze_emotion_patterns(trades)
    behavior = identify_behavior_patterns(trades)
    insights = get_psychology_insights(trades, emotions, behavior)

    patterns = behavior.patterns.model_copy(
        update={"total_trades_with_emotions": emotions.total_trades_with_emotions}
    )
    logger.info(f"Psychology analysis: {len(trades)} trades, {len(insights)} insights")
    return PsychologyReport(
        emotion_distribution=emotions.distribution,
        behavior_patterns=patterns,
        best_emotions=behavior.best_emotions,
        best_emotional_state=behavior.best_emotional_state,
        insights=insights,
    )
