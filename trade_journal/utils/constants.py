"""Shared constants and thresholds."""

# Yahoo Finance suffix per exchange
YAHOO_SUFFIX: dict[str, str] = {
    "NSE": ".NS",
    "BSE": ".BO",
}

VALID_HISTORY_PERIODS = ["1mo", "3mo", "6mo", "1y", "2y"]
DEFAULT_HISTORY_PERIOD = "6mo"

# Direction predictor
MIN_PREDICTION_BARS = 50
MAX_BULK_SYMBOLS = 10

# Analytics
TOP_N = 10
MIN_STRATEGY_TRADES = 2
MIN_HIGHLIGHT_TRADES = 3
RECENT_WEEKS = 12
UNTAGGED_STRATEGY = "Untagged"

# Psychology
FEAR_EXIT_MAX_PROFIT_PCT = 1.0
REVENGE_WINDOW_HOURS = 24
OVERTRADING_DAILY_TRADES = 5
MIN_EMOTION_TRADES = 2
EMOTION_SHARE_ALERT_PCT = 30.0
