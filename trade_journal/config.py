"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'trade_journal.db'}"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]  # Vite dev server

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 10080  # 7 days

    # AI summarizer (disabled when the key is empty)
    anthropic_api_key: str = ""
    ai_model: str = "claude-3-5-haiku-latest"
    ai_max_tokens: int = 1024
    ai_timeout: float = 30.0

    # Market data (Yahoo Finance chart API)
    market_data_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    market_data_timeout: float = 15.0
    history_period: str = "1y"

    model_config = {"env_prefix": "TJ_", "env_file": ".env"}


settings = Settings()
