"""
Configuration & Settings
Citation Intelligence Engine
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Citation Intelligence Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./citation_intel.db"

    # Answer engine (Perplexity chat completions)
    PERPLEXITY_API_KEY: Optional[str] = None
    PERPLEXITY_API_URL: str = "https://api.perplexity.ai/chat/completions"
    PERPLEXITY_MODEL: str = "sonar"
    PERPLEXITY_TEMPERATURE: float = 0.3
    REQUEST_TIMEOUT: int = 45

    # Cron trigger
    CRON_SECRET: Optional[str] = None
    STOP_CITATION_CRON: bool = False

    # Sampling
    # CITATION_QUERY_DELAY_SECONDS is the spacing between two consecutive
    # answer-engine calls; never set it below 0.5 in production.
    CITATION_QUERY_DELAY_SECONDS: float = 0.5
    CITATION_MODEL_PROVIDER: str = "perplexity-sonar"
    CITATION_MIN_PLAN: str = "growth"

    # Gap scoring
    CITATION_RELEVANCE_THRESHOLD: float = 0.30

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
