"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Waqf Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/waqf_ledger"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Journal entries
    # Absolute tolerance for debit/credit equality. Absorbs rounding
    # from percentage-based template lines.
    BALANCE_TOLERANCE: Decimal = Decimal(os.getenv("BALANCE_TOLERANCE", "0.01"))
    ENTRY_NUMBER_PREFIX: str = os.getenv("ENTRY_NUMBER_PREFIX", "JV")
    ENTRY_NUMBER_RETRIES: int = int(os.getenv("ENTRY_NUMBER_RETRIES", "3"))

    # Bank reconciliation
    MATCH_MIN_CONFIDENCE: float = float(os.getenv("MATCH_MIN_CONFIDENCE", "0.6"))
    MATCH_AUTO_CONFIDENCE: float = float(os.getenv("MATCH_AUTO_CONFIDENCE", "0.9"))
    MATCH_DATE_WINDOW_DAYS: int = int(os.getenv("MATCH_DATE_WINDOW_DAYS", "14"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
