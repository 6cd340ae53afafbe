"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
Wallet limits and bonus rates live here too, so operators
can tune them per deployment without a code change.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


def _decimal(name: str, default: str) -> Decimal:
    return Decimal(os.getenv(name, default))


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Casino Wallet Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/casino_wallet"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Wallet
    CURRENCY: str = os.getenv("CURRENCY", "PKR")
    WELCOME_BONUS: Decimal = _decimal("WELCOME_BONUS", "50")

    MIN_DEPOSIT: Decimal = _decimal("MIN_DEPOSIT", "300")
    MAX_DEPOSIT: Decimal = _decimal("MAX_DEPOSIT", "50000")
    MIN_WITHDRAWAL: Decimal = _decimal("MIN_WITHDRAWAL", "500")
    MAX_WITHDRAWAL: Decimal = _decimal("MAX_WITHDRAWAL", "50000")

    MIN_BET: Decimal = _decimal("MIN_BET", "10")
    MAX_SINGLE_BET: Decimal = _decimal("MAX_SINGLE_BET", "5000")

    # Rates are fractions: 0.05 means 5%
    DEPOSIT_BONUS_RATE: Decimal = _decimal("DEPOSIT_BONUS_RATE", "0.05")
    REFERRAL_BONUS_RATE: Decimal = _decimal("REFERRAL_BONUS_RATE", "0.05")
    WITHDRAWAL_FEE_RATE: Decimal = _decimal("WITHDRAWAL_FEE_RATE", "0.01")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
