"""
Stock Control Configuration
Core settings for the stock control service
"""
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Info
    APP_NAME: str = "Stock Control API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./stockcore.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # CORS
    CORS_ORIGINS: list = [
        "http://localhost:3000",  # dashboard frontend
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "app.log"
    ERROR_LOG_FILE: str = "error.log"
    LOG_TO_FILE: bool = True

    # Precision
    QUANTITY_DECIMAL_PLACES: int = 3
    COST_DECIMAL_PLACES: int = 4
    CURRENCY_DECIMAL_PLACES: int = 2

    # Reorder policy
    REORDER_TARGET_MULTIPLIER: Decimal = Decimal("2.5")
    REORDER_MIN_QUANTITY: Decimal = Decimal("1")
    DEFAULT_LEAD_TIME_DAYS: int = 7

    # Concurrency
    LEDGER_MAX_RETRIES: int = 3

    # Document numbering
    CHECK_CODE_PREFIX: str = "KK"
    ORDER_NUMBER_PREFIX: str = "PO"
    DOCUMENT_CODE_RETRIES: int = 5

    # API Configuration
    API_V1_STR: str = "/api/v1"
    DOCS_URL: Optional[str] = "/docs"
    TENANT_HEADER: str = "X-Tenant-ID"

    @field_validator("LEDGER_MAX_RETRIES", "DOCUMENT_CODE_RETRIES")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        """Retry budgets must allow a first attempt"""
        if v < 1:
            raise ValueError("retry count must be at least 1")
        return v

    @field_validator("REORDER_TARGET_MULTIPLIER")
    @classmethod
    def multiplier_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("REORDER_TARGET_MULTIPLIER must be positive")
        return v


# Global settings instance
settings = Settings()
