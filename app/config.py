"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings

from app.calculations.borrowing import BorrowingPolicy, validate_policy
from app.calculations.tax import DEFAULT_TAX_BRACKETS, TaxBracket, validate_brackets


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class TaxBracketSetting(BaseModel):
    """A tax band as supplied through configuration."""

    min: float
    max: Optional[float] = None
    rate: float
    label: Optional[str] = None


def _default_tax_brackets() -> List[TaxBracketSetting]:
    return [
        TaxBracketSetting(min=b.min, max=b.max, rate=b.rate, label=b.label)
        for b in DEFAULT_TAX_BRACKETS
    ]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Property Finance Calculator"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Lending policy
    borrowing_income_multiplier: float = 6.0
    borrowing_dependant_deduction: float = 5000.0

    # Tax table, as a JSON list of {"min", "max", "rate", "label"} in env files
    tax_brackets: List[TaxBracketSetting] = _default_tax_brackets()

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_borrowing_policy(settings: Optional[Settings] = None) -> BorrowingPolicy:
    """
    Build the lending policy from settings.

    Raises:
        InvalidInputError: If the multiplier or deduction is negative
    """
    settings = settings or get_settings()
    policy = BorrowingPolicy(
        income_multiplier=settings.borrowing_income_multiplier,
        dependant_deduction=settings.borrowing_dependant_deduction,
    )
    validate_policy(policy)
    return policy


def get_tax_brackets(settings: Optional[Settings] = None) -> List[TaxBracket]:
    """
    Build the configured tax table.

    Raises:
        InvalidInputError: If the configured table is malformed
    """
    settings = settings or get_settings()
    brackets = [
        TaxBracket(min=b.min, max=b.max, rate=b.rate, label=b.label)
        for b in settings.tax_brackets
    ]
    validate_brackets(brackets)
    return brackets
