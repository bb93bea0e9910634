"""
Configuration Management for TrackWise

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, so the external dependencies
(just the Gemini API) and every tunable threshold live in one place.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # New session
    default_income: Optional[float] = Field(
        default=10000.0,
        gt=0,
        description="Starting monthly income of a new session"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=3,
        description="Symbol used when formatting amounts"
    )

    # Path exploration
    max_path_actions: Optional[int] = Field(
        default=20,
        ge=0,
        le=30,
        description="Largest action list the path explorer accepts (2^n paths)"
    )

    # AI view thresholds
    patterns_min_expenses: int = Field(
        default=5,
        ge=1,
        description="Expenses needed before pattern analysis runs"
    )
    prediction_min_expenses: int = Field(
        default=10,
        ge=1,
        description="Expenses needed before budget prediction runs"
    )
    patterns_debounce_seconds: float = Field(
        default=0.7,
        ge=0.0,
        le=10.0,
        description="Idle delay before re-running pattern analysis"
    )
    prediction_debounce_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Idle delay before re-running budget prediction"
    )
    budget_goal_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Budget goal per category as a share of current spending"
    )
    default_prediction_period: str = Field(
        default="next month",
        min_length=1,
        description="Period the budget prediction covers"
    )

    @field_validator('currency_symbol')
    @classmethod
    def strip_currency_symbol(cls, v: str) -> str:
        """Reject a blank symbol - amounts must always carry one."""
        v = v.strip()
        if not v:
            raise ValueError("currency_symbol cannot be blank")
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so the app can start without an API key

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.gemini
        results["gemini"] = True
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
