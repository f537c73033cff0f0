"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_prefix="ABUDGET_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./abudget.db"

    # Service
    service_name: str = "abudget-engine"
    log_level: str = "INFO"

    # Bucket targets used when user settings are first created
    default_needs_percentage: Decimal = Decimal("50")
    default_wants_percentage: Decimal = Decimal("30")
    default_savings_percentage: Decimal = Decimal("20")

    # Report comparisons: 500 bp = within 5 percentage points is on target
    target_tolerance_basis_points: int = 500


settings = Settings()
