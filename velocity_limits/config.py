"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from velocity_limits.domain.models import LimitConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./velocity_limits.db"

    # Service
    service_name: str = "velocity-limits"
    log_level: str = "INFO"

    # Velocity limits
    daily_amount_limit: Decimal = Decimal("5000.00")
    weekly_amount_limit: Decimal = Decimal("20000.00")
    daily_count_limit: int = 3
    count_rejected_attempts: bool = True  # rejected attempts still consume quota

    # Timeouts
    store_timeout_seconds: float = 5.0
    lock_timeout_seconds: float = 5.0

    def limit_config(self) -> LimitConfig:
        """Snapshot the limits into the immutable value handed to evaluators"""
        return LimitConfig(
            daily_amount_limit=self.daily_amount_limit,
            weekly_amount_limit=self.weekly_amount_limit,
            daily_count_limit=self.daily_count_limit,
            count_rejected_attempts=self.count_rejected_attempts,
        )


settings = Settings()
