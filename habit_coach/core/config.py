"""Configuration management for habit-coach."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Persistence Configuration
    storage_backend: Literal["memory", "redis", "sqlite"] = Field(
        default="memory", description="Blob store used for habit collections (memory, redis or sqlite)"
    )
    redis_url: str | None = Field(default=None, description="Redis connection URL (e.g., redis://localhost:6379)")
    sqlite_db_path: str = Field(default="./data/habit_coach.db", description="SQLite blob store file path")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Reminder Configuration
    notifications_enabled: bool = Field(
        default=True, description="Whether reminder permission is granted on this platform"
    )
    reminder_timezone: str | None = Field(
        default=None, description="IANA timezone for reminder triggers (defaults to the local timezone)"
    )

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    @property
    def is_production(self) -> bool:
        """Check whether the app runs in production."""
        return self.environment.lower() == "production"


# Application Constants
class Constants:
    """Application-wide constants."""

    # Habit Validation
    HABIT_NAME_MIN_LENGTH: int = 2
    HABIT_NAME_MAX_LENGTH: int = 50
    HABIT_DESCRIPTION_MAX_LENGTH: int = 100

    # Reminder Defaults
    REMINDER_DEFAULT_BODY: str = "Keep up the streak!"

    # Storage Keys
    HABITS_KEY_PREFIX: str = "habits"
    LOGS_KEY_PREFIX: str = "habit_logs"

    # Redis Configuration
    REDIS_MAX_CONNECTIONS: int = 10  # Maximum connections in Redis connection pool
    REDIS_MAX_RETRIES: int = 3
    REDIS_RETRY_BASE_DELAY_SECONDS: float = 0.1

    # HTTP
    OWNER_HEADER: str = "X-Owner-Id"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
