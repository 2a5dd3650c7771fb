"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. The database backend is validated at load time.
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings have defaults; DATABASE_URL is required only when
    database_backend is 'sql' (see validate_database_backend).
    """

    # App
    app_name: str = "flowdash"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database: "memory" (in-process repositories) or "sql" (SQLAlchemy async)
    database_backend: str = "memory"
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Execution pipeline
    # Whole-run deadline in seconds; None disables the deadline.
    execution_timeout_seconds: float | None = Field(default=300.0, gt=0)
    # Multiplier for the simulated step delays; 0 makes built-in steps instant.
    step_delay_scale: float = Field(default=1.0, ge=0)
    # Attempts per step; 1 means no retry.
    step_max_attempts: int = Field(default=1, ge=1)
    step_retry_backoff_seconds: float = Field(default=0.0, ge=0)

    # Connected apps
    token_refresh_window_seconds: int = Field(default=300, ge=0)

    # Queries
    recent_workflows_limit: int = Field(default=3, gt=0)
    popular_templates_limit: int = Field(default=6, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FLOWDASH_",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_database_backend(self) -> "Settings":
        """Validate backend name; sql requires DATABASE_URL."""
        if self.database_backend == "sql":
            if not self.database_url:
                raise ValueError(
                    "DATABASE_URL is required when database_backend is 'sql'. "
                    "Set FLOWDASH_DATABASE_URL in environment or .env file."
                )
        elif self.database_backend != "memory":
            raise ValueError(
                f"database_backend must be 'memory' or 'sql', got: {self.database_backend!r}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings.

    Tests that change environment variables call get_settings.cache_clear().
    """
    return Settings()
