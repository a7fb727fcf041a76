"""Store configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Store settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # Package version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./campaign_store.db"
    DB_ECHO: bool = False

    # SQLite tuning (ignored for other dialects)
    SQLITE_BUSY_TIMEOUT_MS: int = 5000
    SQLITE_WAL: bool = True

    # Write transactions: bounded retry on commit-time conflicts
    WRITE_RETRY_ATTEMPTS: int = 5
    WRITE_RETRY_BACKOFF_SECONDS: float = 0.05

    # Logging
    LOG_LEVEL: str = "INFO"

    # Upgrade schema to alembic head when the CLI starts
    AUTO_MIGRATE: bool = False

    @property
    def log_level_value(self) -> str:
        """Normalized log level name."""
        return self.LOG_LEVEL.strip().upper() or "INFO"


settings = Settings()
