"""
Application settings loaded from environment variables.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with type safety."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Google Sheets (source of truth)
    GOOGLE_SHEET_ID: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    GOOGLE_ACCESS_TOKEN: Optional[str] = None
    SHEETS_API_BASE_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEETS_TIMEOUT: float = 30.0
    SHEET_HEADER_ROWS: int = 1
    SHEETS_REQUESTS_PER_SECOND: float = 1.0

    # Sync
    UPSERT_BATCH_SIZE: int = 10
    SYNC_API_KEY: Optional[str] = None
    CRON_SECRET_TOKEN: Optional[str] = None

    # Consumer cache
    CATALOG_CACHE_SECONDS: float = 300.0

    # Order notifications
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_CHAT_ID: Optional[str] = None
    ORDER_CURRENCY_SYMBOL: str = "﷼"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


# Global settings instance
settings = Settings()
