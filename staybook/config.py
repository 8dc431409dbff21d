from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./staybook.db"

    # Listing cache is skipped when no Redis is configured
    REDIS_URL: Optional[str] = None
    LISTING_CACHE_TTL_SECONDS: int = 300

    # --- Booking policy ---
    DEPOSIT_RATIO: Decimal = Decimal("0.2")
    BALANCE_DUE_OFFSET_DAYS: int = 7
    BOOKING_WRITE_ATTEMPTS: int = 3

    SEARCH_RESULT_LIMIT: int = 20

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()
