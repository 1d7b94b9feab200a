from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from invoicing import __version__


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "trade-invoicing"
    version: str = __version__
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/invoicing.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Ledger
    BASE_CURRENCY: str = "JPY"
    LOCAL_UTC_OFFSET_HOURS: int = 9  # dates are stored as local (JST) midnight
    RECONCILIATION_TOLERANCE: Decimal = Decimal("0.01")

    # Rate lookup service (rates quoted as units of currency per 1 JPY)
    RATE_API_URL: str = "https://api.frankfurter.app"
    RATE_API_TIMEOUT: float = 10.0

    # Invoice defaults
    DEFAULT_ITEMS_PER_PAGE: int = 20
    DEFAULT_MARKUP_PERCENT: Decimal = Decimal("30")


settings = Settings()
