"""
Application configuration — Merchant Billing API

All settings come from environment variables (optionally a .env file).

Usage:
    from core.config import settings
    settings.database_url
"""
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()


def _bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Database
    database_url = os.getenv("DATABASE_URL", "sqlite:///./billing.db")

    # App
    environment = os.getenv("ENVIRONMENT", "development")
    debug = _bool(os.getenv("DEBUG", "false"))
    cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    # Billing
    # Billing-day boundaries are computed in this zone, never in server time
    billing_timezone = os.getenv("BILLING_TIMEZONE", "Africa/Lagos")
    billing_currency = os.getenv("BILLING_CURRENCY", "NGN")
    currency_symbol = os.getenv("CURRENCY_SYMBOL", "₦")

    @property
    def cors_origins_list(self) -> list:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate(self):
        try:
            ZoneInfo(self.billing_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown BILLING_TIMEZONE: {self.billing_timezone!r}")
        return True


settings = Settings()
