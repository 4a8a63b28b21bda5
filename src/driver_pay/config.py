"""Configuration management for the driver payment engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    past_warning_days: int
    future_warning_days: int
    default_driver_percent: Decimal
    default_company_percent: Decimal
    default_service_fee_percent: Decimal

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DRIVER_PAY_DATABASE_URL",
                "sqlite+aiosqlite:///./driver_pay.db",
            ),
            past_warning_days=int(os.getenv("DRIVER_PAY_PAST_WARNING_DAYS", "30")),
            future_warning_days=int(os.getenv("DRIVER_PAY_FUTURE_WARNING_DAYS", "90")),
            default_driver_percent=Decimal(os.getenv("DRIVER_PAY_DEFAULT_DRIVER_PERCENT", "75")),
            default_company_percent=Decimal(os.getenv("DRIVER_PAY_DEFAULT_COMPANY_PERCENT", "20")),
            default_service_fee_percent=Decimal(
                os.getenv("DRIVER_PAY_DEFAULT_SERVICE_FEE_PERCENT", "5")
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()

