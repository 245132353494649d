"""Runtime configuration for the checkout core.

Values come from environment variables prefixed ``STOREFRONT_`` (or a
``.env`` file). All money values are integer paise.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorefrontSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore", populate_by_name=True)

    environment: str = "development"
    currency: str = Field(default="INR", min_length=3, max_length=3)

    # Pricing
    tax_rate_percent: float = Field(default=18.0, ge=0)
    free_shipping_threshold: int = Field(default=100_000, ge=0)
    standard_shipping_fee: int = Field(default=10_000, ge=0)
    express_shipping_premium: int = Field(default=20_000, ge=0)
    overnight_shipping_premium: int = Field(default=40_000, ge=0)

    # Lifecycle
    max_payment_retries: int = Field(default=3, ge=0)
    max_concurrency_retries: int = Field(default=3, ge=1)

    # Adapters
    payment_gateway: str = "fake"
    carrier_adapter: str = "fake"

    # Logging
    log_level: str | None = Field(default=None, validation_alias=AliasChoices("STOREFRONT_LOG_LEVEL", "LOG_LEVEL"))
    log_dir: Path | None = None


@lru_cache
def get_settings() -> StorefrontSettings:
    return StorefrontSettings()
