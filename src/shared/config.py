"""TillPoint configuration.

Settings are read from environment variables prefixed with ``TILLPOINT_``
(and an optional ``.env`` file), so the same build runs on a till, in CI or
behind a webhook host without code changes.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TILLPOINT_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # development | test | production
    env: str = "development"

    # --- Storage ---------------------------------------------------------------
    database_url: str = "sqlite:///./tillpoint.db"
    create_tables: bool = False
    store_timeout_seconds: float = 10.0

    # --- M-Pesa ----------------------------------------------------------------
    # STK push initiation endpoint. Unset means the fake gateway is used.
    mpesa_initiate_url: str | None = None
    gateway_timeout_seconds: float = 30.0
    # None keeps the wait for a callback unbounded.
    confirmation_timeout_seconds: float | None = None
    # When set, POST /mpesa/callback must carry it in X-Callback-Token.
    callback_token: str | None = None

    # --- Orders ----------------------------------------------------------------
    order_id_prefix: str = "ORD"

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
