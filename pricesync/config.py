"""pricesync — Configuration via pydantic-settings."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./pricesync.db"

    # Timezone (scheduler triggers)
    TIMEZONE: str = "UTC"

    # Odoo connection
    ODOO_SIMULATE: bool = True
    ODOO_BASE_URL: str = ""
    ODOO_DB: str = ""
    ODOO_USERNAME: str = ""
    ODOO_API_KEY: str = ""
    ODOO_PASSWORD: str = ""
    ODOO_JSONRPC_PATH: str = "/jsonrpc"
    ODOO_CURRENCY: str = "USD"
    ODOO_TIMEOUT: float = 15.0

    # Simulated client
    ODOO_FAKE_FAILURE_RATE: float = 0.1
    ODOO_FAKE_DELAY_MIN: float = 0.15
    ODOO_FAKE_DELAY_MAX: float = 0.3

    # Push dispatch: "queue" (APScheduler with retries) or "inline"
    SYNC_DISPATCH_MODE: str = "queue"
    SYNC_MAX_ATTEMPTS: int = 3
    SYNC_RETRY_BACKOFF: list[int] = [60, 180, 360]

    # Scheduled pull (0 disables)
    ODOO_PULL_INTERVAL_MINUTES: int = 0
    ODOO_PULL_LIMIT: int = 100

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
