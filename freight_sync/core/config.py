"""
Application settings.
Loaded from environment variables / .env.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Settings loaded from .env"""

    # App
    APP_NAME: str = "Freight Sync"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Supabase (business datastore: loads, sync_status)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # Redis (dead-letter queue storage)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Slack
    SLACK_WEBHOOK_URL: str = ""

    # Shared secret presented by the cron trigger (Authorization: Bearer ...)
    CRON_SECRET: str = ""

    # Admin DLQ surface (X-API-Key header)
    ADMIN_API_KEY: str = ""

    # Base URL used by the scheduler worker to reach the jobs endpoints
    API_BASE_URL: str = "http://localhost:8000"

    # Dead-letter queue
    DLQ_MAX_RETRIES: int = 5
    DLQ_ALERT_THRESHOLD: int = 50
    DLQ_RETRY_TIME_BUDGET_SECONDS: float = 50.0  # trigger budget is 60s
    DLQ_RECONCILE_TIMEOUT_SECONDS: float = 10.0
    DLQ_RETRY_SCHEDULE: str = "*/15 * * * *"

    @property
    def is_production(self) -> bool:
        """True when running in production."""
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore unrelated variables in .env


@lru_cache()
def get_settings() -> Settings:
    """Returns the cached settings instance."""
    return Settings()


settings = get_settings()
