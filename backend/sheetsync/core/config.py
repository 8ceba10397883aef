import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    database_url: str
    app_env: str
    cron_secret: Optional[str]

    stale_threshold_minutes: int
    status_recent_logs: int

    log_level: str


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./sheetsync.db"),
        app_env=os.getenv("APP_ENV", "production"),
        cron_secret=os.getenv("CRON_SECRET") or None,
        stale_threshold_minutes=int(os.getenv("SYNC_STALE_THRESHOLD_MINUTES", "15")),
        status_recent_logs=int(os.getenv("SYNC_STATUS_RECENT_LOGS", "10")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
