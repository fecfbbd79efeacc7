import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        identity_secret: str,
        identity_max_age_hours: int,
        api_prefix: str,
        cors_origins: list[str],
        pagination_max_limit: int,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.identity_secret = identity_secret
        self.identity_max_age_hours = identity_max_age_hours
        self.api_prefix = api_prefix
        self.cors_origins = cors_origins
        self.pagination_max_limit = pagination_max_limit
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("SPENDTRACK_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "spendtrack.db"
    database_url = os.getenv("SPENDTRACK_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("SPENDTRACK_TIMEZONE", "UTC")
    identity_secret = os.getenv(
        "SPENDTRACK_IDENTITY_SECRET",
        "3f9c1d7e52a8b6f04c2e9a17d85b3c60e4f1a2b9c8d7e6f5a4b3c2d1e0f9a8b7",
    )
    identity_max_age_hours = int(os.getenv("SPENDTRACK_IDENTITY_MAX_AGE_HOURS", "24"))
    api_prefix = os.getenv("SPENDTRACK_API_PREFIX", "/api/v1")
    cors_origins = _split_origins(
        os.getenv("SPENDTRACK_CORS_ORIGINS", "http://localhost:3001")
    )
    pagination_max_limit = int(os.getenv("SPENDTRACK_PAGINATION_MAX_LIMIT", "100"))
    log_level = os.getenv("SPENDTRACK_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        identity_secret=identity_secret,
        identity_max_age_hours=identity_max_age_hours,
        api_prefix=api_prefix,
        cors_origins=cors_origins,
        pagination_max_limit=pagination_max_limit,
        log_level=log_level,
    )
