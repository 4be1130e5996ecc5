import os
from dataclasses import dataclass
from functools import lru_cache

# database URLs per environment
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite://"
SQLITE_PROD_DB = "sqlite:///./prod.db"


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment"""
    app_env: str
    database_url: str
    secret_key: str
    jwt_algorithm: str
    access_token_expire_minutes: int
    log_level: str
    excerpt_length: int = 150
    words_per_minute: int = 200
    default_post_page_size: int = 10
    default_comment_page_size: int = 20
    default_admin_page_size: int = 20
    max_page_size: int = 100
    trending_window_days: int = 7


def _database_url(env: str) -> str:
    if env == "test":
        return SQLITE_TEST_DB
    if env == "production":
        return os.getenv("DATABASE_URL", SQLITE_PROD_DB)
    return os.getenv("DATABASE_URL", SQLITE_DEV_DB)


@lru_cache()
def get_settings() -> Settings:
    """Build settings once per process"""
    env = os.getenv("APP_ENV", "development")
    return Settings(
        app_env=env,
        database_url=_database_url(env),
        secret_key=os.getenv("SECRET_KEY", "change-me-in-production"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
