import logging
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ENV(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite+aiosqlite:///./ledger.sqlite"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "dev_secret"
    SERVICE_API_KEY: str = ""

    DEFAULT_COMMISSION_RATE: Decimal = Decimal("0.10")
    ATTRIBUTION_TTL_DAYS: int = 30
    CLEARANCE_WINDOW_DAYS: int = 7
    COOKIE_SECURE: bool = False


@lru_cache
def get_env() -> ENV:
    return ENV()


class Settings():
    def __init__(self, env: ENV | None = None):
        self.env = env or get_env()

    def is_sqlite(self, url: str | None = None) -> bool:
        return (url or self.env.DATABASE_URL).startswith("sqlite")

    def engine_kwargs(self, url: str | None = None) -> dict:
        if self.is_sqlite(url):
            return {"echo": self.env.DEBUG, "connect_args": {"check_same_thread": False}}
        return {"echo": self.env.DEBUG, "pool_pre_ping": True}

    def attribution_ttl_seconds(self) -> int:
        return self.env.ATTRIBUTION_TTL_DAYS * 24 * 60 * 60


def configure_logging(env: ENV | None = None) -> None:
    env = env or get_env()
    logging.basicConfig(
        level=env.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
