from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Hardware Portal"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")

    DB_URL: str | None = Field(default=None, validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))
    # Seconds a SQLite writer waits on a locked database before giving up.
    DB_BUSY_TIMEOUT: float = 30.0

    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "portal_session"
    SESSION_MAX_AGE: int = 60 * 60 * 8

    BCRYPT_ROUNDS: int = 12
    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 15
    JWT_REFRESH_TTL_DAYS: int = 7

    # Comma separated; kept as plain strings so .env files need no JSON.
    ALLOWED_ORIGINS: str = "http://localhost:5173"
    HARDWARE_POOLS: str = "HWSET1:250,HWSET2:300"

    HOST: str = "0.0.0.0"
    PORT: int = 8089
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'portal.db'}"

    @property
    def allowed_origins(self) -> list[str]:
        return [item.strip() for item in self.ALLOWED_ORIGINS.split(",") if item.strip()]

    @property
    def hardware_pools(self) -> dict[str, int]:
        return parse_pool_spec(self.HARDWARE_POOLS)


def parse_pool_spec(value: str) -> dict[str, int]:
    """Parse ``"HWSET1:250,HWSET2:300"`` into ``{"HWSET1": 250, "HWSET2": 300}``."""

    pools: dict[str, int] = {}
    for chunk in value.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, capacity = chunk.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Invalid pool entry {chunk!r}; expected NAME:CAPACITY")
        try:
            pools[name] = int(capacity)
        except ValueError as exc:
            raise ValueError(f"Invalid capacity for pool {name!r}: {capacity!r}") from exc
    return pools


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.DB_URL is None:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
