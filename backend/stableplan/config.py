"""Stable planner settings, read from the environment or a local .env file."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime configuration. Every field can be overridden by an env var of the same name."""

    # Database
    DATABASE_URL: str = "sqlite:///./stable_planner.db"
    SQL_ECHO: bool = False

    # Bearer tokens
    JWT_SECRET_KEY: str = "change-me-stable-planner"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12  # one working day

    # CORS
    FRONTEND_URL: str = "http://localhost:5173"
    EXTRA_CORS_ORIGINS: List[str] = []

    LOG_LEVEL: str = "INFO"

    # Scheduling
    DEFAULT_SLOT: str = "AM"  # slot used when materializing programmes and checking collisions
    MAX_SCHEDULE_WEEKS: int = 52
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    @property
    def cors_origins(self) -> List[str]:
        return [self.FRONTEND_URL, *self.EXTRA_CORS_ORIGINS]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
