from __future__ import annotations

import logging
from functools import lru_cache
from typing import Sequence

from fastapi import Request
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.task_controller import TaskController
from core.storage.task_store import TaskStore

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Defaults let the API start without any environment; tests point
    # database_url at a throwaway SQLite file.
    database_url: str = Field(
        default="sqlite+aiosqlite:///./tasks.db", alias="DATABASE_URL"
    )
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    persistence_timeout_s: float = Field(default=10.0, alias="PERSISTENCE_TIMEOUT_S")
    create_schema: bool = Field(default=True, alias="CREATE_SCHEMA")
    allowed_origins_raw: str = Field(
        default="http://localhost:5173", alias="ALLOWED_ORIGINS"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    db_echo: bool = Field(default=False, alias="DB_ECHO")

    @property
    def allowed_origins(self) -> Sequence[str]:
        raw = self.allowed_origins_raw or ""
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def get_store(request: Request) -> TaskStore:
    """The process-wide store opened by the lifespan."""
    return request.app.state.task_store


def get_controller(request: Request) -> TaskController:
    return TaskController(get_store(request), timeout_s=settings.persistence_timeout_s)
