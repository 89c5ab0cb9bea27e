from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config.

    - Loaded from environment variables (``DESIGN_SYNC_*``)
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DESIGN_SYNC_", extra="ignore")

    # Design Store backend. "memory" keeps everything in-process (lost on restart).
    store: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./design_sync.db"

    host: str = "127.0.0.1"
    port: int = 8000

    # Debugging
    log_level: str = "INFO"
    debug_log_msgs: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
