import logging
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_FILE = str(Path(__file__).parent / "data" / "seed_catalog.json")


class Settings(BaseSettings):
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    catalog_file: str = DEFAULT_CATALOG_FILE

    storage_backend: Literal["memory", "sqlite"] = "memory"
    database_path: str = "cardpick.db"

    log_level: str = "INFO"
    best_for_limit: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings()
