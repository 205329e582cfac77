"""
Configuration settings for the User Registry.

Uses Pydantic Settings to load environment variables for the local SQLite
store, the seed dataset, export location, and logging. Paths are resolved
lazily so tests can point a fresh `Settings` at a temporary directory.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Storage
    data_dir: Path = Field(Path("var"), alias="REGISTRY_DATA_DIR")
    db_filename: str = Field("user.db", alias="REGISTRY_DB_FILENAME")
    journal_mode: str = Field("WAL", alias="REGISTRY_JOURNAL_MODE")

    # Seed / export
    seed_path: Optional[Path] = Field(None, alias="REGISTRY_SEED_PATH")
    export_dir: Optional[Path] = Field(None, alias="REGISTRY_EXPORT_DIR")
    export_filename: str = Field("users_export.json", alias="REGISTRY_EXPORT_FILENAME")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    @property
    def export_path(self) -> Path:
        """Export target; falls back to the data directory."""
        return (self.export_dir or self.data_dir) / self.export_filename


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
