from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the repo, bundled catalog).
    - Every field can be overridden with a ``PERMSCOPE_`` environment variable.
    """

    model_config = SettingsConfigDict(env_prefix="PERMSCOPE_", extra="ignore")

    db_url: str | None = None
    catalog_path: str | None = None
    catalog_strict: bool = True
    store_timeout_seconds: float = 5.0
    session_ttl_seconds: float | None = 8 * 3600
    log_level: str = "INFO"
    seed_demo_data: bool = True

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "permscope.db"
        return f"sqlite:///{db_path}"

    def resolved_catalog_path(self) -> Path:
        if self.catalog_path:
            return Path(self.catalog_path)

        return Path(__file__).resolve().parent / "config" / "catalog.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
