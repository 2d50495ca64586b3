from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults point at a local SQLite file and the sample config shipped in ``config/``.
    - Override via ``ROLEGRAPH_*`` environment variables.
    - Guard rules and RBAC options (guest role, force reload, ...) live in the
      security config file, not here.
    """

    model_config = SettingsConfigDict(env_prefix="ROLEGRAPH_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "rolegraph.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
