from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the repo).
    - Every field can be overridden with a `PROPAUTH_` env var.
    """

    model_config = SettingsConfigDict(env_prefix="PROPAUTH_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    defaults_path: str | None = None
    log_level: str = "INFO"

    auth_provider: Literal["dummy", "jwt"] = "dummy"
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"

    # Container chains are at most transaction -> tenant -> apartment -> floor -> building.
    max_scope_depth: int = 6

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "propauth.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"

    def resolved_defaults_path(self) -> Path:
        if self.defaults_path:
            return Path(self.defaults_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "defaults.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
