from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the repo).
    - Secrets (the SSO signing key) only ever come from the environment.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    db_url: str | None = None
    auth_config_path: str | None = None
    log_level: str = "INFO"

    sso_secret: str | None = None
    directory_cache_ttl_seconds: int = 300
    verification_code_ttl_seconds: int = 300

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "orglogin.db"
        return f"sqlite:///{db_path}"

    def resolved_auth_config_path(self) -> Path:
        if self.auth_config_path:
            return Path(self.auth_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "auth_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
