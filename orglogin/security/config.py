from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class AuthConfigError(ValueError):
    """Raised when the auth YAML configuration is invalid."""


class HeaderConfig(BaseModel):
    client_header: str = "Authorization"
    client_prefix: str = "Basic"
    token_header: str = "Token"
    token_prefix: str = "Bearer"


class SessionConfig(BaseModel):
    timeout_seconds: int = Field(default=28800, gt=0)
    default_category: str = Field(default="PC", min_length=1, max_length=32)
    concurrent: bool = False


class SsoConfig(BaseModel):
    issuer: str
    audience: str
    algorithms: list[str] = Field(default_factory=lambda: ["HS256"])
    leeway_seconds: int = Field(default=0, ge=0)


class AuthConfigModel(BaseModel):
    headers: HeaderConfig = Field(default_factory=HeaderConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    grant_types: list[str] = Field(default_factory=lambda: ["PASSWORD"])
    sso: SsoConfig | None = None

    @field_validator("grant_types")
    @classmethod
    def _normalize_grant_types(cls, value: list[str]) -> list[str]:
        normalized = [g.strip().upper() for g in value if g.strip()]
        if not normalized:
            raise ValueError("at least one grant type must be enabled")
        return normalized


class AuthConfig:
    """
    Runtime helper around the validated config.
    """

    def __init__(self, model: AuthConfigModel):
        self.model = model

    @property
    def headers(self) -> HeaderConfig:
        return self.model.headers

    @property
    def session(self) -> SessionConfig:
        return self.model.session

    @property
    def sso(self) -> SsoConfig | None:
        return self.model.sso

    def grant_type_enabled(self, grant_type: str) -> bool:
        return grant_type.upper() in self.model.grant_types


def load_auth_config(path: Path) -> AuthConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "auth" not in raw:
        raise AuthConfigError(f"Missing top-level 'auth' key in config: {path}")

    try:
        model = AuthConfigModel.model_validate(raw["auth"] or {})
    except ValidationError as exc:
        raise AuthConfigError(f"Invalid auth config {path}: {exc}") from exc
    return AuthConfig(model)
