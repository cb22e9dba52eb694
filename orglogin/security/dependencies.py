from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from orglogin.db.session import get_db
from orglogin.directory.store import DirectoryCache
from orglogin.login.context import CallerContext
from orglogin.login.errors import LoginError, LoginErrorCode
from orglogin.login.variants import CachedCodeVerifier
from orglogin.security.auth import extract_session_token
from orglogin.security.config import AuthConfig
from orglogin.services import LoginServices, build_login_services
from orglogin.settings import get_settings


def get_auth_config(request: Request) -> AuthConfig:
    config = getattr(request.app.state, "auth_config", None)
    if config is None:
        raise RuntimeError("Auth config not loaded. Did app startup run?")
    return config


def get_directory_cache(request: Request) -> DirectoryCache:
    cache = getattr(request.app.state, "directory_cache", None)
    if cache is None:
        raise RuntimeError("Directory cache not initialized. Did app startup run?")
    return cache


def get_code_verifier(request: Request) -> CachedCodeVerifier:
    codes = getattr(request.app.state, "code_verifier", None)
    if codes is None:
        raise RuntimeError("Verification code store not initialized. Did app startup run?")
    return codes


def get_login_services(
    db: Session = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
    cache: DirectoryCache = Depends(get_directory_cache),
    codes: CachedCodeVerifier = Depends(get_code_verifier),
) -> LoginServices:
    return build_login_services(
        db,
        config=config,
        cache=cache,
        codes=codes,
        sso_secret=get_settings().sso_secret,
    )


def get_session_token(request: Request, config: AuthConfig = Depends(get_auth_config)) -> str | None:
    return extract_session_token(request, config)


def get_caller(
    token: str | None = Depends(get_session_token),
    services: LoginServices = Depends(get_login_services),
) -> CallerContext | None:
    """Caller behind the request's session token, or None without a live session."""
    return services.binder.current(token)


def require_caller(caller: CallerContext | None = Depends(get_caller)) -> CallerContext:
    if caller is None:
        raise LoginError(LoginErrorCode.UNAUTHENTICATED)
    return caller
