from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orglogin.db.init_db import init_db
from orglogin.directory.store import DirectoryCache
from orglogin.logging_config import configure_app_logging
from orglogin.login.errors import LoginError, LoginErrorCode
from orglogin.login.variants import CachedCodeVerifier
from orglogin.routers import health, oauth
from orglogin.schemas.auth import ErrorOut
from orglogin.security.config import load_auth_config
from orglogin.settings import get_settings

logger = logging.getLogger(__name__)


async def login_error_handler(request: Request, exc: LoginError) -> JSONResponse:
    logger.info("Refused %s %s code=%s", request.method, request.url.path, exc.code.value)
    return JSONResponse(
        status_code=exc.code.http_status,
        content=ErrorOut(code=exc.code.value, msg=exc.message).model_dump(),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query params get the same error shape as refused logins."""

    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    message = f"{field}: {first['msg']}" if field and "msg" in first else LoginErrorCode.INVALID_INPUT.default_message

    logger.info("Rejected malformed input %s %s errors=%s", request.method, request.url.path, len(errors))
    return await login_error_handler(request, LoginError(LoginErrorCode.INVALID_INPUT, message))


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.auth_config = load_auth_config(settings.resolved_auth_config_path())
        logger.info("Loaded auth config: %s", settings.resolved_auth_config_path())

        app.state.directory_cache = DirectoryCache.with_ttl(settings.directory_cache_ttl_seconds)
        app.state.code_verifier = CachedCodeVerifier(settings.verification_code_ttl_seconds)

        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield
        # Shutdown
        app.state.directory_cache.clear()

    app = FastAPI(title="orglogin", lifespan=lifespan)
    app.add_exception_handler(LoginError, login_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(oauth.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
