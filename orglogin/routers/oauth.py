from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from orglogin.db.session import get_db
from orglogin.login.context import CallerContext
from orglogin.login.errors import LoginError
from orglogin.schemas.auth import LoginParam, LoginResultOut, OnlineTokenOut
from orglogin.security.auth import extract_client_auth
from orglogin.security.config import AuthConfig
from orglogin.security.dependencies import (
    get_auth_config,
    get_caller,
    get_login_services,
    get_session_token,
    require_caller,
)
from orglogin.services import LoginServices

router = APIRouter(prefix="/oauth", tags=["oauth"])


@router.post("/login", response_model=LoginResultOut)
def login(
    param: LoginParam,
    request: Request,
    config: AuthConfig = Depends(get_auth_config),
    services: LoginServices = Depends(get_login_services),
    db: Session = Depends(get_db),
) -> LoginResultOut:
    try:
        token = services.orchestrator.login(param, extract_client_auth(request, config))
    except LoginError:
        # Keep the failure event; nothing else was written.
        db.commit()
        raise
    db.commit()
    return LoginResultOut(token=token.token, expire=token.expire)


@router.post("/logout", response_model=bool)
def logout(
    token: str | None = Depends(get_session_token),
    services: LoginServices = Depends(get_login_services),
    db: Session = Depends(get_db),
) -> bool:
    result = services.orchestrator.logout(token)
    db.commit()
    return result


@router.put("/switch-org", response_model=LoginResultOut)
def switch_org(
    org_id: int | None = Query(default=None, alias="orgId"),
    caller: CallerContext | None = Depends(get_caller),
    services: LoginServices = Depends(get_login_services),
    db: Session = Depends(get_db),
) -> LoginResultOut:
    try:
        token = services.switcher.switch_org(caller, org_id)
    except LoginError:
        db.commit()
        raise
    db.commit()
    return LoginResultOut(token=token.token, expire=token.expire)


@router.get("/online-tokens", response_model=list[OnlineTokenOut])
def online_tokens(
    caller: CallerContext = Depends(require_caller),
    services: LoginServices = Depends(get_login_services),
) -> list[OnlineTokenOut]:
    return [OnlineTokenOut.model_validate(t) for t in services.binder.online_tokens(caller.user_id)]
