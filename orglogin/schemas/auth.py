from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginParam(BaseModel):
    """
    Login request body.

    Which fields are required depends on ``grant_type``; each login variant
    checks its own subset.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    grant_type: str = "PASSWORD"
    username: str | None = None
    password: str | None = None

    # Captcha / SMS verification: the code issued under ``key`` (or ``mobile``).
    key: str | None = None
    code: str | None = None
    mobile: str | None = None

    sso_token: str | None = None

    # Session category ("PC", "APP", ...); config default when omitted.
    category: str | None = Field(default=None, max_length=32)


class LoginResultOut(BaseModel):
    token: str
    expire: int


class OnlineTokenOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    category: str
    session_time: datetime
    session_str: str
    expire_time: datetime
    expire_str: str


class ErrorOut(BaseModel):
    code: str
    msg: str
