from __future__ import annotations

import enum
from http import HTTPStatus


class LoginErrorCode(str, enum.Enum):
    INVALID_INPUT = "INVALID_INPUT"
    UNKNOWN_CLIENT = "UNKNOWN_CLIENT"
    CLIENT_DISABLED = "CLIENT_DISABLED"
    CREDENTIAL_REJECTED = "CREDENTIAL_REJECTED"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    NOT_MEMBER = "NOT_MEMBER"
    EMPLOYEE_DISABLED = "EMPLOYEE_DISABLED"
    ORG_NOT_FOUND = "ORG_NOT_FOUND"

    @property
    def http_status(self) -> int:
        return int(_HTTP_STATUS[self])

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_HTTP_STATUS: dict[LoginErrorCode, HTTPStatus] = {
    LoginErrorCode.INVALID_INPUT: HTTPStatus.BAD_REQUEST,
    LoginErrorCode.UNKNOWN_CLIENT: HTTPStatus.UNAUTHORIZED,
    LoginErrorCode.CLIENT_DISABLED: HTTPStatus.FORBIDDEN,
    LoginErrorCode.CREDENTIAL_REJECTED: HTTPStatus.UNAUTHORIZED,
    LoginErrorCode.ACCOUNT_DISABLED: HTTPStatus.FORBIDDEN,
    LoginErrorCode.UNAUTHENTICATED: HTTPStatus.UNAUTHORIZED,
    LoginErrorCode.SESSION_EXPIRED: HTTPStatus.UNAUTHORIZED,
    LoginErrorCode.NOT_MEMBER: HTTPStatus.FORBIDDEN,
    LoginErrorCode.EMPLOYEE_DISABLED: HTTPStatus.FORBIDDEN,
    LoginErrorCode.ORG_NOT_FOUND: HTTPStatus.NOT_FOUND,
}

_DEFAULT_MESSAGES: dict[LoginErrorCode, str] = {
    LoginErrorCode.INVALID_INPUT: "Invalid login parameters.",
    LoginErrorCode.UNKNOWN_CLIENT: "Configure a valid client id and client secret.",
    LoginErrorCode.CLIENT_DISABLED: "Client is disabled.",
    LoginErrorCode.CREDENTIAL_REJECTED: "Credentials were rejected.",
    LoginErrorCode.ACCOUNT_DISABLED: "Your account has been disabled, please contact an administrator.",
    LoginErrorCode.UNAUTHENTICATED: "Authentication required.",
    LoginErrorCode.SESSION_EXPIRED: "Session expired, please log in again.",
    LoginErrorCode.NOT_MEMBER: "You do not belong to this company and cannot switch.",
    LoginErrorCode.EMPLOYEE_DISABLED: "Your employee account has been disabled.",
    LoginErrorCode.ORG_NOT_FOUND: "Organization does not exist.",
}


class LoginError(Exception):
    """
    A refused login, logout or switch.

    Always a recoverable, user-visible outcome: the HTTP layer renders it as
    ``{"code": ..., "msg": ...}`` with ``code.http_status``.
    """

    def __init__(self, code: LoginErrorCode, message: str | None = None) -> None:
        self.code = code
        self.message = message or code.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"LoginError({self.code.value}, {self.message!r})"
