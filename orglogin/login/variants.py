"""
Login variants.

A variant knows how one ``grant_type`` proves identity. The orchestrator calls
the same four steps on every variant:

    check_param(param)            shape of the input       -> INVALID_INPUT
    check_credential(param)       proof not needing a user -> CREDENTIAL_REJECTED
    get_user(param)               look the account up (None when absent)
    check_user(param, user)       proof needing the user; returns the user

Variants are plain strategy objects; they share behavior by composition.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from collections.abc import Callable, Iterable
from typing import Any, Protocol

import jwt

from orglogin.directory.cache import TTLCache
from orglogin.directory.identity import UserDirectory
from orglogin.directory.records import UserRecord
from orglogin.login.errors import LoginError, LoginErrorCode
from orglogin.schemas.auth import LoginParam

logger = logging.getLogger(__name__)

_MOBILE_RE = re.compile(r"^\+?\d{6,20}$")


class LoginVariant(Protocol):
    grant_type: str

    def check_param(self, param: LoginParam) -> None:
        ...

    def check_credential(self, param: LoginParam) -> None:
        ...

    def get_user(self, param: LoginParam) -> UserRecord | None:
        ...

    def check_user(self, param: LoginParam, user: UserRecord | None) -> UserRecord:
        ...


PasswordVerifier = Callable[[str, str], bool]


def sha256_digest(raw_password: str) -> str:
    return hashlib.sha256(raw_password.encode("utf-8")).hexdigest()


def sha256_password_verifier(raw_password: str, digest: str) -> bool:
    """Default verifier: hex SHA-256 digest. Swap in a real hasher in production."""

    return hmac.compare_digest(sha256_digest(raw_password), digest)


class CodeVerifier(Protocol):
    def verify(self, key: str, code: str) -> bool:
        ...


class CachedCodeVerifier:
    """
    One-time verification codes (captcha answers, SMS codes) kept in a TTL cache.

    Issuing the code (drawing the captcha, sending the SMS) happens elsewhere;
    it only has to call ``issue``.
    """

    def __init__(self, ttl_seconds: float) -> None:
        self._codes: TTLCache[str, str] = TTLCache(ttl_seconds)

    def issue(self, key: str, code: str) -> None:
        self._codes.put(key, code)

    def verify(self, key: str, code: str) -> bool:
        expected = self._codes.get(key)
        if expected is None:
            return False
        # Consumed on first attempt, right or wrong.
        self._codes.invalidate(key)
        return hmac.compare_digest(expected.lower(), code.lower())


def _require(value: str | None, message: str) -> str:
    if not value:
        raise LoginError(LoginErrorCode.INVALID_INPUT, message)
    return value


class PasswordLogin:
    grant_type = "PASSWORD"

    def __init__(self, users: UserDirectory, verify_password: PasswordVerifier = sha256_password_verifier) -> None:
        self._users = users
        self._verify_password = verify_password

    def check_param(self, param: LoginParam) -> None:
        _require(param.username, "Username is required.")
        _require(param.password, "Password is required.")

    def check_credential(self, param: LoginParam) -> None:
        return None

    def get_user(self, param: LoginParam) -> UserRecord | None:
        return self._users.get_user_by_username(param.username or "")

    def check_user(self, param: LoginParam, user: UserRecord | None) -> UserRecord:
        if user is None or not user.password_digest:
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "Incorrect username or password.")
        if not self._verify_password(param.password or "", user.password_digest):
            logger.info("Password mismatch user_id=%s", user.id)
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "Incorrect username or password.")
        return user


class CaptchaLogin:
    """Username + password, gated by a captcha answer issued under ``param.key``."""

    grant_type = "CAPTCHA"

    def __init__(
        self,
        users: UserDirectory,
        codes: CodeVerifier,
        verify_password: PasswordVerifier = sha256_password_verifier,
    ) -> None:
        self._password = PasswordLogin(users, verify_password)
        self._codes = codes

    def check_param(self, param: LoginParam) -> None:
        self._password.check_param(param)
        _require(param.key, "Captcha key is required.")
        _require(param.code, "Captcha code is required.")

    def check_credential(self, param: LoginParam) -> None:
        if not self._codes.verify(param.key or "", param.code or ""):
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "Captcha is incorrect or expired.")

    def get_user(self, param: LoginParam) -> UserRecord | None:
        return self._password.get_user(param)

    def check_user(self, param: LoginParam, user: UserRecord | None) -> UserRecord:
        return self._password.check_user(param, user)


class MobileLogin:
    """Mobile number + SMS code issued under the mobile number."""

    grant_type = "MOBILE"

    def __init__(self, users: UserDirectory, codes: CodeVerifier) -> None:
        self._users = users
        self._codes = codes

    def check_param(self, param: LoginParam) -> None:
        mobile = _require(param.mobile, "Mobile number is required.")
        if not _MOBILE_RE.match(mobile):
            raise LoginError(LoginErrorCode.INVALID_INPUT, "Mobile number is malformed.")
        _require(param.code, "Verification code is required.")

    def check_credential(self, param: LoginParam) -> None:
        if not self._codes.verify(param.mobile or "", param.code or ""):
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "Verification code is incorrect or expired.")

    def get_user(self, param: LoginParam) -> UserRecord | None:
        return self._users.get_user_by_mobile(param.mobile or "")

    def check_user(self, param: LoginParam, user: UserRecord | None) -> UserRecord:
        if user is None:
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "No account is registered for this mobile number.")
        return user


class SsoLogin:
    """
    Login with a token signed by a trusted single-sign-on service.

    The token must carry ``iss``/``aud``/``exp`` and name the local account in
    ``preferred_username`` (or ``sub``).
    """

    grant_type = "SSO"

    def __init__(
        self,
        users: UserDirectory,
        *,
        secret: str,
        issuer: str,
        audience: str,
        algorithms: Iterable[str] = ("HS256",),
        leeway_seconds: int = 0,
    ) -> None:
        self._users = users
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._algorithms = list(algorithms)
        self._leeway = leeway_seconds
        # Set by check_credential, consumed by the get_user call of the same login.
        self._verified: tuple[str, dict[str, Any]] | None = None

    def _take_claims(self, token: str) -> dict[str, Any]:
        verified, self._verified = self._verified, None
        if verified is not None and verified[0] == token:
            return verified[1]
        return self._decode(token)

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"require": ["exp", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as e:
            logger.info("SSO token expired")
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "SSO token expired.") from e
        except jwt.InvalidTokenError as e:
            logger.info("SSO token invalid: %s", type(e).__name__)
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "SSO token is invalid.") from e

    def check_param(self, param: LoginParam) -> None:
        _require(param.sso_token, "SSO token is required.")

    def check_credential(self, param: LoginParam) -> None:
        token = param.sso_token or ""
        self._verified = None
        self._verified = (token, self._decode(token))

    def get_user(self, param: LoginParam) -> UserRecord | None:
        claims = self._take_claims(param.sso_token or "")
        username = claims.get("preferred_username") or claims.get("sub")
        if not username:
            return None
        return self._users.get_user_by_username(str(username))

    def check_user(self, param: LoginParam, user: UserRecord | None) -> UserRecord:
        if user is None:
            raise LoginError(LoginErrorCode.CREDENTIAL_REJECTED, "SSO account is not linked to a local user.")
        return user


class VariantRegistry:
    def __init__(self, variants: Iterable[LoginVariant], enabled: Iterable[str] | None = None) -> None:
        allowed = {g.upper() for g in enabled} if enabled is not None else None
        self._variants: dict[str, LoginVariant] = {}
        for variant in variants:
            grant_type = variant.grant_type.upper()
            if allowed is not None and grant_type not in allowed:
                logger.debug("Login variant disabled by config grant_type=%s", grant_type)
                continue
            self._variants[grant_type] = variant

    def get(self, grant_type: str | None) -> LoginVariant:
        variant = self._variants.get((grant_type or "").strip().upper())
        if variant is None:
            raise LoginError(LoginErrorCode.INVALID_INPUT, f"Unsupported grant type {grant_type!r}.")
        return variant

    def grant_types(self) -> list[str]:
        return sorted(self._variants)

    def __contains__(self, grant_type: object) -> bool:
        return isinstance(grant_type, str) and grant_type.upper() in self._variants
