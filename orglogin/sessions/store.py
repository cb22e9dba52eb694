"""
Session store: opaque tokens with a key/value attribute bag.

``SqlSessionStore`` keeps sessions in the ``login_sessions`` table. Expiry is
the store's own policy (a fixed timeout from login); the rest of the app only
sees the remaining seconds.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from orglogin.models.session import LoginSession
from orglogin.timeutil import utcnow

logger = logging.getLogger(__name__)


class SessionNotFound(LookupError):
    """No live session for the token (never issued, logged out, or expired)."""


@dataclass
class SessionHandle:
    token: str
    user_id: int
    category: str
    created_at: datetime
    expires_at: datetime
    attributes: dict[str, object] = field(default_factory=dict)


class SessionStore(Protocol):
    def login(self, user_id: int, category: str) -> SessionHandle:
        ...

    def get(self, token: str) -> SessionHandle | None:
        ...

    def set_attr(self, handle: SessionHandle, key: str, value: object) -> None:
        ...

    def timeout(self, handle: SessionHandle) -> int:
        ...

    def logout(self, token: str) -> None:
        ...

    def list_sessions(self, user_id: int) -> list[SessionHandle]:
        ...


def new_token() -> str:
    return secrets.token_urlsafe(32)


def _handle(row: LoginSession) -> SessionHandle:
    return SessionHandle(
        token=row.token,
        user_id=row.user_id,
        category=row.category,
        created_at=row.created_at,
        expires_at=row.expires_at,
        attributes=dict(row.attributes or {}),
    )


class SqlSessionStore:
    def __init__(
        self,
        db: Session,
        *,
        timeout_seconds: int,
        concurrent: bool = False,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[], str] = new_token,
    ) -> None:
        self._db = db
        self._timeout = timedelta(seconds=timeout_seconds)
        self._concurrent = concurrent
        self._clock = clock
        self._token_factory = token_factory

    def _row(self, token: str) -> LoginSession | None:
        row = self._db.execute(select(LoginSession).where(LoginSession.token == token)).scalar_one_or_none()
        if row is None or row.expires_at <= self._clock():
            return None
        return row

    def login(self, user_id: int, category: str) -> SessionHandle:
        now = self._clock()
        purged = self._db.execute(
            delete(LoginSession).where(LoginSession.user_id == user_id, LoginSession.expires_at <= now)
        )
        if purged.rowcount:
            logger.debug("Purged %s expired session(s) user_id=%s", purged.rowcount, user_id)

        if not self._concurrent:
            # Replace this user's sessions in the same category; other categories keep theirs.
            result = self._db.execute(
                delete(LoginSession).where(LoginSession.user_id == user_id, LoginSession.category == category)
            )
            if result.rowcount:
                logger.debug("Replaced %s session(s) user_id=%s category=%s", result.rowcount, user_id, category)

        row = LoginSession(
            token=self._token_factory(),
            user_id=user_id,
            category=category,
            attributes={},
            created_at=now,
            expires_at=now + self._timeout,
        )
        self._db.add(row)
        self._db.flush()
        return _handle(row)

    def get(self, token: str) -> SessionHandle | None:
        row = self._row(token)
        return _handle(row) if row is not None else None

    def set_attr(self, handle: SessionHandle, key: str, value: object) -> None:
        row = self._row(handle.token)
        if row is None:
            raise SessionNotFound(f"Session expired before attribute {key!r} could be set")
        # Reassign: in-place mutation of a JSON column is not tracked.
        attrs = dict(row.attributes or {})
        attrs[key] = value
        row.attributes = attrs
        self._db.flush()
        handle.attributes[key] = value

    def timeout(self, handle: SessionHandle) -> int:
        remaining = (handle.expires_at - self._clock()).total_seconds()
        return max(int(remaining), 0)

    def logout(self, token: str) -> None:
        row = self._row(token)
        if row is None:
            raise SessionNotFound("No live session for token")
        self._db.delete(row)
        self._db.flush()

    def list_sessions(self, user_id: int) -> list[SessionHandle]:
        stmt = (
            select(LoginSession)
            .where(LoginSession.user_id == user_id, LoginSession.expires_at > self._clock())
            .order_by(LoginSession.created_at, LoginSession.id)
        )
        return [_handle(row) for row in self._db.scalars(stmt).all()]
