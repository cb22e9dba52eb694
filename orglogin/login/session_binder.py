from __future__ import annotations

import logging

from orglogin.login.context import CallerContext, OnlineToken, ResolvedContext, SessionAttributes, SessionToken
from orglogin.sessions.store import SessionNotFound, SessionStore

logger = logging.getLogger(__name__)


class SessionBinder:
    """
    Creates and destroys sessions and carries the resolved org context on them.

    Token value and remaining lifetime come from the session store untouched.
    """

    def __init__(self, store: SessionStore, default_category: str = "PC") -> None:
        self._store = store
        self._default_category = default_category

    def bind(self, user_id: int, context: ResolvedContext, category: str | None = None) -> SessionToken:
        category = category or self._default_category
        handle = self._store.login(user_id, category)

        for key, value in SessionAttributes.from_context(context).items():
            self._store.set_attr(handle, key, value)

        logger.info(
            "Session bound user_id=%s category=%s employee_id=%s company_id=%s",
            user_id,
            category,
            context.employee_id,
            context.current_company_id,
        )
        return SessionToken(token=handle.token, expire=self._store.timeout(handle))

    def unbind(self, token: str) -> None:
        try:
            self._store.logout(token)
        except SessionNotFound:
            logger.debug("Session already expired, nothing to clean up")

    def current(self, token: str | None) -> CallerContext | None:
        """Caller behind ``token``, or None when there is no live session."""

        if not token:
            return None
        handle = self._store.get(token)
        if handle is None:
            return None
        return CallerContext(
            user_id=handle.user_id,
            token=handle.token,
            category=handle.category,
            attributes=SessionAttributes.from_mapping(handle.attributes),
        )

    def online_tokens(self, user_id: int) -> list[OnlineToken]:
        return [
            OnlineToken(
                token=handle.token,
                category=handle.category,
                session_time=handle.created_at,
                expire_time=handle.expires_at,
            )
            for handle in self._store.list_sessions(user_id)
        ]
