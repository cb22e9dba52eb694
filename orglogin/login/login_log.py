from __future__ import annotations

from sqlalchemy.orm import Session

from orglogin.login.events import LoginEvent
from orglogin.models.session import LoginLog


class LoginLogSink:
    """
    Record every event as a ``login_logs`` row.

    Rows join the request's unit of work; routers commit after refusals too, so
    failure events survive even though the operation itself did not happen.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def publish(self, event: LoginEvent) -> None:
        self._db.add(
            LoginLog(
                kind=event.kind.value,
                user_id=event.user_id,
                employee_id=event.employee_id,
                reason=event.reason.value if event.reason else None,
                description=event.message,
                created_at=event.occurred_at,
            )
        )
