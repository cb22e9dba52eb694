"""
Login / logout / switch events.

Publishing is fire-and-forget: ``EventPublisher`` hands the event to every sink
and a failing sink is logged, never raised, so auditing can not break a login.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from orglogin.login.errors import LoginErrorCode
from orglogin.timeutil import utcnow

logger = logging.getLogger(__name__)


class LoginEventKind(str, enum.Enum):
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAIL = "LOGIN_FAIL"
    SWITCH_ORG = "SWITCH_ORG"
    LOGOUT = "LOGOUT"


@dataclass(frozen=True)
class LoginEvent:
    kind: LoginEventKind
    user_id: int | None
    employee_id: int | None = None
    reason: LoginErrorCode | None = None
    message: str | None = None
    occurred_at: datetime = field(default_factory=utcnow)

    @classmethod
    def success(cls, user_id: int, employee_id: int | None) -> LoginEvent:
        return cls(LoginEventKind.LOGIN_SUCCESS, user_id, employee_id)

    @classmethod
    def fail(cls, user_id: int | None, reason: LoginErrorCode, message: str | None = None) -> LoginEvent:
        return cls(LoginEventKind.LOGIN_FAIL, user_id, reason=reason, message=message)

    @classmethod
    def switch_org(cls, user_id: int, employee_id: int | None) -> LoginEvent:
        return cls(LoginEventKind.SWITCH_ORG, user_id, employee_id)

    @classmethod
    def logout(cls, user_id: int, employee_id: int | None = None) -> LoginEvent:
        return cls(LoginEventKind.LOGOUT, user_id, employee_id)


class EventSink(Protocol):
    def publish(self, event: LoginEvent) -> None:
        ...


class EventPublisher:
    def __init__(self, sinks: Iterable[EventSink] = ()) -> None:
        self._sinks = list(sinks)

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def publish(self, event: LoginEvent) -> None:
        for sink in self._sinks:
            try:
                sink.publish(event)
            except Exception:
                logger.warning(
                    "Event sink %s failed kind=%s user_id=%s",
                    type(sink).__name__,
                    event.kind.value,
                    event.user_id,
                    exc_info=True,
                )


class LoggingEventSink:
    def publish(self, event: LoginEvent) -> None:
        if event.kind is LoginEventKind.LOGIN_FAIL:
            logger.info(
                "Login failed user_id=%s reason=%s",
                event.user_id,
                event.reason.value if event.reason else None,
            )
            return
        logger.info("%s user_id=%s employee_id=%s", event.kind.value, event.user_id, event.employee_id)
