from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar


@dataclass(frozen=True)
class ResolvedContext:
    """
    The organizational context a session is bound to.

    Every field may be None; None means "no binding" for that level.
    """

    employee_id: int | None = None
    current_dept_id: int | None = None
    current_company_id: int | None = None
    current_top_company_id: int | None = None


@dataclass(frozen=True)
class SessionAttributes:
    """
    Typed view over the session's key/value bag.

    The key names are the wire names other services read from the session.
    """

    TOP_COMPANY_ID: ClassVar[str] = "topCompanyId"
    COMPANY_ID: ClassVar[str] = "companyId"
    DEPT_ID: ClassVar[str] = "deptId"
    EMPLOYEE_ID: ClassVar[str] = "employeeId"

    top_company_id: int | None = None
    company_id: int | None = None
    dept_id: int | None = None
    employee_id: int | None = None

    @classmethod
    def from_context(cls, context: ResolvedContext) -> SessionAttributes:
        return cls(
            top_company_id=context.current_top_company_id,
            company_id=context.current_company_id,
            dept_id=context.current_dept_id,
            employee_id=context.employee_id,
        )

    @classmethod
    def from_mapping(cls, attrs: Mapping[str, object]) -> SessionAttributes:
        def _int(key: str) -> int | None:
            value = attrs.get(key)
            return int(value) if value is not None else None

        return cls(
            top_company_id=_int(cls.TOP_COMPANY_ID),
            company_id=_int(cls.COMPANY_ID),
            dept_id=_int(cls.DEPT_ID),
            employee_id=_int(cls.EMPLOYEE_ID),
        )

    def items(self) -> list[tuple[str, int]]:
        """Non-null attributes only: absent fields are omitted, never stored as null."""

        pairs = [
            (self.TOP_COMPANY_ID, self.top_company_id),
            (self.COMPANY_ID, self.company_id),
            (self.DEPT_ID, self.dept_id),
            (self.EMPLOYEE_ID, self.employee_id),
        ]
        return [(key, value) for key, value in pairs if value is not None]


@dataclass(frozen=True)
class SessionToken:
    token: str
    expire: int
    """Remaining time to live in seconds, as reported by the session store."""


@dataclass(frozen=True)
class CallerContext:
    """The authenticated caller behind a request, resolved from its session token."""

    user_id: int
    token: str
    category: str
    attributes: SessionAttributes = field(default_factory=SessionAttributes)


TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class OnlineToken:
    token: str
    category: str
    session_time: datetime
    expire_time: datetime

    @property
    def session_str(self) -> str:
        return self.session_time.strftime(TIME_FORMAT)

    @property
    def expire_str(self) -> str:
        return self.expire_time.strftime(TIME_FORMAT)
