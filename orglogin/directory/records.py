"""
Plain records handed out by the directory and identity stores.

The login core works on these snapshots, never on ORM rows, so the stores can
cache them and tests can build them by hand.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class OrgType(str, enum.Enum):
    COMPANY = "COMPANY"
    DEPARTMENT = "DEPARTMENT"


@dataclass(frozen=True)
class OrgRecord:
    id: int
    type: OrgType
    tree_path: str = "/"
    name: str = ""
    sort_value: int = 0
    state: bool = True

    @property
    def is_company(self) -> bool:
        return self.type is OrgType.COMPANY


@dataclass
class EmployeeRecord:
    """
    A user's membership in the directory.

    ``last_dept_id`` / ``last_company_id`` remember the organization the user
    last landed in; they are the only fields the login flow writes back.
    """

    id: int
    user_id: int
    state: bool = True
    last_dept_id: int | None = None
    last_company_id: int | None = None


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    state: bool = True
    nick_name: str | None = None
    mobile: str | None = None
    password_digest: str | None = None


@dataclass(frozen=True)
class ClientRecord:
    id: int
    client_id: str
    state: bool = True
    name: str | None = None
