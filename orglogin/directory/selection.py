"""
Selection policies for "which membership" and "which default org".

Both choices used to depend on whatever order the storage layer returned.
They are explicit, injectable policies here so a login is reproducible no
matter how rows come back from the database.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from orglogin.directory.records import EmployeeRecord, OrgRecord


class SelectionPolicy(Protocol):
    def select_employee(self, employees: Sequence[EmployeeRecord]) -> EmployeeRecord | None:
        ...

    def select_default_org(self, orgs: Sequence[OrgRecord], preferred_id: int | None = None) -> OrgRecord | None:
        ...


def _preferred(orgs: Sequence[OrgRecord], preferred_id: int | None) -> OrgRecord | None:
    if preferred_id is None:
        return None
    for org in orgs:
        if org.id == preferred_id:
            return org
    return None


@dataclass(frozen=True)
class LowestIdSelection:
    """
    Default policy.

    - Membership: the employee row with the lowest id (the oldest membership).
    - Default org: ``preferred_id`` when it is among the candidates, else the
      lowest ``(sort_value, id)``.
    """

    def select_employee(self, employees: Sequence[EmployeeRecord]) -> EmployeeRecord | None:
        if not employees:
            return None
        return min(employees, key=lambda e: e.id)

    def select_default_org(self, orgs: Sequence[OrgRecord], preferred_id: int | None = None) -> OrgRecord | None:
        if not orgs:
            return None
        preferred = _preferred(orgs, preferred_id)
        if preferred is not None:
            return preferred
        return min(orgs, key=lambda o: (o.sort_value, o.id))


@dataclass(frozen=True)
class FirstInOrderSelection:
    """Trust the order the store returned: always index 0 (preferred org first)."""

    def select_employee(self, employees: Sequence[EmployeeRecord]) -> EmployeeRecord | None:
        return employees[0] if employees else None

    def select_default_org(self, orgs: Sequence[OrgRecord], preferred_id: int | None = None) -> OrgRecord | None:
        if not orgs:
            return None
        return _preferred(orgs, preferred_id) or orgs[0]
