"""
Directory Store: employees, organizations and memberships.

``SqlDirectoryStore`` reads the ORM tables directly. ``CachedDirectoryStore``
puts a process-wide read-through cache (``DirectoryCache``) in front of any
store. Every lookup returns None on a miss; callers treat absence as a normal
branch.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from orglogin.directory.cache import TTLCache
from orglogin.directory.records import EmployeeRecord, OrgRecord, OrgType
from orglogin.directory.tree import ancestor_ids
from orglogin.models.directory import Employee, Org, employee_orgs

logger = logging.getLogger(__name__)


class DirectoryStore(Protocol):
    def list_employees_by_user(self, user_id: int) -> list[EmployeeRecord]:
        ...

    def get_employee_by_id(self, employee_id: int) -> EmployeeRecord | None:
        ...

    def update_employee(self, employee: EmployeeRecord) -> None:
        ...

    def find_depts_by_employee(self, employee_id: int) -> list[OrgRecord]:
        ...

    def find_companies_by_employee(self, employee_id: int) -> list[OrgRecord]:
        ...

    def get_company_by_dept(self, dept_id: int) -> OrgRecord | None:
        ...

    def get_org_by_id(self, org_id: int) -> OrgRecord | None:
        ...


def _employee_record(row: Employee) -> EmployeeRecord:
    return EmployeeRecord(
        id=row.id,
        user_id=row.user_id,
        state=row.state,
        last_dept_id=row.last_dept_id,
        last_company_id=row.last_company_id,
    )


def _org_record(row: Org) -> OrgRecord:
    return OrgRecord(
        id=row.id,
        type=row.type,
        tree_path=row.tree_path,
        name=row.name,
        sort_value=row.sort_value,
        state=row.state,
    )


class SqlDirectoryStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def list_employees_by_user(self, user_id: int) -> list[EmployeeRecord]:
        stmt = select(Employee).where(Employee.user_id == user_id).order_by(Employee.id)
        return [_employee_record(row) for row in self._db.scalars(stmt).all()]

    def get_employee_by_id(self, employee_id: int) -> EmployeeRecord | None:
        row = self._db.get(Employee, employee_id)
        return _employee_record(row) if row is not None else None

    def update_employee(self, employee: EmployeeRecord) -> None:
        row = self._db.get(Employee, employee.id)
        if row is None:
            logger.warning("Employee vanished before update employee_id=%s", employee.id)
            return
        # Both fields always travel together.
        row.last_dept_id = employee.last_dept_id
        row.last_company_id = employee.last_company_id
        self._db.flush()
        logger.debug(
            "Employee org preference saved employee_id=%s last_dept_id=%s last_company_id=%s",
            employee.id,
            employee.last_dept_id,
            employee.last_company_id,
        )

    def _orgs_of_employee(self, employee_id: int, org_type: OrgType) -> list[OrgRecord]:
        stmt = (
            select(Org)
            .join(employee_orgs, employee_orgs.c.org_id == Org.id)
            .where(employee_orgs.c.employee_id == employee_id, Org.type == org_type, Org.state.is_(True))
            .order_by(Org.sort_value, Org.id)
        )
        return [_org_record(row) for row in self._db.scalars(stmt).all()]

    def find_depts_by_employee(self, employee_id: int) -> list[OrgRecord]:
        return self._orgs_of_employee(employee_id, OrgType.DEPARTMENT)

    def find_companies_by_employee(self, employee_id: int) -> list[OrgRecord]:
        return self._orgs_of_employee(employee_id, OrgType.COMPANY)

    def get_company_by_dept(self, dept_id: int) -> OrgRecord | None:
        """Nearest COMPANY ancestor of the department, or None."""

        dept = self._db.get(Org, dept_id)
        if dept is None:
            return None

        ids = ancestor_ids(dept.tree_path)
        if not ids:
            return None

        stmt = select(Org).where(Org.id.in_(ids), Org.type == OrgType.COMPANY)
        companies = {row.id: row for row in self._db.scalars(stmt).all()}
        for candidate in reversed(ids):
            if candidate in companies:
                return _org_record(companies[candidate])
        return None

    def get_org_by_id(self, org_id: int) -> OrgRecord | None:
        row = self._db.get(Org, org_id)
        return _org_record(row) if row is not None else None


@dataclass
class DirectoryCache:
    """Process-wide caches shared by every request's ``CachedDirectoryStore``."""

    orgs: TTLCache[int, OrgRecord]
    employees: TTLCache[int, EmployeeRecord]
    dept_companies: TTLCache[int, OrgRecord]

    @classmethod
    def with_ttl(cls, ttl_seconds: float) -> DirectoryCache:
        return cls(
            orgs=TTLCache(ttl_seconds),
            employees=TTLCache(ttl_seconds),
            dept_companies=TTLCache(ttl_seconds),
        )

    def clear(self) -> None:
        logger.info(
            "Clearing directory cache orgs=%s employees=%s dept_companies=%s",
            len(self.orgs),
            len(self.employees),
            len(self.dept_companies),
        )
        self.orgs.clear()
        self.employees.clear()
        self.dept_companies.clear()


class CachedDirectoryStore:
    """
    Read-through cache over another store.

    Single-record reads are cached; membership lists are not. Employee records
    are mutable, so they are copied on the way in and out of the cache.
    """

    def __init__(self, store: DirectoryStore, cache: DirectoryCache) -> None:
        self._store = store
        self._cache = cache

    def list_employees_by_user(self, user_id: int) -> list[EmployeeRecord]:
        return self._store.list_employees_by_user(user_id)

    def get_employee_by_id(self, employee_id: int) -> EmployeeRecord | None:
        cached = self._cache.employees.get(employee_id)
        if cached is not None:
            return dataclasses.replace(cached)

        employee = self._store.get_employee_by_id(employee_id)
        if employee is not None:
            self._cache.employees.put(employee_id, dataclasses.replace(employee))
        return employee

    def update_employee(self, employee: EmployeeRecord) -> None:
        self._store.update_employee(employee)
        self._cache.employees.invalidate(employee.id)

    def find_depts_by_employee(self, employee_id: int) -> list[OrgRecord]:
        return self._store.find_depts_by_employee(employee_id)

    def find_companies_by_employee(self, employee_id: int) -> list[OrgRecord]:
        return self._store.find_companies_by_employee(employee_id)

    def get_company_by_dept(self, dept_id: int) -> OrgRecord | None:
        return self._cache.dept_companies.get_or_load(dept_id, self._store.get_company_by_dept)

    def get_org_by_id(self, org_id: int) -> OrgRecord | None:
        return self._cache.orgs.get_or_load(org_id, self._store.get_org_by_id)
