"""
Org Resolver: pick the department, company and top company a login lands in.

Resolution order for an employee:

1. Department: ``last_dept_id`` verbatim when set (not re-validated), else the
   default among the employee's departments.
2. Company: ``last_company_id`` when set, else the company owning the resolved
   department, else the default among companies the employee is attached to
   directly.
3. Top company: root of the company's tree path (the company itself when it
   has no ancestor, or when the root record is gone).

Choices made in steps 1-2 are written back to the employee, in a single
update, only when something changed.
"""

from __future__ import annotations

import logging

from orglogin.directory.records import EmployeeRecord, OrgRecord
from orglogin.directory.selection import LowestIdSelection, SelectionPolicy
from orglogin.directory.store import DirectoryStore
from orglogin.directory.tree import top_node_id
from orglogin.login.context import ResolvedContext

logger = logging.getLogger(__name__)


def resolve_top_company_id(
    directory: DirectoryStore,
    company: OrgRecord | None,
    company_id: int | None = None,
) -> int | None:
    """
    Top company for ``company``.

    Without a company record only ``company_id`` is known, and it is its own top.
    """

    if company is None:
        return company_id

    root_id = top_node_id(company.tree_path)
    if root_id is None:
        return company.id

    root = directory.get_org_by_id(root_id)
    return root.id if root is not None else company.id


class OrgResolver:
    def __init__(self, directory: DirectoryStore, selection: SelectionPolicy | None = None) -> None:
        self._directory = directory
        self._selection = selection or LowestIdSelection()

    def resolve(self, employee: EmployeeRecord | None) -> ResolvedContext:
        if employee is None:
            return ResolvedContext()

        changed = False

        if employee.last_dept_id is not None:
            dept_id: int | None = employee.last_dept_id
        else:
            depts = self._directory.find_depts_by_employee(employee.id)
            default_dept = self._selection.select_default_org(depts, None)
            dept_id = default_dept.id if default_dept is not None else None
            employee.last_dept_id = dept_id
            changed = dept_id is not None

        company: OrgRecord | None
        if employee.last_company_id is not None:
            company_id: int | None = employee.last_company_id
            company = self._directory.get_org_by_id(company_id)
        else:
            if dept_id is not None:
                company = self._directory.get_company_by_dept(dept_id)
            else:
                # Not in any department: the employee may hang directly off a company, or off nothing.
                companies = self._directory.find_companies_by_employee(employee.id)
                company = self._selection.select_default_org(companies, employee.last_company_id)
            company_id = company.id if company is not None else None
            employee.last_company_id = company_id
            changed = changed or company_id is not None

        top_company_id = resolve_top_company_id(self._directory, company, company_id)

        if changed:
            self._directory.update_employee(employee)

        logger.debug(
            "Resolved org employee_id=%s dept_id=%s company_id=%s top_company_id=%s updated=%s",
            employee.id,
            dept_id,
            company_id,
            top_company_id,
            changed,
        )
        return ResolvedContext(
            employee_id=employee.id,
            current_dept_id=dept_id,
            current_company_id=company_id,
            current_top_company_id=top_company_id,
        )
