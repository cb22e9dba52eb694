from __future__ import annotations

import logging
from typing import NoReturn

from orglogin.directory.identity import UserDirectory
from orglogin.directory.records import EmployeeRecord
from orglogin.directory.selection import LowestIdSelection, SelectionPolicy
from orglogin.directory.store import DirectoryStore
from orglogin.login.context import CallerContext, ResolvedContext, SessionToken
from orglogin.login.errors import LoginError, LoginErrorCode
from orglogin.login.events import EventPublisher, LoginEvent
from orglogin.login.org_resolver import resolve_top_company_id
from orglogin.login.session_binder import SessionBinder

logger = logging.getLogger(__name__)


class OrgSwitcher:
    """
    Move a logged-in caller to another company or department.

    ``target_org_id=None`` clears the org context entirely, and "no org" becomes
    the employee's remembered choice. The employee record is always rewritten
    and a fresh session is bound in the caller's category.
    """

    def __init__(
        self,
        *,
        users: UserDirectory,
        directory: DirectoryStore,
        binder: SessionBinder,
        events: EventPublisher,
        selection: SelectionPolicy | None = None,
    ) -> None:
        self._users = users
        self._directory = directory
        self._binder = binder
        self._events = events
        self._selection = selection or LowestIdSelection()

    def switch_org(self, caller: CallerContext | None, target_org_id: int | None) -> SessionToken:
        if caller is None:
            raise LoginError(LoginErrorCode.UNAUTHENTICATED)

        user = self._users.get_user_by_id(caller.user_id)
        if user is None:
            raise LoginError(LoginErrorCode.SESSION_EXPIRED)
        if not user.state:
            self._refuse(user.id, LoginErrorCode.ACCOUNT_DISABLED)

        employee = self._selection.select_employee(self._directory.list_employees_by_user(user.id))
        if employee is None:
            self._refuse(user.id, LoginErrorCode.NOT_MEMBER)
        if not employee.state:
            self._refuse(user.id, LoginErrorCode.EMPLOYEE_DISABLED)

        context = self._target_context(employee, target_org_id)

        employee.last_dept_id = context.current_dept_id
        employee.last_company_id = context.current_company_id
        self._directory.update_employee(employee)

        token = self._binder.bind(user.id, context, caller.category)
        self._events.publish(LoginEvent.switch_org(user.id, employee.id))
        logger.info(
            "Switched org user_id=%s employee_id=%s dept_id=%s company_id=%s",
            user.id,
            employee.id,
            context.current_dept_id,
            context.current_company_id,
        )
        return token

    def _target_context(self, employee: EmployeeRecord, target_org_id: int | None) -> ResolvedContext:
        if target_org_id is None:
            return ResolvedContext(employee_id=employee.id)

        org = self._directory.get_org_by_id(target_org_id)
        if org is None:
            raise LoginError(LoginErrorCode.ORG_NOT_FOUND)

        if org.is_company:
            return ResolvedContext(
                employee_id=employee.id,
                current_company_id=org.id,
                current_top_company_id=resolve_top_company_id(self._directory, org),
            )

        company = self._directory.get_company_by_dept(org.id)
        return ResolvedContext(
            employee_id=employee.id,
            current_dept_id=org.id,
            current_company_id=company.id if company is not None else None,
            current_top_company_id=resolve_top_company_id(self._directory, company),
        )

    def _refuse(self, user_id: int, code: LoginErrorCode) -> NoReturn:
        error = LoginError(code)
        self._events.publish(LoginEvent.fail(user_id, code, error.message))
        raise error
