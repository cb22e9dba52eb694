"""
Login Orchestrator.

Runs one login as a fixed sequence of checks and stops at the first refusal:

    variant + input shape -> client -> credential proof -> account state
    -> employee -> org resolution -> session

Client and input checks publish nothing. Refusals of the caller's identity
(bad credentials, disabled account) publish one failure event. A successful
login publishes exactly one success event and creates exactly one session.
"""

from __future__ import annotations

import logging

from orglogin.directory.identity import ClientDirectory
from orglogin.directory.records import EmployeeRecord, UserRecord
from orglogin.directory.selection import LowestIdSelection, SelectionPolicy
from orglogin.directory.store import DirectoryStore
from orglogin.login.clients import decode_client_credentials
from orglogin.login.context import SessionToken
from orglogin.login.errors import LoginError, LoginErrorCode
from orglogin.login.events import EventPublisher, LoginEvent
from orglogin.login.org_resolver import OrgResolver
from orglogin.login.session_binder import SessionBinder
from orglogin.login.variants import LoginVariant, VariantRegistry
from orglogin.schemas.auth import LoginParam

logger = logging.getLogger(__name__)


class LoginOrchestrator:
    def __init__(
        self,
        *,
        variants: VariantRegistry,
        clients: ClientDirectory,
        directory: DirectoryStore,
        resolver: OrgResolver,
        binder: SessionBinder,
        events: EventPublisher,
        selection: SelectionPolicy | None = None,
        client_prefix: str = "Basic",
    ) -> None:
        self._variants = variants
        self._clients = clients
        self._directory = directory
        self._resolver = resolver
        self._binder = binder
        self._events = events
        self._selection = selection or LowestIdSelection()
        self._client_prefix = client_prefix

    def login(self, param: LoginParam, client_auth: str | None) -> SessionToken:
        variant = self._variants.get(param.grant_type)
        variant.check_param(param)

        self._check_client(client_auth)

        user = self._verify(variant, param)
        self._check_user_state(user)

        employee = self._get_employee(user)
        context = self._resolver.resolve(employee)

        token = self._binder.bind(user.id, context, param.category)
        self._events.publish(LoginEvent.success(user.id, context.employee_id))
        logger.info("User %s (%s) logged in grant_type=%s", user.username, user.nick_name, variant.grant_type)
        return token

    def logout(self, token: str | None) -> bool:
        """End the session behind ``token``. Always succeeds once attempted."""

        caller = self._binder.current(token)
        if token:
            self._binder.unbind(token)
        if caller is not None:
            self._events.publish(LoginEvent.logout(caller.user_id, caller.attributes.employee_id))
        return True

    def _check_client(self, client_auth: str | None) -> None:
        credentials = decode_client_credentials(client_auth, self._client_prefix)
        if credentials is None:
            raise LoginError(LoginErrorCode.UNKNOWN_CLIENT)

        client = self._clients.get_client(credentials.client_id, credentials.client_secret)
        if client is None:
            logger.info("Unknown client client_id=%s", credentials.client_id)
            raise LoginError(LoginErrorCode.UNKNOWN_CLIENT)
        if not client.state:
            raise LoginError(LoginErrorCode.CLIENT_DISABLED, f"Client [{client.client_id}] is disabled.")

    def _verify(self, variant: LoginVariant, param: LoginParam) -> UserRecord:
        user: UserRecord | None = None
        try:
            variant.check_credential(param)
            user = variant.get_user(param)
            return variant.check_user(param, user)
        except LoginError as exc:
            if exc.code is LoginErrorCode.CREDENTIAL_REJECTED:
                self._events.publish(LoginEvent.fail(user.id if user else None, exc.code, exc.message))
            raise

    def _check_user_state(self, user: UserRecord) -> None:
        if not user.state:
            error = LoginError(LoginErrorCode.ACCOUNT_DISABLED)
            self._events.publish(LoginEvent.fail(user.id, error.code, error.message))
            raise error

    def _get_employee(self, user: UserRecord) -> EmployeeRecord | None:
        # A disabled user can not log in; a disabled (or missing) employee only loses its org context.
        memberships = self._directory.list_employees_by_user(user.id)
        membership = self._selection.select_employee(memberships)

        if membership is None or not membership.state:
            logger.info(
                "Logging in without employee user_id=%s memberships=%s disabled=%s",
                user.id,
                len(memberships),
                membership is not None,
            )
            return None

        return self._directory.get_employee_by_id(membership.id)
