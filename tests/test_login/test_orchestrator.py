"""Tests for the login sequence: client, credentials, account, employee, session."""
from __future__ import annotations

import pytest

from orglogin.directory.records import OrgType
from orglogin.login.clients import encode_client_credentials
from orglogin.login.context import SessionAttributes
from orglogin.login.errors import LoginError, LoginErrorCode
from orglogin.login.events import EventPublisher, LoginEventKind
from orglogin.login.orchestrator import LoginOrchestrator
from orglogin.login.org_resolver import OrgResolver
from orglogin.schemas.auth import LoginParam


def _password(username="alice", password="secret", **kwargs):
    return LoginParam(grant_type="PASSWORD", username=username, password=password, **kwargs)


@pytest.fixture
def alice(users, directory):
    directory.add_org(1, OrgType.COMPANY, "/")
    directory.add_org(10, OrgType.DEPARTMENT, "/1/")
    directory.add_employee(5, user_id=1, org_ids=[10])
    return users.add(1, "alice", "secret")


def test_successful_login_binds_one_session_and_one_event(orchestrator, alice, client_auth, session_store, sink):
    token = orchestrator.login(_password(), client_auth)

    assert token.token == "tok-1"
    assert token.expire == session_store.TTL_SECONDS
    assert session_store.login_calls == 1

    attrs = session_store.get("tok-1").attributes
    assert attrs == {
        SessionAttributes.TOP_COMPANY_ID: 1,
        SessionAttributes.COMPANY_ID: 1,
        SessionAttributes.DEPT_ID: 10,
        SessionAttributes.EMPLOYEE_ID: 5,
    }

    assert len(sink.events) == 1
    assert sink.events[0].kind is LoginEventKind.LOGIN_SUCCESS
    assert sink.events[0].user_id == 1
    assert sink.events[0].employee_id == 5


def test_login_uses_requested_category(orchestrator, alice, client_auth, session_store):
    orchestrator.login(_password(category="APP"), client_auth)
    assert session_store.get("tok-1").category == "APP"


def test_unknown_grant_type_is_invalid_input(orchestrator, alice, client_auth, session_store, sink):
    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(LoginParam(grant_type="FAX", username="alice", password="secret"), client_auth)
    assert exc_info.value.code is LoginErrorCode.INVALID_INPUT
    assert session_store.login_calls == 0
    assert sink.events == []


def test_input_shape_checked_before_client(orchestrator, alice, session_store, sink):
    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(_password(password=None), None)
    assert exc_info.value.code is LoginErrorCode.INVALID_INPUT
    assert sink.events == []


@pytest.mark.parametrize(
    "header",
    [
        None,
        "Basic !!!not-base64!!!",
        encode_client_credentials("web", "wrong-secret"),
        encode_client_credentials("nobody", "web-secret"),
    ],
)
def test_unknown_client(orchestrator, alice, client_auth, session_store, sink, header):
    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(_password(), header)
    assert exc_info.value.code is LoginErrorCode.UNKNOWN_CLIENT
    assert session_store.login_calls == 0
    assert sink.events == []


def test_disabled_client_short_circuits_without_events(orchestrator, alice, clients, session_store, sink, directory):
    header = clients.add("legacy", "legacy-secret", state=False)

    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(_password(), header)

    assert exc_info.value.code is LoginErrorCode.CLIENT_DISABLED
    assert exc_info.value.code.http_status == 403
    assert session_store.login_calls == 0
    assert sink.events == []
    assert directory.updates == []


def test_wrong_password_publishes_one_failure(orchestrator, alice, client_auth, session_store, sink):
    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(_password(password="nope"), client_auth)

    assert exc_info.value.code is LoginErrorCode.CREDENTIAL_REJECTED
    assert session_store.login_calls == 0
    assert len(sink.events) == 1
    assert sink.events[0].kind is LoginEventKind.LOGIN_FAIL
    assert sink.events[0].user_id == 1
    assert sink.events[0].reason is LoginErrorCode.CREDENTIAL_REJECTED


def test_unknown_user_is_rejected_like_a_wrong_password(orchestrator, client_auth, sink):
    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(_password(username="ghost"), client_auth)

    assert exc_info.value.code is LoginErrorCode.CREDENTIAL_REJECTED
    assert exc_info.value.message == "Incorrect username or password."
    assert sink.events[0].user_id is None


def test_disabled_account(orchestrator, users, client_auth, session_store, sink):
    users.add(2, "bob", "secret", state=False)

    with pytest.raises(LoginError) as exc_info:
        orchestrator.login(_password(username="bob"), client_auth)

    assert exc_info.value.code is LoginErrorCode.ACCOUNT_DISABLED
    assert session_store.login_calls == 0
    assert [e.reason for e in sink.events] == [LoginErrorCode.ACCOUNT_DISABLED]


def test_user_without_employee_logs_in_without_org(orchestrator, users, client_auth, session_store, sink):
    users.add(3, "carol", "secret")

    orchestrator.login(_password(username="carol"), client_auth)

    assert session_store.get("tok-1").attributes == {}
    assert sink.events[0].kind is LoginEventKind.LOGIN_SUCCESS
    assert sink.events[0].employee_id is None


def test_disabled_employee_logs_in_without_org(orchestrator, users, directory, client_auth, session_store):
    users.add(4, "dave", "secret")
    directory.add_org(10, OrgType.DEPARTMENT, "/")
    directory.add_employee(8, user_id=4, org_ids=[10], state=False)

    orchestrator.login(_password(username="dave"), client_auth)

    assert session_store.get("tok-1").attributes == {}
    assert directory.updates == []


def test_first_membership_wins(orchestrator, users, directory, client_auth, session_store):
    users.add(6, "erin", "secret")
    directory.add_employee(31, user_id=6, last_dept_id=300, last_company_id=30)
    directory.add_employee(12, user_id=6, last_dept_id=100, last_company_id=10)

    orchestrator.login(_password(username="erin"), client_auth)

    assert session_store.get("tok-1").attributes[SessionAttributes.EMPLOYEE_ID] == 12


def test_failing_sink_does_not_fail_login(variants, clients, directory, binder, alice, client_auth, sink):
    class BrokenSink:
        def publish(self, event):
            raise RuntimeError("audit store down")

    orchestrator = LoginOrchestrator(
        variants=variants,
        clients=clients,
        directory=directory,
        resolver=OrgResolver(directory),
        binder=binder,
        events=EventPublisher([BrokenSink(), sink]),
    )

    token = orchestrator.login(_password(), client_auth)

    assert token.token == "tok-1"
    assert [e.kind for e in sink.events] == [LoginEventKind.LOGIN_SUCCESS]


def test_logout_ends_session_and_publishes(orchestrator, alice, client_auth, session_store, sink):
    token = orchestrator.login(_password(), client_auth)

    assert orchestrator.logout(token.token) is True

    assert session_store.get(token.token) is None
    assert sink.events[-1].kind is LoginEventKind.LOGOUT
    assert sink.events[-1].employee_id == 5


def test_logout_without_session_still_succeeds(orchestrator, sink):
    assert orchestrator.logout("expired-token") is True
    assert orchestrator.logout(None) is True
    assert sink.events == []
