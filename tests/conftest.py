"""
Pytest fixtures for the test suite.

Store-level tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other.

Login-core tests run against the in-memory fakes below: they implement the
same collaborator protocols as the SQL stores and record every write, so tests
can assert on "no session created" or "exactly one employee update".
"""
from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from orglogin.directory.records import ClientRecord, EmployeeRecord, OrgRecord, OrgType, UserRecord
from orglogin.directory.tree import ancestor_ids
from orglogin.login.clients import encode_client_credentials
from orglogin.login.events import EventPublisher, LoginEvent
from orglogin.login.orchestrator import LoginOrchestrator
from orglogin.login.org_resolver import OrgResolver
from orglogin.login.org_switcher import OrgSwitcher
from orglogin.login.session_binder import SessionBinder
from orglogin.login.variants import CachedCodeVerifier, CaptchaLogin, MobileLogin, PasswordLogin, VariantRegistry, sha256_digest
from orglogin.sessions.store import SessionHandle, SessionNotFound


TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from orglogin.db.base import Base
    from orglogin.models import directory, identity, session  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    ``commit()`` inside the code under test does not end the outer
    transaction; it is rolled back so the next test gets a clean state.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


# In-memory collaborators


class FakeDirectory:
    def __init__(self) -> None:
        self.orgs: dict[int, OrgRecord] = {}
        self.employees: dict[int, EmployeeRecord] = {}
        self.memberships: dict[int, list[int]] = {}
        self.updates: list[EmployeeRecord] = []

    def add_org(self, org_id: int, org_type: OrgType, tree_path: str = "/", **kwargs) -> OrgRecord:
        org = OrgRecord(id=org_id, type=org_type, tree_path=tree_path, **kwargs)
        self.orgs[org_id] = org
        return org

    def add_employee(self, employee_id: int, user_id: int, org_ids=(), **kwargs) -> EmployeeRecord:
        employee = EmployeeRecord(id=employee_id, user_id=user_id, **kwargs)
        self.employees[employee_id] = employee
        self.memberships[employee_id] = list(org_ids)
        return employee

    def list_employees_by_user(self, user_id: int) -> list[EmployeeRecord]:
        return [dataclasses.replace(e) for e in self.employees.values() if e.user_id == user_id]

    def get_employee_by_id(self, employee_id: int) -> EmployeeRecord | None:
        employee = self.employees.get(employee_id)
        return dataclasses.replace(employee) if employee is not None else None

    def update_employee(self, employee: EmployeeRecord) -> None:
        self.employees[employee.id] = dataclasses.replace(employee)
        self.updates.append(dataclasses.replace(employee))

    def _orgs_of(self, employee_id: int, org_type: OrgType) -> list[OrgRecord]:
        orgs = (self.orgs.get(org_id) for org_id in self.memberships.get(employee_id, []))
        return [o for o in orgs if o is not None and o.type is org_type and o.state]

    def find_depts_by_employee(self, employee_id: int) -> list[OrgRecord]:
        return self._orgs_of(employee_id, OrgType.DEPARTMENT)

    def find_companies_by_employee(self, employee_id: int) -> list[OrgRecord]:
        return self._orgs_of(employee_id, OrgType.COMPANY)

    def get_company_by_dept(self, dept_id: int) -> OrgRecord | None:
        dept = self.orgs.get(dept_id)
        if dept is None:
            return None
        for candidate in reversed(ancestor_ids(dept.tree_path)):
            org = self.orgs.get(candidate)
            if org is not None and org.is_company:
                return org
        return None

    def get_org_by_id(self, org_id: int) -> OrgRecord | None:
        return self.orgs.get(org_id)


class FakeSessionStore:
    """Dict-backed session store; every session has one hour left."""

    TTL_SECONDS = 3600

    def __init__(self) -> None:
        self.sessions: dict[str, SessionHandle] = {}
        self.login_calls = 0
        self.logout_calls = 0

    def login(self, user_id: int, category: str) -> SessionHandle:
        self.login_calls += 1
        now = datetime(2026, 1, 1, 9, 0, 0) + timedelta(minutes=self.login_calls)
        handle = SessionHandle(
            token=f"tok-{self.login_calls}",
            user_id=user_id,
            category=category,
            created_at=now,
            expires_at=now + timedelta(seconds=self.TTL_SECONDS),
        )
        self.sessions[handle.token] = handle
        return handle

    def get(self, token: str) -> SessionHandle | None:
        return self.sessions.get(token)

    def set_attr(self, handle: SessionHandle, key: str, value: object) -> None:
        handle.attributes[key] = value

    def timeout(self, handle: SessionHandle) -> int:
        return self.TTL_SECONDS

    def logout(self, token: str) -> None:
        self.logout_calls += 1
        if self.sessions.pop(token, None) is None:
            raise SessionNotFound(token)

    def list_sessions(self, user_id: int) -> list[SessionHandle]:
        return [h for h in self.sessions.values() if h.user_id == user_id]


class FakeUsers:
    def __init__(self) -> None:
        self.users: dict[int, UserRecord] = {}

    def add(self, user_id: int, username: str, password: str = "secret", **kwargs) -> UserRecord:
        user = UserRecord(id=user_id, username=username, password_digest=sha256_digest(password), **kwargs)
        self.users[user_id] = user
        return user

    def get_user_by_id(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.username == username), None)

    def get_user_by_mobile(self, mobile: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.mobile == mobile), None)


class FakeClients:
    def __init__(self) -> None:
        self.clients: dict[str, tuple[str, ClientRecord]] = {}

    def add(self, client_id: str, secret: str, state: bool = True) -> str:
        """Register a client and return its ``Authorization`` header value."""
        record = ClientRecord(id=len(self.clients) + 1, client_id=client_id, state=state)
        self.clients[client_id] = (secret, record)
        return encode_client_credentials(client_id, secret)

    def get_client(self, client_id: str, client_secret: str) -> ClientRecord | None:
        entry = self.clients.get(client_id)
        if entry is None or entry[0] != client_secret:
            return None
        return entry[1]


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[LoginEvent] = []

    def publish(self, event: LoginEvent) -> None:
        self.events.append(event)


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def session_store():
    return FakeSessionStore()


@pytest.fixture
def binder(session_store):
    return SessionBinder(session_store, default_category="PC")


@pytest.fixture
def users():
    return FakeUsers()


@pytest.fixture
def clients():
    return FakeClients()


@pytest.fixture
def client_auth(clients):
    return clients.add("web", "web-secret")


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def events(sink):
    return EventPublisher([sink])


@pytest.fixture
def codes():
    return CachedCodeVerifier(ttl_seconds=60)


@pytest.fixture
def variants(users, codes):
    return VariantRegistry([PasswordLogin(users), CaptchaLogin(users, codes), MobileLogin(users, codes)])


@pytest.fixture
def orchestrator(variants, clients, directory, binder, events):
    return LoginOrchestrator(
        variants=variants,
        clients=clients,
        directory=directory,
        resolver=OrgResolver(directory),
        binder=binder,
        events=events,
    )


@pytest.fixture
def switcher(users, directory, binder, events):
    return OrgSwitcher(users=users, directory=directory, binder=binder, events=events)
