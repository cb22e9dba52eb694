"""
Tests for the SQL directory store and its cached wrapper.

Uses db_session fixture (in-memory SQLite, rolled back after each test) and the
demo tenant from ``seed``.
"""
from __future__ import annotations

from sqlalchemy import select

from orglogin.db.init_db import seed
from orglogin.directory.records import OrgType
from orglogin.directory.store import CachedDirectoryStore, DirectoryCache, SqlDirectoryStore
from orglogin.models.directory import Employee, Org
from orglogin.models.identity import User


def _org(db, name):
    return db.execute(select(Org).where(Org.name == name)).scalar_one()


def _employee_of(db, username):
    user = db.execute(select(User).where(User.username == username)).scalar_one()
    return db.execute(select(Employee).where(Employee.user_id == user.id)).scalar_one()


def test_memberships_split_by_type(db_session):
    seed(db_session)
    store = SqlDirectoryStore(db_session)
    alice = _employee_of(db_session, "alice")

    depts = store.find_depts_by_employee(alice.id)
    companies = store.find_companies_by_employee(alice.id)

    assert [d.name for d in depts] == ["East Engineering"]
    assert [c.name for c in companies] == ["Globex"]
    assert all(c.type is OrgType.COMPANY for c in companies)


def test_disabled_orgs_are_not_memberships(db_session):
    seed(db_session)
    _org(db_session, "East Engineering").state = False
    db_session.flush()

    store = SqlDirectoryStore(db_session)
    assert store.find_depts_by_employee(_employee_of(db_session, "alice").id) == []


def test_company_by_dept_is_nearest_company_ancestor(db_session):
    seed(db_session)
    store = SqlDirectoryStore(db_session)

    engineering = _org(db_session, "East Engineering")
    finance = _org(db_session, "Group Finance")

    assert store.get_company_by_dept(engineering.id).name == "Acme East"
    assert store.get_company_by_dept(finance.id).name == "Acme Group"
    assert store.get_company_by_dept(99999) is None


def test_company_by_dept_without_company_ancestor(db_session):
    orphan = Org(name="Orphan", type=OrgType.DEPARTMENT, tree_path="/")
    db_session.add(orphan)
    db_session.flush()

    assert SqlDirectoryStore(db_session).get_company_by_dept(orphan.id) is None


def test_update_employee_writes_both_fields(db_session):
    seed(db_session)
    store = SqlDirectoryStore(db_session)
    alice = store.get_employee_by_id(_employee_of(db_session, "alice").id)

    alice.last_dept_id = 123
    alice.last_company_id = None
    store.update_employee(alice)

    reloaded = store.get_employee_by_id(alice.id)
    assert reloaded.last_dept_id == 123
    assert reloaded.last_company_id is None


def test_employees_listed_by_ascending_id(db_session):
    seed(db_session)
    user_id = _employee_of(db_session, "bob").user_id
    db_session.add(Employee(user_id=user_id, real_name="Bob again"))
    db_session.flush()

    employees = SqlDirectoryStore(db_session).list_employees_by_user(user_id)
    assert len(employees) == 2
    assert employees[0].id < employees[1].id


def test_cached_store_serves_orgs_from_cache(db_session):
    seed(db_session)
    cache = DirectoryCache.with_ttl(300)
    store = CachedDirectoryStore(SqlDirectoryStore(db_session), cache)
    acme = _org(db_session, "Acme Group")

    assert store.get_org_by_id(acme.id).name == "Acme Group"

    acme.name = "Renamed"
    db_session.flush()
    # Still the cached snapshot until it expires or is cleared.
    assert store.get_org_by_id(acme.id).name == "Acme Group"

    cache.clear()
    assert store.get_org_by_id(acme.id).name == "Renamed"


def test_cached_store_invalidates_employee_on_update(db_session):
    seed(db_session)
    cache = DirectoryCache.with_ttl(300)
    store = CachedDirectoryStore(SqlDirectoryStore(db_session), cache)
    employee_id = _employee_of(db_session, "alice").id

    first = store.get_employee_by_id(employee_id)
    # Mutating a returned record must not leak into the cache.
    first.last_dept_id = 42
    assert store.get_employee_by_id(employee_id).last_dept_id is None

    store.update_employee(first)
    assert store.get_employee_by_id(employee_id).last_dept_id == 42
