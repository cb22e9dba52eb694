from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from orglogin.db.base import Base
from orglogin.db.session import SessionLocal, engine
from orglogin.directory.records import OrgType
from orglogin.directory.tree import ROOT_PATH, child_tree_path
from orglogin.login.variants import sha256_digest
from orglogin.models import session as _session_models  # noqa: F401  (register tables)
from orglogin.models.directory import Employee, Org
from orglogin.models.identity import Client, User


def init_db() -> None:
    """
    Create tables + seed a demo tenant.

    Small and deterministic so the login, switch and logout flows can be tried
    without additional setup.
    """

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed(db)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Client.id).limit(1)).first() is not None


def seed(db: Session) -> None:
    # Clients
    web = Client(client_id="orglogin_web", client_secret="orglogin_web_secret", name="Web console", state=True)
    legacy = Client(client_id="legacy_app", client_secret="legacy_app_secret", name="Retired app", state=False)
    db.add_all([web, legacy])

    # Org tree: Acme Group > Acme East > East Engineering, Acme Group > Group Finance; Globex standalone
    acme = Org(name="Acme Group", type=OrgType.COMPANY, tree_path=ROOT_PATH, sort_value=1)
    globex = Org(name="Globex", type=OrgType.COMPANY, tree_path=ROOT_PATH, sort_value=2)
    db.add_all([acme, globex])
    db.flush()

    acme_east = Org(name="Acme East", type=OrgType.COMPANY, tree_path=child_tree_path(acme.tree_path, acme.id))
    finance = Org(name="Group Finance", type=OrgType.DEPARTMENT, tree_path=child_tree_path(acme.tree_path, acme.id))
    db.add_all([acme_east, finance])
    db.flush()

    engineering = Org(
        name="East Engineering",
        type=OrgType.DEPARTMENT,
        tree_path=child_tree_path(acme_east.tree_path, acme_east.id),
    )
    db.add(engineering)
    db.flush()

    # Users
    alice = User(username="alice", nick_name="Alice", mobile="13800000001", password_digest=sha256_digest("alice123"))
    bob = User(username="bob", nick_name="Bob (disabled)", password_digest=sha256_digest("bob123"), state=False)
    carol = User(username="carol", nick_name="Carol (no employee)", password_digest=sha256_digest("carol123"))
    dave = User(username="dave", nick_name="Dave (employee disabled)", password_digest=sha256_digest("dave123"))
    db.add_all([alice, bob, carol, dave])
    db.flush()

    # Employees and memberships
    e_alice = Employee(user_id=alice.id, real_name="Alice Anders", state=True)
    e_alice.orgs.extend([engineering, globex])

    e_bob = Employee(user_id=bob.id, real_name="Bob Brown", state=True)
    e_bob.orgs.append(finance)

    e_dave = Employee(user_id=dave.id, real_name="Dave Doe", state=False)
    e_dave.orgs.append(finance)

    db.add_all([e_alice, e_bob, e_dave])

    db.commit()
