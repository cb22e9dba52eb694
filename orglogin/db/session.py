from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from orglogin.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped DB session.

    One session is one unit of work: routers commit explicitly once the login,
    switch or logout operation has finished. Anything not committed is rolled
    back on close.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
