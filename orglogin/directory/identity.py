"""Users and client applications (read-only from the login flow)."""

from __future__ import annotations

import hmac
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from orglogin.directory.records import ClientRecord, UserRecord
from orglogin.models.identity import Client, User


class UserDirectory(Protocol):
    def get_user_by_id(self, user_id: int) -> UserRecord | None:
        ...

    def get_user_by_username(self, username: str) -> UserRecord | None:
        ...

    def get_user_by_mobile(self, mobile: str) -> UserRecord | None:
        ...


class ClientDirectory(Protocol):
    def get_client(self, client_id: str, client_secret: str) -> ClientRecord | None:
        ...


def _user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        state=row.state,
        nick_name=row.nick_name,
        mobile=row.mobile,
        password_digest=row.password_digest,
    )


class SqlUserDirectory:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_user_by_id(self, user_id: int) -> UserRecord | None:
        row = self._db.get(User, user_id)
        return _user_record(row) if row is not None else None

    def get_user_by_username(self, username: str) -> UserRecord | None:
        row = self._db.execute(select(User).where(User.username == username)).scalar_one_or_none()
        return _user_record(row) if row is not None else None

    def get_user_by_mobile(self, mobile: str) -> UserRecord | None:
        row = self._db.execute(select(User).where(User.mobile == mobile)).scalar_one_or_none()
        return _user_record(row) if row is not None else None


class SqlClientDirectory:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_client(self, client_id: str, client_secret: str) -> ClientRecord | None:
        row = self._db.execute(select(Client).where(Client.client_id == client_id)).scalar_one_or_none()
        if row is None or not hmac.compare_digest(row.client_secret, client_secret):
            return None
        return ClientRecord(id=row.id, client_id=row.client_id, state=row.state, name=row.name)
