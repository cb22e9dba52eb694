from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orglogin.db.base import Base
from orglogin.directory.records import OrgType
from orglogin.timeutil import utcnow


employee_orgs = Table(
    "employee_orgs",
    Base.metadata,
    Column("employee_id", ForeignKey("employees.id"), primary_key=True),
    Column("org_id", ForeignKey("orgs.id"), primary_key=True),
)


class Org(Base):
    __tablename__ = "orgs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[OrgType] = mapped_column(Enum(OrgType, native_enum=False, length=20), nullable=False, index=True)

    # Materialized ancestor path, root first: "/" for a root, "/1/5/" for a grandchild of 1.
    tree_path: Mapped[str] = mapped_column(String(255), default="/", nullable=False)
    sort_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    state: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    employees: Mapped[list["Employee"]] = relationship(secondary=employee_orgs, back_populates="orgs")


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    real_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    state: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # "Last used" org cache. No foreign keys: stale ids are tolerated.
    last_dept_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_company_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    orgs: Mapped[list[Org]] = relationship(secondary=employee_orgs, back_populates="employees")
