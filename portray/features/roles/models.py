"""
Role model.

A role carries the grant strings that decide what its users may see and do
(see portray.features.permissions.grammar for the format).
"""
from typing import Any
from sqlalchemy import String, Boolean, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from portray.core.database.base import Base, TimestampMixin, generate_ulid


class Role(Base, TimestampMixin):
    """
    Named set of permission grants.

    Examples of permissions:
        ["dashboard:read", "ports:read,write", "ports:terminals:read,write,manage"]
    """
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Grant strings, kept in the exact external form
    permissions: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    # An inactive role confers no permissions
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, active={self.is_active})>"
