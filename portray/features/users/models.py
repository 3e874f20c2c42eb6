"""
User and session models with ULID primary keys.
"""
from datetime import datetime
from sqlalchemy import String, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portray.core.database.base import Base, TimestampMixin, generate_ulid


class User(Base, TimestampMixin):
    """
    Application user.

    Access is decided by the assigned role's grants, unless `is_system_admin`
    is set or the role is a reserved admin role.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    role_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_system_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    role: Mapped["Role"] = relationship(  # type: ignore
        "Role",
        foreign_keys=[role_id],
        lazy="selectin"
    )

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role is not None else None

    @property
    def active_role_name(self) -> str | None:
        """Role name for permission checks; None when the role is inactive."""
        if self.role is None or not self.role.is_active:
            return None
        return self.role.name

    @property
    def role_permissions(self) -> list[str]:
        """Grants of the assigned role; empty when unassigned or the role is inactive."""
        if self.role is None or not self.role.is_active:
            return []
        return list(self.role.permissions or [])

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"


class Session(Base):
    """
    Server-side login session. The bearer token only carries this row's id,
    so deleting the row revokes the token.
    """
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, user_id={self.user_id})>"
