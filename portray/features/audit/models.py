"""
User audit log model.

Tracks who changed which user account, when, and from where.
"""
from typing import Any, Dict
from sqlalchemy import String, ForeignKey, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from portray.core.database.base import Base, TimestampMixin, generate_ulid


class UserAuditLog(Base, TimestampMixin):
    __tablename__ = "user_audit_logs"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    # Account that was changed; kept after the user is deleted
    target_user_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)

    # Actor
    performed_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # created, updated, status_changed, role_changed, deleted
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    old_values: Mapped[Dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[Dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<UserAuditLog(id={self.id}, target={self.target_user_id}, action={self.action})>"
