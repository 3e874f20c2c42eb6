"""
Port, terminal and terminal subscription models.
"""
from datetime import date, datetime
from typing import Any, Dict
from sqlalchemy import String, Boolean, ForeignKey, Integer, Date, DateTime, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from portray.core.database.base import Base, TimestampMixin, generate_ulid
from portray.utils import utcnow


class TerminalStatus:
    PENDING = "Processing for activation"
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    EXPIRED = "Expired"

    ALL = (PENDING, ACTIVE, SUSPENDED, EXPIRED)


class Port(Base, TimestampMixin):
    """
    A port belonging to an organization.
    """
    __tablename__ = "ports"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    port_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(6), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Port(id={self.id}, name={self.port_name!r})>"


class SubscriptionType(Base):
    """Subscription length a terminal can be activated for."""
    __tablename__ = "subscription_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    months: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<SubscriptionType(id={self.id}, months={self.months})>"


class Terminal(Base, TimestampMixin):
    """
    A terminal at a port. New terminals wait for activation; activation sets
    the subscription window.
    """
    __tablename__ = "terminals"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    port_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("ports.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    terminal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_code: Mapped[str] = mapped_column(String(6), unique=True, nullable=False, index=True)
    gst: Mapped[str | None] = mapped_column(String(20), nullable=True)
    pan: Mapped[str | None] = mapped_column(String(20), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="Asia/Kolkata", nullable=False)

    # Billing address
    billing_address: Mapped[str] = mapped_column(String(500), nullable=False)
    billing_city: Mapped[str] = mapped_column(String(100), nullable=False)
    billing_pin_code: Mapped[str] = mapped_column(String(20), nullable=False)
    billing_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    billing_fax: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Shipping address
    same_as_billing: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    shipping_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    shipping_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shipping_pin_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    shipping_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    shipping_fax: Mapped[str | None] = mapped_column(String(30), nullable=True)

    status: Mapped[str] = mapped_column(String(50), default=TerminalStatus.PENDING, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Activation
    subscription_type_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("subscription_types.id", ondelete="SET NULL"),
        nullable=True
    )
    activation_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    activation_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    work_order_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    work_order_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<Terminal(id={self.id}, short_code={self.short_code}, status={self.status!r})>"


class ActivationLog(Base):
    """History of activation and status changes for a terminal."""
    __tablename__ = "activation_logs"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    terminal_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("terminals.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    performed_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    data: Mapped[Dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ActivationLog(terminal_id={self.terminal_id}, action={self.action!r})>"
