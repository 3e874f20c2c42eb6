"""
Customer, contract and contract tariff models.
"""
from datetime import date
from decimal import Decimal
from sqlalchemy import String, ForeignKey, Date, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portray.core.database.base import Base, TimestampMixin, generate_ulid


class Customer(Base, TimestampMixin):
    """
    Customer of a terminal. The code is assigned on creation as
    `<year>_<terminal short code>_<counter>`, e.g. 2025_CHN01_007.
    """
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    terminal_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("terminals.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    pan: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gst: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="Active", nullable=False)

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, code={self.customer_code})>"


class CustomerCodeSequence(Base):
    """
    Last counter handed out per `<year>_<short code>_` prefix. Keyed by the
    prefix rather than the terminal so codes stay unique after deletes.
    """
    __tablename__ = "customer_code_sequences"

    prefix: Mapped[str] = mapped_column(String(30), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Contract(Base, TimestampMixin):
    """A customer contract valid over a date range."""
    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    customer_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    contract_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="Active", nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    tariffs: Mapped[list["ContractTariff"]] = relationship(
        "ContractTariff",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ContractTariff.service_type"
    )

    def __repr__(self) -> str:
        return f"<Contract(id={self.id}, number={self.contract_number!r})>"


class ContractTariff(Base, TimestampMixin):
    """Rate charged for one service under a contract."""
    __tablename__ = "contract_tariffs"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    contract_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    service_type: Mapped[str] = mapped_column(String(100), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    unit: Mapped[str] = mapped_column(String(50), default="per container", nullable=False)

    def __repr__(self) -> str:
        return f"<ContractTariff(contract_id={self.contract_id}, service={self.service_type!r})>"
