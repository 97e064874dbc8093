"""SQLAlchemy database models for orders, installments and the outbox."""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

Money = Numeric(12, 2)


class OrderType(str, Enum):
    NORMAL = "normal"
    CROWDFUNDING = "crowdfunding"


class PaymentMethod(str, Enum):
    ALIPAY = "alipay"
    WECHAT = "wechat"
    INSTALLMENT = "installment"


class RefundStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    REPAYING = "repaying"
    FINISHED = "finished"


def _values(enum_cls: type[Enum]) -> str:
    return ", ".join(f"'{member.value}'" for member in enum_cls)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Order(Base):
    """
    Customer order.

    ``paid_at`` is the authoritative paid flag. It is written together with
    ``payment_method`` and ``payment_no`` in a single conditional UPDATE, so
    the three are always set at once and at most once.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    no: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default=OrderType.NORMAL.value)
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    payment_no: Mapped[str | None] = mapped_column(String(255), nullable=True)
    closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refund_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=RefundStatus.PENDING.value
    )
    extra: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=func.now(),
        onupdate=func.now(),
    )

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="non_negative_total"),
        CheckConstraint(f"type IN ({_values(OrderType)})", name="valid_order_type"),
        CheckConstraint(
            f"payment_method IS NULL OR payment_method IN ({_values(PaymentMethod)})",
            name="valid_payment_method",
        ),
        CheckConstraint(f"refund_status IN ({_values(RefundStatus)})", name="valid_refund_status"),
        Index("idx_orders_type_paid", "type", "paid_at"),
    )

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def __repr__(self) -> str:
        """String representation of Order."""
        return (
            f"<Order(id={self.id}, no={self.no}, total={self.total_amount}, "
            f"paid_at={self.paid_at}, closed={self.closed})>"
        )


class OrderItem(Base):
    """Line item of an order."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id})>"


class Installment(Base):
    """
    Installment plan for one order and one buyer.

    Pricing fields are fixed at creation. Only one plan per order may be
    pending at a time; re-planning deletes the previous pending plan.
    """

    __tablename__ = "installments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False)
    fee_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    fine_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=InstallmentStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=func.now()
    )

    items: Mapped[List["InstallmentItem"]] = relationship(
        back_populates="installment",
        cascade="all, delete-orphan",
        order_by="InstallmentItem.sequence",
    )

    __table_args__ = (
        CheckConstraint("count > 0", name="positive_count"),
        CheckConstraint(f"status IN ({_values(InstallmentStatus)})", name="valid_installment_status"),
        Index("idx_installments_order_status", "order_id", "status"),
    )

    def __repr__(self) -> str:
        """String representation of Installment."""
        return (
            f"<Installment(id={self.id}, order_id={self.order_id}, "
            f"count={self.count}, status={self.status})>"
        )


class InstallmentItem(Base):
    """One repayment period of an installment plan."""

    __tablename__ = "installment_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    installment_id: Mapped[int] = mapped_column(
        ForeignKey("installments.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    base: Mapped[Decimal] = mapped_column(Money, nullable=False)
    fee: Mapped[Decimal] = mapped_column(Money, nullable=False)
    fine: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    installment: Mapped[Installment] = relationship(back_populates="items")

    __table_args__ = (
        UniqueConstraint("installment_id", "sequence", name="uq_installment_item_sequence"),
    )

    @property
    def total(self) -> Decimal:
        """Amount due this period."""
        return self.base + self.fee + (self.fine or Decimal("0"))

    def __repr__(self) -> str:
        return (
            f"<InstallmentItem(installment_id={self.installment_id}, sequence={self.sequence}, "
            f"base={self.base}, fee={self.fee}, due_date={self.due_date})>"
        )


class OutboxEvent(Base):
    """
    Transactional outbox events table.

    Domain messages (e.g. ``order.paid``) are written in the same transaction
    as the state change that produced them and delivered later by the
    outbox publisher.
    """

    __tablename__ = "outbox_events"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    aggregate_id: Mapped[str] = mapped_column(String(64), nullable=False)
    aggregate_type: Mapped[str] = mapped_column(String(100), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=func.now()
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_outbox_unpublished", "published", "created_at"),
        Index("idx_outbox_aggregate", "aggregate_id", "aggregate_type"),
    )

    def __repr__(self) -> str:
        """String representation of OutboxEvent."""
        return (
            f"<OutboxEvent(id={self.id}, type={self.event_type}, "
            f"published={self.published})>"
        )
