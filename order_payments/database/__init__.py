"""Database package for order payments."""
from .connection import get_db, get_session_factory, init_db
from .models import (
    Base,
    Installment,
    InstallmentItem,
    InstallmentStatus,
    Order,
    OrderItem,
    OrderType,
    OutboxEvent,
    PaymentMethod,
    RefundStatus,
)

__all__ = [
    "Base",
    "Installment",
    "InstallmentItem",
    "InstallmentStatus",
    "Order",
    "OrderItem",
    "OrderType",
    "OutboxEvent",
    "PaymentMethod",
    "RefundStatus",
    "get_db",
    "get_session_factory",
    "init_db",
]
