"""Core order payment logic."""
from .acknowledgement import AcknowledgementOutcome
from .exceptions import InvalidRequestError, OrderNotFoundError, OrderPaymentError
from .installment_planner import InstallmentPlanner, ScheduleItem, build_schedule
from .notification_processor import PaymentNotificationProcessor
from .outbox import OutboxPublisher, write_outbox_event
from .payment_initiator import PaymentInitiator
from .refund_recorder import RefundStatusRecorder

__all__ = [
    "AcknowledgementOutcome",
    "InstallmentPlanner",
    "InvalidRequestError",
    "OrderNotFoundError",
    "OrderPaymentError",
    "OutboxPublisher",
    "PaymentInitiator",
    "PaymentNotificationProcessor",
    "RefundStatusRecorder",
    "ScheduleItem",
    "build_schedule",
    "write_outbox_event",
]
