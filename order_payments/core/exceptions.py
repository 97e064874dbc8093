"""Exceptions raised by the order payment core."""


class OrderPaymentError(Exception):
    """Base exception for order payment errors."""

    pass


class InvalidRequestError(OrderPaymentError):
    """
    Raised when the caller violates a precondition.

    Examples: paying or splitting an order that is already paid or closed,
    an order total below the installment minimum, a period count that is
    not offered. Surfaced to the initiating user, never retried.
    """

    pass


class OrderNotFoundError(OrderPaymentError):
    """Raised when a user-initiated action references an unknown order."""

    def __init__(self, order_ref: object):
        super().__init__(f"Order {order_ref} not found")
        self.order_ref = order_ref
