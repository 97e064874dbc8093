"""Outcome of applying a gateway notification, consumed by the transport boundary."""
from enum import Enum


class AcknowledgementOutcome(str, Enum):
    """
    What the boundary must tell the gateway.

    ACKNOWLEDGE: processed or intentionally ignored, answer with the
        gateway's success token.
    REJECTED: order unknown on the payment path, answer with the literal
        failure string.
    HARD_FAILURE: order unknown on the refund path, answer with the
        gateway's structured failure document.
    """

    ACKNOWLEDGE = "acknowledge"
    REJECTED = "rejected"
    HARD_FAILURE = "hard_failure"
