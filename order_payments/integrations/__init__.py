"""Gateway payload normalisation and acknowledgement rendering."""
from .gateway_responses import GatewayResponse, render_acknowledgement
from .notifications import GatewayKind, PaymentNotification, RefundNotification

__all__ = [
    "GatewayKind",
    "GatewayResponse",
    "PaymentNotification",
    "RefundNotification",
    "render_acknowledgement",
]
