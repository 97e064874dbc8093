"""
Wire responses for gateway callbacks.

The transport boundary turns the core's AcknowledgementOutcome into the
exact body each gateway expects; anything else makes the gateway redeliver.
"""
from pydantic import BaseModel

from order_payments.core.acknowledgement import AcknowledgementOutcome
from order_payments.integrations.notifications import GatewayKind

ALIPAY_SUCCESS = "success"
PLAIN_FAILURE = "fail"
WECHAT_SUCCESS_XML = (
    "<xml><return_code><![CDATA[SUCCESS]]></return_code>"
    "<return_msg><![CDATA[OK]]></return_msg></xml>"
)
WECHAT_FAILURE_XML = (
    "<xml><return_code><![CDATA[FAIL]]></return_code>"
    "<return_msg><![CDATA[FAIL]]></return_msg></xml>"
)


class GatewayResponse(BaseModel):
    """Literal HTTP body and content type to send back to a gateway."""

    body: str
    content_type: str = "text/plain"

    model_config = {"frozen": True}


def _success(gateway: GatewayKind) -> GatewayResponse:
    if gateway is GatewayKind.WECHAT:
        return GatewayResponse(body=WECHAT_SUCCESS_XML, content_type="application/xml")
    return GatewayResponse(body=ALIPAY_SUCCESS)


def render_acknowledgement(
    gateway: GatewayKind, outcome: AcknowledgementOutcome
) -> GatewayResponse:
    """
    Render an outcome as the gateway's wire response.

    Args:
        gateway: Gateway that sent the callback
        outcome: Result of applying the callback

    Returns:
        GatewayResponse: Body and content type for the HTTP response
    """
    if outcome is AcknowledgementOutcome.ACKNOWLEDGE:
        return _success(gateway)
    if outcome is AcknowledgementOutcome.REJECTED:
        return GatewayResponse(body=PLAIN_FAILURE)
    # Refund callbacks only exist for WeChat Pay, whose failure is an XML document
    return GatewayResponse(body=WECHAT_FAILURE_XML, content_type="application/xml")
