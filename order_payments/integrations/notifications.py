"""
Verified gateway callback payloads.

Signature verification and transport belong to the gateway SDKs; by the time
a payload reaches these models it is authentic. The models only normalise
each gateway's field names into one shape the core understands.
"""
from enum import Enum
from typing import Any, FrozenSet, Mapping

from pydantic import BaseModel, Field, field_validator


class GatewayKind(str, Enum):
    """Payment gateways that deliver asynchronous notifications."""

    ALIPAY = "alipay"
    WECHAT = "wechat"

    @property
    def success_statuses(self) -> FrozenSet[str]:
        """Status codes meaning the buyer has paid."""
        return _PAYMENT_SUCCESS_STATUSES[self]


# Alipay trade states: https://docs.open.alipay.com/59/103672
_PAYMENT_SUCCESS_STATUSES = {
    GatewayKind.ALIPAY: frozenset({"TRADE_SUCCESS", "TRADE_FINISHED"}),
    GatewayKind.WECHAT: frozenset({"SUCCESS"}),
}

WECHAT_REFUND_SUCCESS = "SUCCESS"


class PaymentNotification(BaseModel):
    """Normalised "payment status changed" callback."""

    out_trade_no: str = Field(..., min_length=1, description="Merchant order number")
    status: str = Field(..., description="Gateway trade/result status code")
    transaction_id: str = Field(default="", description="Gateway transaction identifier")

    model_config = {"frozen": True}

    @field_validator("status")
    @classmethod
    def normalise_status(cls, v: str) -> str:
        return v.strip().upper()

    @classmethod
    def from_alipay(cls, data: Mapping[str, Any]) -> "PaymentNotification":
        """Build from an Alipay async notification (``trade_status``, ``trade_no``)."""
        return cls(
            out_trade_no=data["out_trade_no"],
            status=data.get("trade_status", ""),
            transaction_id=data.get("trade_no", ""),
        )

    @classmethod
    def from_wechat(cls, data: Mapping[str, Any]) -> "PaymentNotification":
        """
        Build from a WeChat Pay notification.

        ``result_code`` carries the business outcome; ``return_code`` only the
        communication outcome, so it is used when the former is absent.
        """
        return cls(
            out_trade_no=data["out_trade_no"],
            status=data.get("result_code") or data.get("return_code", ""),
            transaction_id=data.get("transaction_id", ""),
        )

    def is_successful_for(self, gateway: GatewayKind) -> bool:
        return self.status in gateway.success_statuses


class RefundNotification(BaseModel):
    """Normalised refund result callback."""

    out_trade_no: str = Field(..., min_length=1, description="Merchant order number")
    refund_status: str = Field(..., description="Gateway refund status code")
    failure_code: str | None = Field(
        default=None, description="Gateway diagnostic code when the refund failed"
    )

    model_config = {"frozen": True}

    @classmethod
    def from_wechat(cls, data: Mapping[str, Any]) -> "RefundNotification":
        """Build from a decrypted WeChat Pay refund notification."""
        return cls(
            out_trade_no=data["out_trade_no"],
            refund_status=data.get("refund_status", ""),
            failure_code=data.get("err_code") or None,
        )

    @property
    def succeeded(self) -> bool:
        return self.refund_status == WECHAT_REFUND_SUCCESS

    @property
    def diagnostic_code(self) -> str:
        """Code to keep on the order when the refund failed."""
        return self.failure_code or self.refund_status
