"""
Charge requests for gateway checkout.

Builds the parameters handed to the gateway SDK when a buyer starts paying.
The SDK call itself (page redirect, QR code) happens at the boundary.
"""
from typing import Any, Dict

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from order_payments.core import money
from order_payments.core.exceptions import InvalidRequestError, OrderNotFoundError
from order_payments.database.models import Order
from order_payments.integrations.notifications import GatewayKind

logger = structlog.get_logger(__name__)


class PaymentInitiator:
    """Validates an order is payable and builds the gateway charge request."""

    def __init__(self, shop_name: str):
        self.shop_name = shop_name

    @staticmethod
    def ensure_payable(order: Order) -> None:
        """
        Raises:
            InvalidRequestError: If the order is already paid or closed
        """
        if order.paid_at is not None or order.closed:
            raise InvalidRequestError("Order is already paid or closed")

    def build_charge_request(self, order: Order, gateway: GatewayKind) -> Dict[str, Any]:
        """
        Gateway-specific charge parameters for ``order``.

        Alipay takes the amount in yuan with two decimals; WeChat Pay takes
        ``total_fee`` as an integer number of fen.
        """
        self.ensure_payable(order)
        subject = f"Payment for {self.shop_name} order {order.no}"

        if gateway is GatewayKind.WECHAT:
            return {
                "out_trade_no": order.no,
                "total_fee": money.to_minor_units(order.total_amount),
                "body": subject,
            }
        return {
            "out_trade_no": order.no,
            "total_amount": str(money.truncate(order.total_amount)),
            "subject": subject,
        }

    async def prepare_charge(
        self, order_id: int, gateway: GatewayKind, db: AsyncSession
    ) -> Dict[str, Any]:
        """
        Load the order and build its charge request.

        Raises:
            OrderNotFoundError: If the order does not exist
            InvalidRequestError: If the order is already paid or closed
        """
        order = (await db.execute(select(Order).where(Order.id == order_id))).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_id)

        try:
            request = self.build_charge_request(order, gateway)
        except InvalidRequestError:
            logger.info(
                "payment_initiation_rejected",
                order_no=order.no,
                gateway=gateway.value,
                paid=order.paid_at is not None,
                closed=order.closed,
            )
            raise

        logger.info("payment_initiated", order_no=order.no, gateway=gateway.value)
        return request
