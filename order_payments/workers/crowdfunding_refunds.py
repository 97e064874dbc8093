"""
Refund job for failed crowdfunding campaigns.

When a campaign misses its target every paid order that backed it is
refunded. Issuing the refund (gateway call, refund number, status
``processing``) is the order service's job; this worker only selects the
orders and hands each one over.
"""
from typing import Any, Awaitable, Callable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from order_payments.database.models import Order, OrderItem, OrderType

logger = structlog.get_logger(__name__)

CROWDFUNDING_STATUS_FAIL = "fail"

RefundOrderFunc = Callable[[Order], Awaitable[Any]]


class CrowdfundingRefundJob:
    """Refunds every paid order of a failed crowdfunding product."""

    def __init__(self, refund_order: RefundOrderFunc):
        """
        Args:
            refund_order: Order service coroutine that refunds one order
        """
        self.refund_order = refund_order

    async def handle(self, product_id: int, crowdfunding_status: str, db: AsyncSession) -> int:
        """
        Refund the backers of ``product_id`` if its campaign failed.

        Args:
            product_id: Crowdfunding product
            crowdfunding_status: Campaign status at the time the job runs
            db: Database session

        Returns:
            int: Number of orders handed to the order service
        """
        if crowdfunding_status != CROWDFUNDING_STATUS_FAIL:
            logger.info(
                "crowdfunding_refund_skipped",
                product_id=product_id,
                crowdfunding_status=crowdfunding_status,
            )
            return 0

        stmt = (
            select(Order)
            .where(
                Order.type == OrderType.CROWDFUNDING.value,
                Order.paid_at.is_not(None),
                Order.items.any(OrderItem.product_id == product_id),
            )
            .order_by(Order.id)
        )
        orders = (await db.execute(stmt)).scalars().all()

        for order in orders:
            await self.refund_order(order)
            logger.info("crowdfunding_order_refund_requested", product_id=product_id, order_no=order.no)

        logger.info("crowdfunding_refund_completed", product_id=product_id, refunded=len(orders))
        return len(orders)
