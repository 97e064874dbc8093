"""
Installment plan generation.

Splits an order total into ``count`` periodic payments:
1. base = truncate(total / count) for every period but the last
2. fee = truncate(total * fee_rate / 100), identical for every period
3. last base = total - base * (count - 1), so the bases add up exactly
4. period 0 is due the day after creation, each next period 30 days later

Creating a plan replaces any pending plan of the same order. The replacement
runs in one transaction with the order row locked, so two concurrent
selections cannot delete each other's new plan.
"""
import time
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import List, NamedTuple

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from order_payments.config import InstallmentConfig
from order_payments.core import money
from order_payments.core.exceptions import InvalidRequestError, OrderNotFoundError
from order_payments.database.models import (
    Installment,
    InstallmentItem,
    InstallmentStatus,
    Order,
)
from order_payments.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

REPAYMENT_INTERVAL = timedelta(days=30)


class ScheduleItem(NamedTuple):
    """One period of a computed repayment schedule."""

    sequence: int
    base: Decimal
    fee: Decimal
    due_date: date

    @property
    def total(self) -> Decimal:
        return self.base + self.fee


def build_schedule(
    total_amount: Decimal,
    count: int,
    fee_rate: Decimal,
    first_due_date: date,
) -> List[ScheduleItem]:
    """
    Compute the repayment schedule for a plan.

    Args:
        total_amount: Order total to repay
        count: Number of periods
        fee_rate: Per-period fee rate in percent of the total
        first_due_date: Due date of period 0

    Returns:
        List[ScheduleItem]: Periods ordered by sequence
    """
    bases = money.split_evenly(total_amount, count)
    fee = money.percentage(total_amount, fee_rate)

    return [
        ScheduleItem(
            sequence=i,
            base=base,
            fee=fee,
            due_date=first_due_date + REPAYMENT_INTERVAL * i,
        )
        for i, base in enumerate(bases)
    ]


class InstallmentPlanner:
    """
    Creates installment plans for unpaid orders.

    Eligibility rules (minimum amount, offered period counts and their fee
    rates, fine rate) come from the injected InstallmentConfig.
    """

    def __init__(self, config: InstallmentConfig):
        """
        Initialize installment planner.

        Args:
            config: Installment eligibility and pricing rules
        """
        self.config = config

        logger.info(
            "installment_planner_initialized",
            min_amount=str(config.min_amount),
            counts=sorted(config.fee_rates),
        )

    def _reject(self, reason: str, message: str, **context: object) -> InvalidRequestError:
        logger.info("installment_plan_rejected", reason=reason, **context)
        metrics.record_installment_rejection(reason)
        return InvalidRequestError(message)

    def validate(self, order: Order, count: int) -> Decimal:
        """
        Check that ``order`` may be split into ``count`` periods.

        Returns:
            Decimal: Fee rate for the requested count

        Raises:
            InvalidRequestError: If the order or count is not eligible
        """
        if order.paid_at is not None or order.closed:
            raise self._reject(
                "order_state", "Order is already paid or closed", order_no=order.no
            )

        if order.total_amount < self.config.min_amount:
            raise self._reject(
                "below_minimum",
                f"Order amount is below the installment minimum of {self.config.min_amount}",
                order_no=order.no,
                total_amount=str(order.total_amount),
            )

        fee_rate = self.config.fee_rate_for(count)
        if fee_rate is None:
            raise self._reject(
                "count_not_offered",
                f"Installment count {count} is not offered",
                order_no=order.no,
                count=count,
            )
        return fee_rate

    async def create_plan(
        self,
        order_id: int,
        user_id: int,
        count: int,
        db: AsyncSession,
        today: date | None = None,
    ) -> Installment:
        """
        Create an installment plan, replacing any pending plan of the order.

        The pending-plan deletion and the new plan are committed together.

        Args:
            order_id: Order to split
            user_id: Buyer who owns the plan
            count: Requested number of periods
            db: Database session
            today: Plan creation date (defaults to the current UTC date)

        Returns:
            Installment: Persisted plan with its items loaded

        Raises:
            OrderNotFoundError: If the order does not exist
            InvalidRequestError: If the order or count is not eligible
        """
        started = time.perf_counter()
        today = today or datetime.now(timezone.utc).date()

        try:
            stmt = select(Order).where(Order.id == order_id).with_for_update()
            order = (await db.execute(stmt)).scalar_one_or_none()
            if order is None:
                raise OrderNotFoundError(order_id)

            fee_rate = self.validate(order, count)

            pending_ids = select(Installment.id).where(
                Installment.order_id == order.id,
                Installment.status == InstallmentStatus.PENDING.value,
            )
            await db.execute(
                delete(InstallmentItem).where(InstallmentItem.installment_id.in_(pending_ids))
            )
            replaced = await db.execute(
                delete(Installment).where(
                    Installment.order_id == order.id,
                    Installment.status == InstallmentStatus.PENDING.value,
                )
            )

            schedule = build_schedule(
                total_amount=order.total_amount,
                count=count,
                fee_rate=fee_rate,
                first_due_date=today + timedelta(days=1),
            )

            installment = Installment(
                user_id=user_id,
                order_id=order.id,
                total_amount=order.total_amount,
                count=count,
                fee_rate=fee_rate,
                fine_rate=self.config.fine_rate,
                status=InstallmentStatus.PENDING.value,
                items=[
                    InstallmentItem(
                        sequence=item.sequence,
                        base=item.base,
                        fee=item.fee,
                        due_date=item.due_date,
                    )
                    for item in schedule
                ],
            )
            db.add(installment)
            await db.commit()

        except Exception:
            await db.rollback()
            raise

        metrics.record_installment_plan(count)
        logger.info(
            "installment_plan_created",
            order_no=order.no,
            installment_id=installment.id,
            count=count,
            fee_rate=str(fee_rate),
            replaced_pending=replaced.rowcount,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return installment
