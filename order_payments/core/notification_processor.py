"""
Payment notification processing.

Gateways deliver "paid" callbacks at least once and in no particular order.
Each order moves Unpaid -> Paid exactly once:
1. Ignore non-success statuses (acknowledged, order untouched)
2. Look up the order by merchant order number
3. Acknowledge duplicates of an already paid order without writing
4. Mark paid with a compare-and-set on ``paid_at IS NULL``
5. Write an ``order.paid`` outbox message in the same transaction
6. Commit and acknowledge

The compare-and-set makes the check-then-act atomic per order: of several
concurrent deliveries exactly one UPDATE matches a row, and only that
handler emits the outbox message.
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from order_payments.core.acknowledgement import AcknowledgementOutcome
from order_payments.core.outbox import write_outbox_event
from order_payments.database.models import Order, PaymentMethod
from order_payments.integrations.notifications import GatewayKind, PaymentNotification
from order_payments.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

ORDER_PAID_EVENT = "order.paid"


class PaymentNotificationProcessor:
    """Applies verified payment callbacks to orders, exactly once per order."""

    def _finish(
        self,
        gateway: GatewayKind,
        result: str,
        started: float,
        outcome: AcknowledgementOutcome,
    ) -> AcknowledgementOutcome:
        metrics.record_payment_notification(
            gateway=gateway.value,
            result=result,
            duration_seconds=time.perf_counter() - started,
        )
        return outcome

    @staticmethod
    def _order_paid_payload(order: Order, paid_at: datetime) -> Dict[str, Any]:
        return {
            "order_id": order.id,
            "order_no": order.no,
            "user_id": order.user_id,
            "order_type": order.type,
            "total_amount": str(order.total_amount),
            "payment_method": order.payment_method,
            "payment_no": order.payment_no,
            "paid_at": paid_at.isoformat(),
        }

    async def handle_notification(
        self,
        gateway: GatewayKind,
        notification: PaymentNotification,
        db: AsyncSession,
    ) -> AcknowledgementOutcome:
        """
        Apply a verified payment callback.

        Business branches never raise; every one of them ends in an outcome
        the boundary translates into the gateway's wire response.

        Args:
            gateway: Gateway that delivered the callback
            notification: Verified, normalised callback payload
            db: Database session

        Returns:
            AcknowledgementOutcome: ACKNOWLEDGE, or REJECTED for unknown orders
        """
        started = time.perf_counter()
        log = logger.bind(
            gateway=gateway.value,
            order_no=notification.out_trade_no,
            status=notification.status,
        )

        if not notification.is_successful_for(gateway):
            log.info("payment_notification_ignored")
            return self._finish(gateway, "ignored", started, AcknowledgementOutcome.ACKNOWLEDGE)

        try:
            stmt = select(Order).where(Order.no == notification.out_trade_no)
            order = (await db.execute(stmt)).scalar_one_or_none()

            if order is None:
                log.warning("payment_notification_order_not_found")
                await db.rollback()
                return self._finish(gateway, "not_found", started, AcknowledgementOutcome.REJECTED)

            if order.paid_at is not None:
                log.info(
                    "payment_notification_duplicate",
                    paid_at=order.paid_at.isoformat(),
                    payment_no=order.payment_no,
                )
                await db.rollback()
                return self._finish(gateway, "duplicate", started, AcknowledgementOutcome.ACKNOWLEDGE)

            if order.closed:
                # Closed orders are terminal; refunding the buyer is handled out of band
                log.warning("payment_notification_for_closed_order")
                await db.rollback()
                return self._finish(gateway, "closed", started, AcknowledgementOutcome.ACKNOWLEDGE)

            paid_at = datetime.now(timezone.utc)
            method = PaymentMethod(gateway.value).value
            result = await db.execute(
                update(Order)
                .where(
                    Order.id == order.id,
                    Order.paid_at.is_(None),
                    Order.closed.is_(False),
                )
                .values(
                    paid_at=paid_at,
                    payment_method=method,
                    payment_no=notification.transaction_id,
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                await db.rollback()
                # Either a concurrent delivery won, or the order was closed meanwhile
                log.info("payment_notification_lost_race")
                return self._finish(gateway, "lost_race", started, AcknowledgementOutcome.ACKNOWLEDGE)

            set_committed_value(order, "paid_at", paid_at)
            set_committed_value(order, "payment_method", method)
            set_committed_value(order, "payment_no", notification.transaction_id)

            await write_outbox_event(
                db,
                aggregate_id=order.no,
                aggregate_type="order",
                event_type=ORDER_PAID_EVENT,
                payload=self._order_paid_payload(order, paid_at),
            )
            await db.commit()

        except Exception:
            await db.rollback()
            log.exception("payment_notification_failed")
            raise

        log.info(
            "order_paid",
            payment_method=method,
            payment_no=notification.transaction_id,
        )
        return self._finish(gateway, "paid", started, AcknowledgementOutcome.ACKNOWLEDGE)
