"""Refund result callbacks."""
import time
from typing import Dict

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from order_payments.core.acknowledgement import AcknowledgementOutcome
from order_payments.database.models import Order, RefundStatus
from order_payments.integrations.notifications import RefundNotification
from order_payments.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

REFUND_FAILED_CODE_KEY = "refund_failed_code"


class RefundStatusRecorder:
    """
    Records the gateway's refund outcome on the order.

    Unlike payment callbacks there is no duplicate guard: the written state
    depends only on the payload, so redelivery rewrites the same values.
    """

    @staticmethod
    def merge_extra(extra: Dict[str, str] | None, key: str, value: str) -> Dict[str, str]:
        """Return a copy of ``extra`` with one key set; other keys are kept."""
        merged = dict(extra or {})
        merged[key] = value
        return merged

    async def handle_refund_notification(
        self,
        notification: RefundNotification,
        db: AsyncSession,
    ) -> AcknowledgementOutcome:
        """
        Apply a verified refund callback.

        Args:
            notification: Verified, normalised refund payload
            db: Database session

        Returns:
            AcknowledgementOutcome: ACKNOWLEDGE, or HARD_FAILURE for unknown orders
        """
        started = time.perf_counter()
        log = logger.bind(
            order_no=notification.out_trade_no,
            refund_status=notification.refund_status,
        )

        try:
            # Row lock keeps the read-modify-write of ``extra`` from losing keys
            stmt = select(Order).where(Order.no == notification.out_trade_no).with_for_update()
            order = (await db.execute(stmt)).scalar_one_or_none()

            if order is None:
                await db.rollback()
                log.warning("refund_notification_order_not_found")
                metrics.record_refund_notification("not_found", time.perf_counter() - started)
                return AcknowledgementOutcome.HARD_FAILURE

            if notification.succeeded:
                order.refund_status = RefundStatus.SUCCESS.value
                result = "success"
            else:
                order.refund_status = RefundStatus.FAILED.value
                order.extra = self.merge_extra(
                    order.extra, REFUND_FAILED_CODE_KEY, notification.diagnostic_code
                )
                result = "failed"

            await db.commit()

        except Exception:
            await db.rollback()
            log.exception("refund_notification_failed")
            raise

        metrics.record_refund_notification(result, time.perf_counter() - started)
        log.info("refund_status_recorded", result=result, extra=order.extra)
        return AcknowledgementOutcome.ACKNOWLEDGE
