"""
Race condition tests for concurrent gateway deliveries and plan selection.

Every task uses its own session (and therefore its own connection), the way
concurrent webhook requests would.
"""
import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import select

from order_payments.core.acknowledgement import AcknowledgementOutcome
from order_payments.core.installment_planner import InstallmentPlanner
from order_payments.core.notification_processor import ORDER_PAID_EVENT, PaymentNotificationProcessor
from order_payments.database.models import Installment, InstallmentStatus
from order_payments.integrations.notifications import GatewayKind, PaymentNotification


class TestRaceConditions:
    """Test suite for race condition scenarios."""

    @pytest.mark.race
    @pytest.mark.asyncio
    async def test_concurrent_redeliveries_pay_order_once(
        self, make_order, load_order, count_outbox_events, session_factory, alipay_paid_payload
    ) -> None:
        """
        Ten concurrent deliveries of the same callback.

        All are acknowledged, the order is paid once and exactly one
        order.paid message is written.
        """
        await make_order(no="20261019000001")
        processor = PaymentNotificationProcessor()
        notification = PaymentNotification.from_alipay(alipay_paid_payload)

        async def deliver() -> AcknowledgementOutcome:
            async with session_factory() as session:
                return await processor.handle_notification(GatewayKind.ALIPAY, notification, session)

        outcomes = await asyncio.gather(*(deliver() for _ in range(10)))

        assert set(outcomes) == {AcknowledgementOutcome.ACKNOWLEDGE}
        order = await load_order("20261019000001")
        assert order.paid_at is not None
        assert order.payment_no == alipay_paid_payload["trade_no"]
        assert await count_outbox_events(ORDER_PAID_EVENT) == 1

    @pytest.mark.race
    @pytest.mark.asyncio
    async def test_concurrent_gateways_single_winner(
        self,
        make_order,
        load_order,
        count_outbox_events,
        session_factory,
        alipay_paid_payload,
        wechat_paid_payload,
    ) -> None:
        """Alipay and WeChat racing for the same order: one method wins, consistently."""
        await make_order(no="20261019000001")
        processor = PaymentNotificationProcessor()

        async def deliver(gateway: GatewayKind, notification: PaymentNotification) -> None:
            async with session_factory() as session:
                await processor.handle_notification(gateway, notification, session)

        await asyncio.gather(
            deliver(GatewayKind.ALIPAY, PaymentNotification.from_alipay(alipay_paid_payload)),
            deliver(GatewayKind.WECHAT, PaymentNotification.from_wechat(wechat_paid_payload)),
        )

        order = await load_order("20261019000001")
        expected_no = {
            "alipay": alipay_paid_payload["trade_no"],
            "wechat": wechat_paid_payload["transaction_id"],
        }
        assert order.payment_method in expected_no
        assert order.payment_no == expected_no[order.payment_method]
        assert await count_outbox_events(ORDER_PAID_EVENT) == 1

    @pytest.mark.race
    @pytest.mark.asyncio
    async def test_distinct_orders_are_independent(
        self, make_order, load_order, count_outbox_events, session_factory
    ) -> None:
        numbers = [f"2026101900010{i}" for i in range(5)]
        for no in numbers:
            await make_order(no=no)
        processor = PaymentNotificationProcessor()

        async def deliver(no: str) -> AcknowledgementOutcome:
            notification = PaymentNotification(
                out_trade_no=no, status="TRADE_SUCCESS", transaction_id=f"T{no}"
            )
            async with session_factory() as session:
                return await processor.handle_notification(GatewayKind.ALIPAY, notification, session)

        await asyncio.gather(*(deliver(no) for no in numbers))

        for no in numbers:
            assert (await load_order(no)).payment_no == f"T{no}"
        assert await count_outbox_events(ORDER_PAID_EVENT) == len(numbers)

    @pytest.mark.race
    @pytest.mark.asyncio
    async def test_concurrent_plan_selection_leaves_one_pending_plan(
        self, installment_config, make_order, session_factory
    ) -> None:
        order = await make_order(total_amount="1000.00")
        planner = InstallmentPlanner(installment_config)

        async def select_plan(count: int) -> Installment:
            async with session_factory() as session:
                return await planner.create_plan(order.id, 1, count, session)

        await asyncio.gather(select_plan(3), select_plan(6), select_plan(12))

        async with session_factory() as session:
            pending = (
                await session.execute(
                    select(Installment).where(
                        Installment.order_id == order.id,
                        Installment.status == InstallmentStatus.PENDING.value,
                    )
                )
            ).scalars().all()

        assert len(pending) == 1
        assert pending[0].total_amount == Decimal("1000.00")
