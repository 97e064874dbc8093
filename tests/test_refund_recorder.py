"""
Tests for refund result recording.
"""
import pytest

from order_payments.core.acknowledgement import AcknowledgementOutcome
from order_payments.core.refund_recorder import REFUND_FAILED_CODE_KEY, RefundStatusRecorder
from order_payments.integrations.notifications import RefundNotification


class TestRefundStatusRecorder:
    """Test suite for RefundStatusRecorder."""

    @pytest.mark.asyncio
    async def test_success_marks_refund_succeeded(self, make_order, load_order, test_db) -> None:
        await make_order(no="20261019000001", refund_status="processing")

        outcome = await RefundStatusRecorder().handle_refund_notification(
            RefundNotification.from_wechat(
                {"out_trade_no": "20261019000001", "refund_status": "SUCCESS"}
            ),
            test_db,
        )

        order = await load_order("20261019000001")
        assert outcome is AcknowledgementOutcome.ACKNOWLEDGE
        assert order.refund_status == "success"
        assert REFUND_FAILED_CODE_KEY not in order.extra

    @pytest.mark.asyncio
    async def test_failure_keeps_diagnostic_code_and_other_keys(
        self, make_order, load_order, test_db
    ) -> None:
        await make_order(
            no="20261019000001",
            refund_status="processing",
            extra={"refund_reason": "changed mind", "operator": "ops-7"},
        )

        outcome = await RefundStatusRecorder().handle_refund_notification(
            RefundNotification.from_wechat(
                {"out_trade_no": "20261019000001", "refund_status": "CHANGE"}
            ),
            test_db,
        )

        order = await load_order("20261019000001")
        assert outcome is AcknowledgementOutcome.ACKNOWLEDGE
        assert order.refund_status == "failed"
        assert order.extra == {
            "refund_reason": "changed mind",
            "operator": "ops-7",
            REFUND_FAILED_CODE_KEY: "CHANGE",
        }

    @pytest.mark.asyncio
    async def test_failure_prefers_explicit_failure_code(
        self, make_order, load_order, test_db
    ) -> None:
        await make_order(no="20261019000001", refund_status="processing")

        await RefundStatusRecorder().handle_refund_notification(
            RefundNotification(
                out_trade_no="20261019000001",
                refund_status="REFUNDCLOSE",
                failure_code="NOTENOUGH",
            ),
            test_db,
        )

        order = await load_order("20261019000001")
        assert order.extra[REFUND_FAILED_CODE_KEY] == "NOTENOUGH"

    @pytest.mark.asyncio
    async def test_redelivery_rewrites_same_state(self, make_order, load_order, test_db) -> None:
        await make_order(no="20261019000001", refund_status="processing", extra={"a": "1"})
        recorder = RefundStatusRecorder()
        notification = RefundNotification(out_trade_no="20261019000001", refund_status="CHANGE")

        await recorder.handle_refund_notification(notification, test_db)
        first = await load_order("20261019000001")
        await recorder.handle_refund_notification(notification, test_db)
        second = await load_order("20261019000001")

        assert second.refund_status == first.refund_status == "failed"
        assert second.extra == first.extra == {"a": "1", REFUND_FAILED_CODE_KEY: "CHANGE"}

    @pytest.mark.asyncio
    async def test_unknown_order_is_hard_failure(self, make_order, load_order, test_db) -> None:
        await make_order(no="20261019000001", refund_status="processing")

        outcome = await RefundStatusRecorder().handle_refund_notification(
            RefundNotification(out_trade_no="UNKNOWN", refund_status="SUCCESS"),
            test_db,
        )

        assert outcome is AcknowledgementOutcome.HARD_FAILURE
        assert (await load_order("20261019000001")).refund_status == "processing"

    @pytest.mark.unit
    def test_merge_extra_does_not_mutate_input(self) -> None:
        original = {"keep": "me"}

        merged = RefundStatusRecorder.merge_extra(original, "refund_failed_code", "X")

        assert original == {"keep": "me"}
        assert merged == {"keep": "me", "refund_failed_code": "X"}
        assert RefundStatusRecorder.merge_extra(None, "k", "v") == {"k": "v"}
