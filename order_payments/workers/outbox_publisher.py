"""
Outbox publisher background worker.

Continuously polls the outbox table and hands ``order.paid`` and other
domain messages to downstream subscribers.
"""
import asyncio
import signal
from typing import Any, Dict

import structlog

from order_payments.config import get_settings
from order_payments.core.outbox import OutboxPublisher
from order_payments.database.connection import close_db
from order_payments.monitoring.logging import setup_logging

logger = structlog.get_logger(__name__)


async def publish_to_message_queue(event_data: Dict[str, Any]) -> None:
    """
    Publish event to the message queue.

    Queue transport belongs to the dispatcher deployment; this default
    only records the handoff.

    Args:
        event_data: Event data to publish
    """
    logger.info(
        "event_published_to_queue",
        event_type=event_data.get("event_type"),
        aggregate_id=event_data.get("aggregate_id"),
    )


async def start_outbox_publisher() -> None:
    """
    Start the outbox publisher worker.

    Runs continuously until stopped.
    """
    setup_logging()
    settings = get_settings()

    logger.info("outbox_publisher_worker_starting")

    publisher = OutboxPublisher(
        publisher_func=publish_to_message_queue,
        batch_size=settings.outbox_batch_size,
        poll_interval_seconds=settings.outbox_poll_interval,
    )

    def signal_handler(sig: int, frame: Any) -> None:
        logger.info("outbox_publisher_worker_shutdown_signal_received", signal=sig)
        publisher.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        await publisher.start()
    except Exception as e:
        logger.error("outbox_publisher_worker_error", error=str(e))
        raise
    finally:
        await close_db()
        logger.info("outbox_publisher_worker_stopped")


def main() -> None:
    asyncio.run(start_outbox_publisher())


if __name__ == "__main__":
    main()
