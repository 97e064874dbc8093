"""
Transactional outbox pattern implementation.

Domain messages are written to the database in the same transaction as the
state change that produced them, then handed to subscribers asynchronously.
Subscriber latency or failure never blocks or rolls back the change itself.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from order_payments.database.connection import get_session_factory
from order_payments.database.models import OutboxEvent
from order_payments.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

PublisherFunc = Callable[[Dict[str, Any]], Awaitable[Any]]


async def write_outbox_event(
    db: AsyncSession,
    aggregate_id: str,
    aggregate_type: str,
    event_type: str,
    payload: Dict[str, Any],
) -> OutboxEvent:
    """
    Write event to transactional outbox.

    The caller owns the transaction; nothing is committed here.

    Args:
        db: Database session
        aggregate_id: Aggregate identifier (e.g., order number)
        aggregate_type: Aggregate type (e.g., 'order')
        event_type: Event type (e.g., 'order.paid')
        payload: Event payload
    """
    outbox_event = OutboxEvent(
        aggregate_id=aggregate_id,
        aggregate_type=aggregate_type,
        event_type=event_type,
        payload=payload,
        published=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(outbox_event)
    return outbox_event


class OutboxPublisher:
    """
    Publishes events from the outbox table to subscribers.

    Delivery is at-least-once:
    1. Read unpublished events in creation order
    2. Hand each to the publisher function
    3. Mark the successfully handed-off ones as published
    """

    def __init__(
        self,
        publisher_func: PublisherFunc | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        batch_size: int = 100,
        poll_interval_seconds: float = 1.0,
    ):
        """
        Initialize outbox publisher.

        Args:
            publisher_func: Coroutine function delivering one event
            session_factory: Session factory (defaults to the application's)
            batch_size: Number of events to process per batch
            poll_interval_seconds: Polling interval
        """
        self.publisher_func = publisher_func or self._default_publisher
        self._session_factory = session_factory
        self.batch_size = batch_size
        self.poll_interval_seconds = poll_interval_seconds
        self._running = False

        logger.info(
            "outbox_publisher_initialized",
            batch_size=batch_size,
            poll_interval=poll_interval_seconds,
        )

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def _default_publisher(self, event_data: Dict[str, Any]) -> None:
        """
        Default publisher that just logs events.

        Args:
            event_data: Event data to publish
        """
        logger.info(
            "outbox_event_published_default",
            event_type=event_data.get("event_type"),
            aggregate_id=event_data.get("aggregate_id"),
        )

    async def _fetch_unpublished_events(self, db: AsyncSession) -> List[OutboxEvent]:
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.published.is_(False))
            .order_by(OutboxEvent.created_at, OutboxEvent.id)
            .limit(self.batch_size)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _serialize(event: OutboxEvent) -> Dict[str, Any]:
        return {
            "id": event.id,
            "aggregate_id": event.aggregate_id,
            "aggregate_type": event.aggregate_type,
            "event_type": event.event_type,
            "payload": event.payload,
            "created_at": event.created_at.isoformat(),
        }

    async def _publish_event(self, event: OutboxEvent) -> bool:
        """
        Publish a single event.

        Returns:
            bool: True if published successfully, False otherwise
        """
        try:
            await self.publisher_func(self._serialize(event))
        except Exception as e:
            logger.error(
                "outbox_event_publish_failed",
                event_id=event.id,
                event_type=event.event_type,
                error=str(e),
            )
            return False

        metrics.record_outbox_event_published(event.event_type)
        logger.info(
            "outbox_event_published",
            event_id=event.id,
            event_type=event.event_type,
            aggregate_id=event.aggregate_id,
        )
        return True

    async def _mark_as_published(self, db: AsyncSession, event_ids: List[int]) -> None:
        if not event_ids:
            return

        stmt = (
            update(OutboxEvent)
            .where(OutboxEvent.id.in_(event_ids))
            .values(published=True, published_at=datetime.now(timezone.utc))
        )
        await db.execute(stmt)
        await db.commit()

        logger.info("outbox_events_marked_published", count=len(event_ids))

    async def process_batch(self) -> int:
        """
        Process a batch of unpublished events.

        Returns:
            int: Number of events published
        """
        async with self.session_factory() as db:
            try:
                events = await self._fetch_unpublished_events(db)
                if not events:
                    return 0

                logger.info("outbox_batch_processing_started", batch_size=len(events))

                published_ids = []
                for event in events:
                    if await self._publish_event(event):
                        published_ids.append(event.id)

                await self._mark_as_published(db, published_ids)

                logger.info(
                    "outbox_batch_processed",
                    total=len(events),
                    published=len(published_ids),
                    failed=len(events) - len(published_ids),
                )
                return len(published_ids)

            except Exception as e:
                logger.error("outbox_batch_processing_error", error=str(e))
                await db.rollback()
                return 0

    async def start(self) -> None:
        """
        Start the outbox publisher loop.

        Continuously polls for unpublished events until stop() is called.
        """
        self._running = True
        logger.info("outbox_publisher_started")

        try:
            while self._running:
                try:
                    published_count = await self.process_batch()
                    metrics.set_outbox_queue_depth(await self.get_pending_count())

                    if published_count == 0:
                        await asyncio.sleep(self.poll_interval_seconds)
                    else:
                        # More events may be waiting, check again right away
                        await asyncio.sleep(0.1)

                except Exception as e:
                    logger.error("outbox_publisher_error", error=str(e))
                    await asyncio.sleep(self.poll_interval_seconds)

        finally:
            logger.info("outbox_publisher_stopped")

    def stop(self) -> None:
        """Stop the outbox publisher."""
        self._running = False
        logger.info("outbox_publisher_stop_requested")

    async def get_pending_count(self) -> int:
        """
        Get count of pending unpublished events.

        Returns:
            int: Number of unpublished events
        """
        async with self.session_factory() as db:
            stmt = select(func.count(OutboxEvent.id)).where(OutboxEvent.published.is_(False))
            return (await db.execute(stmt)).scalar_one()
