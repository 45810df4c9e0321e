"""
Realtime consumer - Applies queued change events to the feed store
"""
from typing import Awaitable, Callable, Optional
import asyncio
import logging

from ..config import Settings, settings
from ..infrastructure.realtime import InspirationRealtime
from ..schemas import FeedEvent
from .feed_service import FeedService

logger = logging.getLogger(__name__)


class RealtimeFeedConsumer:
    """
    Bridge between realtime callbacks and the feed store.

    Subscription callbacks only enqueue events; a single task re-reads each
    changed item with the current viewer's flags and writes it to the store.
    """

    def __init__(
        self,
        realtime: InspirationRealtime,
        feed_service: FeedService,
        app_settings: Settings = settings,
    ):
        self.realtime = realtime
        self.feed_service = feed_service
        self.settings = app_settings
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=app_settings.REALTIME_QUEUE_SIZE)
        self.running = False
        self.task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], Awaitable[None]]] = None

    def publish(self, event: FeedEvent) -> bool:
        """Enqueue an event without blocking; drops it when the queue is full"""
        try:
            self.queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            logger.warning(f"Realtime queue full, dropping {event.event_type} for {event.item_id}")
            return False

    async def start(self):
        """Subscribe to changes and start consuming"""
        if not self.settings.REALTIME_ENABLED:
            logger.warning("Realtime is disabled")
            return

        try:
            self._unsubscribe = await self.realtime.subscribe(
                on_insert=lambda item_id: self.publish(FeedEvent(event_type="insert", item_id=item_id)),
                on_update=lambda item_id: self.publish(FeedEvent(event_type="update", item_id=item_id)),
                on_delete=lambda item_id: self.publish(FeedEvent(event_type="delete", item_id=item_id)),
            )
        except Exception as e:
            logger.error(f"Failed to subscribe to realtime changes: {e}")
            return

        self.running = True
        self.task = asyncio.create_task(self._consume_messages())
        logger.info("Realtime feed consumer started")

    async def stop(self):
        """Stop consuming and close the subscription"""
        self.running = False

        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

        if self._unsubscribe:
            await self._unsubscribe()
            self._unsubscribe = None
            logger.info("Realtime feed consumer stopped")

    async def drain(self) -> int:
        """Apply every queued event now; returns how many were processed"""
        processed = 0
        while not self.queue.empty():
            event = self.queue.get_nowait()
            try:
                await self._process_message(event)
            except Exception as e:
                logger.error(f"Error processing realtime event: {e}")
            finally:
                self.queue.task_done()
            processed += 1
        return processed

    async def _consume_messages(self):
        logger.info("Started consuming realtime events")

        try:
            while self.running:
                event = await self.queue.get()
                try:
                    await self._process_message(event)
                except Exception as e:
                    logger.error(f"Error processing realtime event: {e}")
                finally:
                    self.queue.task_done()

        except asyncio.CancelledError:
            logger.info("Realtime consumer task cancelled")

    async def _process_message(self, event: FeedEvent):
        store = self.feed_service.store
        logger.debug(f"Processing realtime {event.event_type} for {event.item_id}")

        if event.event_type == "delete":
            store.remove_item(event.item_id)
            return

        result = await self.feed_service.repository.fetch_item(
            event.item_id, self.feed_service.viewer_id
        )
        if result.is_failure():
            logger.error(f"Failed to load changed item {event.item_id}: {result.error.message}")
            return

        item = result.value
        if item is None:
            # Row changed but is no longer visible through the feed view
            if event.event_type == "update":
                store.remove_item(event.item_id)
            return

        store.upsert_item(item)
