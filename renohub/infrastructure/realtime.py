"""
Realtime change notifications for inspiration items
"""
from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from ..config import Settings, settings
from .backend import BackendConnection

logger = logging.getLogger(__name__)

ItemCallback = Callable[[str], None]
Unsubscribe = Callable[[], Awaitable[None]]


def extract_record_id(payload: Dict[str, Any], old: bool = False) -> Optional[str]:
    """Pull the changed row's id out of a postgres_changes payload"""
    keys = ("old_record", "old") if old else ("record", "new")
    sources = [payload]
    data = payload.get("data")
    if isinstance(data, dict):
        sources.insert(0, data)

    for source in sources:
        for key in keys:
            record = source.get(key)
            if isinstance(record, dict):
                record_id = record.get("id")
                if isinstance(record_id, str) and record_id:
                    return record_id
    return None


class InspirationRealtime:
    """Subscribe to portfolio INSERT/UPDATE/DELETE events"""

    def __init__(self, backend: BackendConnection, app_settings: Settings = settings):
        self.backend = backend
        self.settings = app_settings

    def _handler(self, event: str, callback: ItemCallback, old: bool = False):
        def handle(payload: Dict[str, Any]) -> None:
            item_id = extract_record_id(payload, old=old)
            if item_id is None:
                logger.warning(f"Ignoring {event} event without a record id")
                return
            try:
                callback(item_id)
            except Exception as e:
                logger.error(f"Realtime {event} handler failed for {item_id}: {e}")
        return handle

    async def subscribe(
        self,
        on_insert: ItemCallback,
        on_update: ItemCallback,
        on_delete: Optional[ItemCallback] = None,
    ) -> Unsubscribe:
        """
        Open the change channel.

        Callbacks receive the changed item's id and run on the event loop;
        they must not block. Returns a coroutine function that closes the
        channel.
        """
        table = self.settings.REALTIME_TABLE
        channel = self.backend.channel(self.settings.REALTIME_CHANNEL)
        channel.on_postgres_changes(
            "INSERT", schema="public", table=table,
            callback=self._handler("INSERT", on_insert),
        )
        channel.on_postgres_changes(
            "UPDATE", schema="public", table=table,
            callback=self._handler("UPDATE", on_update),
        )
        if on_delete is not None:
            channel.on_postgres_changes(
                "DELETE", schema="public", table=table,
                callback=self._handler("DELETE", on_delete, old=True),
            )

        await channel.subscribe()
        logger.info(f"Subscribed to realtime changes on {table}")

        async def unsubscribe() -> None:
            try:
                await self.backend.remove_channel(channel)
                logger.info(f"Unsubscribed from realtime changes on {table}")
            except Exception as e:
                logger.warning(f"Failed to remove realtime channel: {e}")

        return unsubscribe
