"""
Composition root - Wires the backend client, repositories and feed
"""
from typing import Optional
import logging

from supabase import AsyncClient

from .application import FeedService, FeedStore, RealtimeFeedConsumer
from .config import Settings, settings
from .infrastructure import (
    BackendConnection,
    ForumRepository,
    InspirationRealtime,
    InspirationRepository,
    MediaStorage,
    MessageRepository,
    PortfolioRepository,
    ProfileRepository,
    ProviderRepository,
)

logger = logging.getLogger(__name__)


class RenoHub:
    """
    Client facade over the hosted backend

    Usage:
        async with RenoHub() as hub:
            hub.set_viewer(user_id)
            await hub.feed.refresh()
    """

    def __init__(
        self,
        app_settings: Settings = settings,
        client: Optional[AsyncClient] = None,
        viewer_id: Optional[str] = None,
    ):
        self.settings = app_settings
        self.backend = BackendConnection(app_settings, client=client)
        self.storage = MediaStorage(self.backend)

        self.inspiration = InspirationRepository(self.backend, app_settings)
        self.forum = ForumRepository(self.backend, self.storage, app_settings)
        self.messages = MessageRepository(self.backend, app_settings)
        self.profiles = ProfileRepository(self.backend, self.storage, app_settings)
        self.providers = ProviderRepository(self.backend, self.storage, app_settings)
        self.portfolios = PortfolioRepository(self.backend, self.storage, app_settings)

        self.feed_store = FeedStore()
        self.feed = FeedService(self.inspiration, self.feed_store, app_settings, viewer_id)
        self.realtime = RealtimeFeedConsumer(
            InspirationRealtime(self.backend, app_settings), self.feed, app_settings
        )

    @property
    def viewer_id(self) -> Optional[str]:
        return self.feed.viewer_id

    def set_viewer(self, viewer_id: Optional[str]) -> None:
        """Switch the signed-in user; the feed cache is cleared"""
        self.feed.set_viewer(viewer_id)

    async def connect(self):
        logger.info(f"Starting {self.settings.APP_NAME} v{self.settings.APP_VERSION}...")

        await self.backend.connect()
        await self.realtime.start()

        logger.info(f"{self.settings.APP_NAME} ready")

    async def close(self):
        logger.info(f"Shutting down {self.settings.APP_NAME}...")

        await self.realtime.stop()
        await self.backend.disconnect()

    async def __aenter__(self) -> "RenoHub":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
