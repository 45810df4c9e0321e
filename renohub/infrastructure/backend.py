"""
Backend connection manager (Supabase: PostgREST, storage, realtime)
"""
from typing import Any, Dict, Optional
import logging

from supabase import AsyncClient, acreate_client

from ..config import Settings

logger = logging.getLogger(__name__)


class BackendConnection:
    """Owns the async Supabase client shared by all repositories"""

    def __init__(self, settings: Settings, client: Optional[AsyncClient] = None):
        self.settings = settings
        self.client: Optional[AsyncClient] = client

    async def connect(self):
        """Create the backend client"""
        if self.client is not None:
            return

        try:
            self.client = await acreate_client(
                self.settings.SUPABASE_URL,
                self.settings.SUPABASE_KEY,
            )
            logger.info(f"Backend client created for {self.settings.SUPABASE_URL}")
        except Exception as e:
            logger.error(f"Failed to create backend client: {e}")
            raise

    async def disconnect(self):
        """Release realtime channels held by the client"""
        if self.client:
            try:
                await self.client.remove_all_channels()
            except Exception as e:
                logger.warning(f"Failed to remove realtime channels: {e}")
            self.client = None
            logger.info("Backend client released")

    def _require_client(self) -> AsyncClient:
        if self.client is None:
            raise RuntimeError("Backend client not connected")
        return self.client

    def table(self, name: str):
        """Start a PostgREST query on a table or view"""
        return self._require_client().table(name)

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None):
        """Start a stored-procedure call"""
        return self._require_client().rpc(function, params or {})

    @property
    def storage(self):
        return self._require_client().storage

    def channel(self, name: str):
        """Create a realtime channel"""
        return self._require_client().channel(name)

    async def remove_channel(self, channel) -> None:
        await self._require_client().remove_channel(channel)
