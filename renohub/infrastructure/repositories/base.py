"""
Shared helpers for backend repositories
"""
from typing import Any, Dict, Optional
import logging

from ...config import Settings, settings
from ...domain.errors import to_backend_error
from ..backend import BackendConnection

logger = logging.getLogger(__name__)


class BackendRepository:
    """Base class holding the backend connection and settings"""

    def __init__(self, backend: BackendConnection, app_settings: Settings = settings):
        self.backend = backend
        self.settings = app_settings

    async def _insert_relation(self, table: str, row: Dict[str, Any]) -> None:
        """Insert a relation row; an existing identical row counts as success"""
        try:
            await self.backend.table(table).insert(row).execute()
        except Exception as e:
            error = to_backend_error(e)
            if not error.is_unique_violation:
                raise error
            logger.debug(f"Relation already present in {table}: {row}")

    async def _delete_relation(self, table: str, match: Dict[str, Any]) -> None:
        query = self.backend.table(table).delete()
        for column, value in match.items():
            query = query.eq(column, value)
        await query.execute()

    async def _maybe_single(self, query) -> Optional[Dict[str, Any]]:
        """Execute a ``maybe_single`` query; no row is ``None``"""
        try:
            response = await query.maybe_single().execute()
        except Exception as e:
            if to_backend_error(e).is_not_found:
                return None
            raise
        if response is None:
            return None
        return response.data or None
