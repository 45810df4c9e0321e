"""
Portfolio repository - Provider projects and their media
"""
from typing import List, Optional
import logging

from ...config import Settings, settings
from ...domain.errors import BackendError, to_backend_error
from ...domain.models import Portfolio, PortfolioImage
from ...domain.repositories import IPortfolioRepository
from ...domain.result import Result
from ...schemas import AddPortfolioImageRequest, CreatePortfolioRequest, UpdatePortfolioRequest
from ..backend import BackendConnection
from ..mappers import PortfolioMapper
from ..storage import MediaStorage
from .base import BackendRepository

logger = logging.getLogger(__name__)


class PortfolioRepository(BackendRepository, IPortfolioRepository):
    """Writes go to ``portfolios``; reads use the ``portfolio_feed`` view"""

    def __init__(
        self,
        backend: BackendConnection,
        storage: MediaStorage,
        app_settings: Settings = settings,
    ):
        super().__init__(backend, app_settings)
        self.storage = storage

    def _to_portfolio(self, row) -> Portfolio:
        return PortfolioMapper.to_portfolio(row, self.settings.PROVIDER_DEFAULT_CURRENCY)

    async def create_portfolio(
        self, user_id: str, request: CreatePortfolioRequest
    ) -> Result[Portfolio]:
        try:
            row = request.model_dump()
            row["user_id"] = user_id
            row["currency"] = request.currency or self.settings.PROVIDER_DEFAULT_CURRENCY

            response = await self.backend.table("portfolios").insert(row).execute()
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Portfolio was not created"))

            logger.info(f"Portfolio created by {user_id}: {request.title}")
            return Result.ok(self._to_portfolio(rows[0]))
        except Exception as e:
            logger.error(f"Failed to create portfolio for {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def update_portfolio(
        self, portfolio_id: str, request: UpdatePortfolioRequest
    ) -> Result[Portfolio]:
        try:
            response = await (
                self.backend.table("portfolios")
                .update(request.to_row())
                .eq("id", portfolio_id)
                .execute()
            )
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Portfolio not found"))
            return Result.ok(self._to_portfolio(rows[0]))
        except Exception as e:
            logger.error(f"Failed to update portfolio {portfolio_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_portfolio(self, portfolio_id: str) -> Result[Optional[Portfolio]]:
        try:
            row = await self._maybe_single(
                self.backend.table("portfolio_feed").select("*").eq("id", portfolio_id)
            )
            return Result.ok(self._to_portfolio(row) if row else None)
        except Exception as e:
            logger.error(f"Failed to fetch portfolio {portfolio_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_portfolios(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        is_featured: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Result[List[Portfolio]]:
        try:
            query = self.backend.table("portfolio_feed").select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            if status:
                query = query.eq("status", status)
            if is_featured is not None:
                query = query.eq("is_featured", is_featured)

            response = await (
                query.order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return Result.ok([self._to_portfolio(row) for row in response.data or []])
        except Exception as e:
            logger.error(f"Failed to list portfolios: {e}")
            return Result.fail(to_backend_error(e))

    async def delete_portfolio(self, portfolio_id: str) -> Result[bool]:
        try:
            await self.backend.table("portfolios").delete().eq("id", portfolio_id).execute()
            logger.info(f"Portfolio deleted: {portfolio_id}")
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to delete portfolio {portfolio_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Images

    async def add_image(self, request: AddPortfolioImageRequest) -> Result[PortfolioImage]:
        try:
            response = await (
                self.backend.table("portfolio_images")
                .insert(request.model_dump())
                .execute()
            )
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Image was not added"))
            return Result.ok(PortfolioMapper.to_image(rows[0]))
        except Exception as e:
            logger.error(f"Failed to add image to portfolio {request.portfolio_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def delete_image(self, image_id: str) -> Result[bool]:
        try:
            await self.backend.table("portfolio_images").delete().eq("id", image_id).execute()
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to delete portfolio image {image_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def upload_file(self, data: bytes, filename: str, user_id: str) -> Result[str]:
        try:
            url = await self.storage.upload(
                data, filename, user_id, self.settings.PROVIDER_ASSETS_BUCKET,
                prefix="portfolio-",
            )
            return Result.ok(url)
        except Exception as e:
            logger.error(f"Failed to upload portfolio file for {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def record_impression(
        self, portfolio_id: str, user_id: Optional[str] = None
    ) -> Result[bool]:
        try:
            await self.backend.rpc("record_portfolio_impression", {
                "p_portfolio_id": portfolio_id,
                "p_user_id": user_id,
            }).execute()
            return Result.ok(True)
        except Exception as e:
            logger.warning(f"Failed to record impression of portfolio {portfolio_id}: {e}")
            return Result.fail(to_backend_error(e))
