"""
Provider directory repository
"""
from typing import List, Optional
import logging

from ...config import Settings, settings
from ...domain.errors import BackendError, to_backend_error
from ...domain.models import ProviderProfile, ProviderReview, ProviderSummary
from ...domain.repositories import IProviderRepository
from ...domain.result import Result
from ...schemas import (
    CreateProviderPortfolioRequest,
    CreateReviewRequest,
    CreateServiceRequest,
    UpdateProviderProfileRequest,
)
from ..backend import BackendConnection
from ..mappers import ProviderMapper
from ..storage import MediaStorage
from .base import BackendRepository

logger = logging.getLogger(__name__)

REVIEW_COLUMNS = "*, reviewer:app_users!provider_reviews_reviewer_id_fkey(username, avatar_url)"


class ProviderRepository(BackendRepository, IProviderRepository):
    """Provider repository implementation; providers are ``app_users`` rows"""

    def __init__(
        self,
        backend: BackendConnection,
        storage: MediaStorage,
        app_settings: Settings = settings,
    ):
        super().__init__(backend, app_settings)
        self.storage = storage

    async def list_providers(
        self,
        limit: int = 20,
        offset: int = 0,
        is_approved: Optional[bool] = None,
        min_rating: Optional[float] = None,
    ) -> Result[List[ProviderSummary]]:
        try:
            query = (
                self.backend.table("provider_profiles")
                .select("*")
                .range(offset, offset + limit - 1)
            )
            if is_approved is not None:
                query = query.eq("is_approved", is_approved)
            if min_rating:
                query = query.gte("overall_rating", min_rating)

            response = await query.execute()
            currency = self.settings.PROVIDER_DEFAULT_CURRENCY
            return Result.ok([
                ProviderMapper.to_provider_summary(row, currency)
                for row in response.data or []
            ])
        except Exception as e:
            logger.error(f"Failed to list providers: {e}")
            return Result.fail(to_backend_error(e))

    async def get_full_profile(self, provider_id: str) -> Result[Optional[ProviderProfile]]:
        """Profile with services, portfolios and ratings from a single RPC"""
        try:
            response = await self.backend.rpc(
                "get_provider_full_profile", {"provider_uuid": provider_id}
            ).execute()
            rows = response.data or []
            if not rows:
                return Result.ok(None)
            return Result.ok(ProviderMapper.to_provider_profile(
                rows[0], self.settings.PROVIDER_DEFAULT_CURRENCY
            ))
        except Exception as e:
            logger.error(f"Failed to fetch provider profile {provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_reviews(
        self, provider_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[ProviderReview]]:
        try:
            response = await (
                self.backend.table("provider_reviews")
                .select(REVIEW_COLUMNS)
                .eq("provider_id", provider_id)
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return Result.ok([
                ProviderMapper.to_provider_review(row) for row in response.data or []
            ])
        except Exception as e:
            logger.error(f"Failed to fetch reviews of provider {provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def create_review(
        self, reviewer_id: str, request: CreateReviewRequest
    ) -> Result[bool]:
        try:
            await self.backend.table("provider_reviews").insert({
                "provider_id": request.provider_id,
                "reviewer_id": reviewer_id,
                "overall_rating": request.overall_rating,
                "ratings_breakdown": request.ratings_breakdown,
                "review_text": request.review_text,
                "project_type": request.project_type,
            }).execute()
            logger.info(f"Review created for provider {request.provider_id} by {reviewer_id}")
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to create review for provider {request.provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Profile management

    async def update_profile(
        self, provider_id: str, request: UpdateProviderProfileRequest
    ) -> Result[ProviderProfile]:
        """Write the given fields, then re-read the full profile"""
        update_data = request.to_row()
        if update_data:
            try:
                await (
                    self.backend.table("app_users")
                    .update(update_data)
                    .eq("id", provider_id)
                    .execute()
                )
                logger.info(f"Provider {provider_id} updated: {', '.join(sorted(update_data))}")
            except Exception as e:
                logger.error(f"Failed to update provider {provider_id}: {e}")
                return Result.fail(to_backend_error(e))

        result = await self.get_full_profile(provider_id)
        if result.is_failure():
            return Result.fail(result.error)
        if result.value is None:
            return Result.fail(BackendError("Profile not found after update"))
        return Result.ok(result.value)

    async def upload_logo(self, provider_id: str, data: bytes, filename: str) -> Result[str]:
        try:
            url = await self.storage.upload(
                data, filename, provider_id, self.settings.PROVIDER_ASSETS_BUCKET,
                prefix="logo-", upsert=True,
            )
            await (
                self.backend.table("app_users")
                .update({"logo_url": url})
                .eq("id", provider_id)
                .execute()
            )
            return Result.ok(url)
        except Exception as e:
            logger.error(f"Failed to upload logo for provider {provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def upload_portfolio_image(
        self, provider_id: str, data: bytes, filename: str
    ) -> Result[str]:
        try:
            url = await self.storage.upload(
                data, filename, provider_id, self.settings.PROVIDER_ASSETS_BUCKET,
                prefix="portfolio-",
            )
            return Result.ok(url)
        except Exception as e:
            logger.error(f"Failed to upload portfolio image for provider {provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Services and portfolio entries

    async def add_service(self, provider_id: str, request: CreateServiceRequest) -> Result[bool]:
        try:
            await self.backend.table("provider_services").insert({
                "provider_id": provider_id,
                **request.model_dump(),
            }).execute()
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to add service {request.service_key} to {provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def remove_service(self, service_id: str) -> Result[bool]:
        try:
            await self.backend.table("provider_services").delete().eq("id", service_id).execute()
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to remove service {service_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def add_portfolio(
        self, provider_id: str, image_url: str, request: CreateProviderPortfolioRequest
    ) -> Result[bool]:
        try:
            await self.backend.table("provider_portfolios").insert({
                "provider_id": provider_id,
                "image_url": image_url,
                **request.model_dump(),
            }).execute()
            logger.info(f"Portfolio entry added for provider {provider_id}: {request.title}")
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to add portfolio entry for provider {provider_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def remove_portfolio(self, portfolio_id: str) -> Result[bool]:
        try:
            await (
                self.backend.table("provider_portfolios")
                .delete()
                .eq("id", portfolio_id)
                .execute()
            )
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to remove portfolio entry {portfolio_id}: {e}")
            return Result.fail(to_backend_error(e))
