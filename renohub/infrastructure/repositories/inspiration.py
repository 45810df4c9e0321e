"""
Inspiration feed repository - Feed view reads, viewer flags and toggles
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set
import asyncio
import logging

from ...domain.errors import BackendError, to_backend_error
from ...domain.models import (
    InspirationFilters,
    InspirationItem,
    InspirationPage,
    InteractionFlags,
    SortOption,
)
from ...domain.repositories import IInspirationRepository
from ...domain.result import Result
from ..mappers import InspirationMapper
from ..ranking import CollectVectors, rank_rows
from .base import BackendRepository

logger = logging.getLogger(__name__)

COLLECTS_TABLE = "inspiration_collects"
LIKES_TABLE = "inspiration_likes"
FOLLOWS_TABLE = "follows"


@dataclass
class ViewerFlagSets:
    """Viewer-relative state for one page of rows"""
    collected: Set[str] = field(default_factory=set)
    liked: Set[str] = field(default_factory=set)
    following_providers: Set[str] = field(default_factory=set)

    def flags_for(self, row: Dict[str, Any], score: Optional[float] = None) -> InteractionFlags:
        return InteractionFlags(
            is_collected=row["id"] in self.collected,
            is_liked=row["id"] in self.liked,
            is_following=row.get("provider_id") in self.following_providers,
            personalization_score=score,
        )


class InspirationRepository(BackendRepository, IInspirationRepository):
    """Inspiration feed repository backed by the ``inspiration_feed`` view"""

    def _apply_filters(self, query, filters: InspirationFilters):
        if filters.type:
            query = query.eq("project_type", filters.type)
        if filters.location:
            query = query.eq("location", filters.location)
        if filters.price_min is not None:
            query = query.gte("price_min", filters.price_min)
        if filters.price_max is not None:
            query = query.lte("price_max", filters.price_max)
        if filters.rating_min is not None:
            query = query.gte("overall_rating", filters.rating_min)
        if filters.tag:
            query = query.contains("tags", [filters.tag])
        return query

    def _apply_sort(self, query, sort: SortOption):
        query = query.order("pin_rank", desc=True)
        if sort == SortOption.POPULAR:
            query = (
                query.order("collect_count", desc=True)
                .order("like_count", desc=True)
            )
        return query.order("created_at", desc=True)

    def _to_item(
        self, row: Dict[str, Any], sets: ViewerFlagSets, score: Optional[float] = None
    ) -> InspirationItem:
        return InspirationMapper.to_domain(
            row,
            sets.flags_for(row, score),
            default_currency=self.settings.DEFAULT_CURRENCY,
        )

    async def _load_flag_sets(
        self, rows: List[Dict[str, Any]], viewer_id: Optional[str]
    ) -> ViewerFlagSets:
        """
        Resolve collected, liked and followed state for a batch of rows.

        Issues at most three queries, concurrently. Any failure propagates so
        the caller fails the whole page.
        """
        if not viewer_id or not rows:
            return ViewerFlagSets()

        portfolio_ids = [row["id"] for row in rows]
        provider_ids = list(dict.fromkeys(
            row["provider_id"] for row in rows if row.get("provider_id")
        ))

        collect_query = (
            self.backend.table(COLLECTS_TABLE)
            .select("portfolio_id")
            .eq("user_id", viewer_id)
            .in_("portfolio_id", portfolio_ids)
        )
        like_query = (
            self.backend.table(LIKES_TABLE)
            .select("portfolio_id")
            .eq("user_id", viewer_id)
            .in_("portfolio_id", portfolio_ids)
        )
        follow_query = (
            self.backend.table(FOLLOWS_TABLE)
            .select("followed_id")
            .eq("follower_id", viewer_id)
            .in_("followed_id", provider_ids)
        )

        collect_response, like_response, follow_response = await asyncio.gather(
            collect_query.execute(),
            like_query.execute(),
            follow_query.execute(),
        )

        return ViewerFlagSets(
            collected={row["portfolio_id"] for row in collect_response.data or []},
            liked={row["portfolio_id"] for row in like_response.data or []},
            following_providers={row["followed_id"] for row in follow_response.data or []},
        )

    async def _load_collect_vectors(self, viewer_id: str) -> CollectVectors:
        response = await (
            self.backend.table(COLLECTS_TABLE)
            .select("portfolio_id, portfolio:provider_portfolios(tags, project_type, provider_id)")
            .eq("user_id", viewer_id)
            .execute()
        )
        return CollectVectors.from_collect_rows(response.data or [])

    async def fetch_feed(
        self,
        filters: Optional[InspirationFilters],
        page: int,
        sort: SortOption,
        viewer_id: Optional[str] = None,
    ) -> Result[InspirationPage]:
        """Fetch one page of the feed with viewer flags resolved"""
        filters = filters or InspirationFilters()
        page_size = self.settings.PAGE_SIZE
        fetch_size = page_size
        if sort == SortOption.PERSONALIZED:
            fetch_size = page_size * self.settings.PERSONALIZED_FETCH_MULTIPLIER
        range_start = page * page_size
        range_end = range_start + fetch_size - 1

        try:
            query = self.backend.table(self.settings.FEED_VIEW).select("*", count="exact")
            query = self._apply_filters(query, filters)
            query = self._apply_sort(query, sort)
            response = await query.range(range_start, range_end).execute()

            rows: List[Dict[str, Any]] = response.data or []
            count = response.count

            if sort == SortOption.PERSONALIZED and viewer_id:
                vectors = await self._load_collect_vectors(viewer_id)
                ranked = rank_rows(rows, vectors, page_size)
                if count is not None:
                    has_more = range_start + len(ranked) < count
                else:
                    has_more = len(rows) > page_size

                page_rows = [row for row, _ in ranked]
                sets = await self._load_flag_sets(page_rows, viewer_id)
                items = [self._to_item(row, sets, score) for row, score in ranked]
            else:
                if count is not None:
                    has_more = range_start + len(rows) < count
                else:
                    has_more = len(rows) == fetch_size

                sets = await self._load_flag_sets(rows, viewer_id)
                items = [self._to_item(row, sets) for row in rows]

            logger.debug(
                f"Fetched feed page {page} ({sort.value}): {len(items)} items, has_more={has_more}"
            )
            return Result.ok(InspirationPage(
                items=items,
                has_more=has_more,
                next_page=page + 1 if has_more else None,
                total=count,
            ))

        except Exception as e:
            logger.error(f"Failed to fetch feed page {page} ({sort.value}): {e}")
            return Result.fail(to_backend_error(e))

    async def fetch_item(
        self, item_id: str, viewer_id: Optional[str] = None
    ) -> Result[Optional[InspirationItem]]:
        """Fetch a single item by ID; a missing item is ``None``, not an error"""
        try:
            row = await self._maybe_single(
                self.backend.table(self.settings.FEED_VIEW)
                .select("*")
                .eq("id", item_id)
            )
            if row is None:
                return Result.ok(None)

            sets = await self._load_flag_sets([row], viewer_id)
            return Result.ok(self._to_item(row, sets, row.get("personalization_score")))

        except Exception as e:
            logger.error(f"Failed to fetch inspiration item {item_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def fetch_categories(self) -> Result[List[str]]:
        try:
            response = await (
                self.backend.table(self.settings.FEED_VIEW)
                .select("project_type")
                .execute()
            )
            types = {
                row["project_type"]
                for row in response.data or []
                if row.get("project_type")
            }
            return Result.ok(sorted(types))

        except Exception as e:
            logger.error(f"Failed to fetch inspiration categories: {e}")
            return Result.fail(to_backend_error(e))

    async def _set_membership(
        self,
        table: str,
        columns: Dict[str, str],
        desired: bool,
    ) -> Result[bool]:
        """Insert or delete a relation row so that it matches ``desired``"""
        try:
            if desired:
                await self._insert_relation(table, columns)
            else:
                await self._delete_relation(table, columns)
            return Result.ok(desired)

        except Exception as e:
            logger.error(f"Failed to update {table} (desired={desired}): {e}")
            return Result.fail(to_backend_error(e))

    async def toggle_collect(
        self, item_id: str, viewer_id: str, should_collect: bool
    ) -> Result[bool]:
        return await self._set_membership(
            COLLECTS_TABLE,
            {"portfolio_id": item_id, "user_id": viewer_id},
            should_collect,
        )

    async def toggle_like(
        self, item_id: str, viewer_id: str, should_like: bool
    ) -> Result[bool]:
        return await self._set_membership(
            LIKES_TABLE,
            {"portfolio_id": item_id, "user_id": viewer_id},
            should_like,
        )

    async def toggle_follow(
        self, provider_id: str, viewer_id: str, should_follow: bool
    ) -> Result[bool]:
        if not provider_id:
            return Result.fail(BackendError("Provider id is required"))
        return await self._set_membership(
            FOLLOWS_TABLE,
            {"follower_id": viewer_id, "followed_id": provider_id},
            should_follow,
        )
