"""
Feed service - Drives the feed store from repository calls
"""
from typing import Callable, Optional
import logging

from ..config import Settings, settings
from ..domain.errors import BackendError, translate_error
from ..domain.models import InspirationFilters, InspirationItem, InspirationPage, SortOption
from ..domain.repositories import IInspirationRepository
from ..domain.result import Result
from .feed_store import FeedStore, InteractionPatch

logger = logging.getLogger(__name__)

AUTH_REQUIRED = "Authentication required"


class FeedService:
    """Loads feed pages and applies viewer interactions optimistically"""

    def __init__(
        self,
        repository: IInspirationRepository,
        store: FeedStore,
        app_settings: Settings = settings,
        viewer_id: Optional[str] = None,
    ):
        self.repository = repository
        self.store = store
        self.settings = app_settings
        self.viewer_id = viewer_id

    def set_viewer(self, viewer_id: Optional[str]) -> None:
        """Switch viewer; cached flags belong to the previous one, so drop them"""
        if viewer_id != self.viewer_id:
            logger.info(f"Feed viewer changed to {viewer_id}")
        self.viewer_id = viewer_id
        self.store.reset()

    # Loading

    async def fetch_page(
        self,
        page: int,
        filters: Optional[InspirationFilters] = None,
        sort: Optional[SortOption] = None,
        reset: bool = False,
    ) -> Result[InspirationPage]:
        ticket = self.store.begin_fetch(page, sort=sort, filters=filters, reset=reset)
        result = await self.repository.fetch_feed(
            ticket.filters, ticket.page, ticket.sort, self.viewer_id
        )

        if result.is_success():
            self.store.complete_fetch(ticket, result.value)
        else:
            logger.warning(
                f"Feed fetch failed ({ticket.sort.value} page {ticket.page}): {result.error.message}"
            )
            self.store.fail_fetch(ticket, result.error.message)
        return result

    async def load_page(
        self, page: Optional[int] = None, reset: bool = False
    ) -> Result[InspirationPage]:
        """Fetch a page of the active sort with the current filters"""
        if page is None:
            page = self.store.pages[self.store.sort]
        return await self.fetch_page(page, reset=reset)

    async def refresh(self) -> Result[InspirationPage]:
        return await self.load_page(0, reset=True)

    async def load_more(self) -> Result[InspirationPage]:
        sort = self.store.sort
        if not self.store.has_more[sort]:
            return Result.ok(InspirationPage(items=[], has_more=False))
        return await self.load_page(self.store.pages[sort])

    async def apply_filters(self, filters: InspirationFilters) -> Result[InspirationPage]:
        self.store.set_filters(filters)
        return await self.refresh()

    async def change_sort(self, sort: SortOption) -> Result[InspirationPage]:
        """Switch sort; only fetch when that sort has nothing cached yet"""
        self.store.set_sort(sort)
        if self.store.orders[sort]:
            return Result.ok(InspirationPage(
                items=self.store.ordered_items(sort),
                has_more=self.store.has_more[sort],
                next_page=self.store.pages[sort],
            ))
        return await self.load_page(0, reset=True)

    # Interactions

    async def _toggle(
        self,
        kind: str,
        item: InspirationItem,
        patch: InteractionPatch,
        call: Callable,
        reconcile: Callable[[bool], None],
    ) -> Result[bool]:
        undo = self.store.mark_interaction(patch)

        result: Result[bool] = await call()
        if result.is_success():
            reconcile(result.value)
            return result

        logger.warning(
            f"Failed to {kind} {item.id} ({translate_error(result.error)}): {result.error.message}"
        )
        # Only the fields this patch touched are reverted; overlapping toggles keep theirs
        if self.settings.ROLLBACK_FAILED_TOGGLES and undo is not None:
            self.store.mark_interaction(undo)
            logger.info(f"Rolled back optimistic {kind} on {item.id}")
        return result

    def _resolve(self, item_id: str) -> Result[InspirationItem]:
        if not self.viewer_id:
            return Result.fail(BackendError(AUTH_REQUIRED))
        item = self.store.get(item_id)
        if item is None:
            return Result.fail(BackendError(f"Inspiration item {item_id} is not loaded"))
        return Result.ok(item)

    async def toggle_collect(self, item_id: str) -> Result[bool]:
        resolved = self._resolve(item_id)
        if resolved.is_failure():
            return Result.fail(resolved.error)
        item = resolved.value
        desired = not item.is_collected

        return await self._toggle(
            "collect" if desired else "uncollect",
            item,
            InteractionPatch(id=item_id, collected=desired, collect_delta=1 if desired else -1),
            lambda: self.repository.toggle_collect(item_id, self.viewer_id, desired),
            lambda collected: self.store.reconcile_collect(item_id, collected),
        )

    async def toggle_like(self, item_id: str) -> Result[bool]:
        resolved = self._resolve(item_id)
        if resolved.is_failure():
            return Result.fail(resolved.error)
        item = resolved.value
        desired = not item.is_liked

        return await self._toggle(
            "like" if desired else "unlike",
            item,
            InteractionPatch(id=item_id, liked=desired, like_delta=1 if desired else -1),
            lambda: self.repository.toggle_like(item_id, self.viewer_id, desired),
            lambda liked: self.store.reconcile_like(item_id, liked),
        )

    async def toggle_follow(self, item_id: str) -> Result[bool]:
        """Follow or unfollow the provider of an item"""
        resolved = self._resolve(item_id)
        if resolved.is_failure():
            return Result.fail(resolved.error)
        item = resolved.value
        provider_id = item.provider.id
        desired = not item.provider.is_following

        return await self._toggle(
            "follow" if desired else "unfollow",
            item,
            InteractionPatch(id=item_id, following=desired),
            lambda: self.repository.toggle_follow(provider_id, self.viewer_id, desired),
            lambda following: self.store.set_provider_following(provider_id, following),
        )
