"""
Inspiration feed cache - Normalized entity table with per-sort pagination
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional
import logging

from ..domain.models import InspirationFilters, InspirationItem, InspirationPage, SortOption

logger = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AsyncState:
    """Status of the most recent feed fetch"""
    status: FetchStatus = FetchStatus.IDLE
    error: Optional[str] = None


@dataclass(frozen=True)
class FetchTicket:
    """Issued by ``begin_fetch``; results are applied only while it is current"""
    sort: SortOption
    page: int
    filters: InspirationFilters
    reset: bool
    generation: int


@dataclass
class InteractionPatch:
    """Optimistic change to one item; ``None`` fields are left alone"""
    id: str
    collected: Optional[bool] = None
    liked: Optional[bool] = None
    collect_delta: int = 0
    like_delta: int = 0
    following: Optional[bool] = None


def _per_sort(value) -> Dict[SortOption, object]:
    return {sort: value() if callable(value) else value for sort in SortOption}


@dataclass
class FeedStore:
    """
    Client-side cache of the inspiration feed.

    Items live once in ``entities``; each sort mode keeps its own ordered id
    list, page cursor and has-more flag. Entities are replaced, never mutated
    in place, so references handed out earlier stay valid snapshots.

    All methods are synchronous and must be called from the event loop
    thread.
    """
    entities: Dict[str, InspirationItem] = field(default_factory=dict)
    orders: Dict[SortOption, List[str]] = field(default_factory=lambda: _per_sort(list))
    pages: Dict[SortOption, int] = field(default_factory=lambda: _per_sort(0))
    has_more: Dict[SortOption, bool] = field(default_factory=lambda: _per_sort(True))
    filters: InspirationFilters = field(default_factory=InspirationFilters)
    sort: SortOption = SortOption.NEWEST
    fetch_state: AsyncState = field(default_factory=AsyncState)
    generations: Dict[SortOption, int] = field(default_factory=lambda: _per_sort(0))
    pending: Optional[FetchTicket] = None

    # Filters and sort

    def set_filters(self, filters: InspirationFilters) -> None:
        """Replace filters and clear pagination of the active sort only"""
        self.filters = replace(filters)
        self.orders[self.sort] = []
        self.pages[self.sort] = 0
        self.has_more[self.sort] = True
        for sort in SortOption:
            self.generations[sort] += 1
        self._settle_pending()

    def set_sort(self, sort: SortOption) -> None:
        self.sort = sort

    # Fetch lifecycle

    def begin_fetch(
        self,
        page: int,
        sort: Optional[SortOption] = None,
        filters: Optional[InspirationFilters] = None,
        reset: bool = False,
    ) -> FetchTicket:
        sort = sort or self.sort
        if reset:
            self.generations[sort] += 1

        self.fetch_state = AsyncState(status=FetchStatus.PENDING)
        self.pending = FetchTicket(
            sort=sort,
            page=page,
            filters=replace(filters or self.filters),
            reset=reset,
            generation=self.generations[sort],
        )
        return self.pending

    def is_current(self, ticket: FetchTicket) -> bool:
        return ticket.generation == self.generations[ticket.sort]

    def _settle_pending(self) -> None:
        """Leave ``pending`` once the latest fetch can no longer resolve it"""
        if self.pending is not None and not self.is_current(self.pending):
            self.pending = None
            if self.fetch_state.status == FetchStatus.PENDING:
                self.fetch_state = AsyncState()

    def _finish(self, ticket: FetchTicket) -> None:
        if self.pending == ticket:
            self.pending = None

    def complete_fetch(self, ticket: FetchTicket, page: InspirationPage) -> bool:
        """
        Apply a fetched page.

        Returns False (and changes nothing) when the ticket has been
        superseded by a filter change or a newer reset fetch.
        """
        if not self.is_current(ticket):
            logger.info(
                f"Discarding stale {ticket.sort.value} page {ticket.page} "
                f"(generation {ticket.generation} != {self.generations[ticket.sort]})"
            )
            self._settle_pending()
            return False

        for item in page.items:
            self.entities[item.id] = item

        order = [] if ticket.reset else list(self.orders[ticket.sort])
        seen = set(order)
        for item in page.items:
            if item.id not in seen:
                order.append(item.id)
                seen.add(item.id)

        self.orders[ticket.sort] = order
        self.has_more[ticket.sort] = page.has_more
        self.pages[ticket.sort] = page.next_page if page.next_page is not None else ticket.page
        self.filters = replace(ticket.filters)
        self.sort = ticket.sort
        self.fetch_state = AsyncState(status=FetchStatus.SUCCEEDED)
        self._finish(ticket)
        return True

    def fail_fetch(self, ticket: FetchTicket, message: Optional[str]) -> bool:
        if not self.is_current(ticket):
            logger.info(f"Ignoring failure of stale {ticket.sort.value} page {ticket.page}")
            self._settle_pending()
            return False

        self.fetch_state = AsyncState(
            status=FetchStatus.FAILED,
            error=message or "Failed to load inspiration feed",
        )
        self._finish(ticket)
        return True

    # Realtime

    def upsert_item(self, item: InspirationItem) -> bool:
        """
        Write an item pushed by realtime.

        A newly tracked item that passes the current filters is placed at
        the front of the active sort's order. Returns True when prepended.
        """
        tracked = item.id in self.entities
        self.entities[item.id] = item

        if tracked or not self.filters.matches(item):
            return False

        order = self.orders[self.sort]
        if item.id in order:
            return False
        order.insert(0, item.id)
        return True

    def remove_item(self, item_id: str) -> None:
        self.entities.pop(item_id, None)
        for sort in SortOption:
            self.orders[sort] = [i for i in self.orders[sort] if i != item_id]

    # Interactions

    def mark_interaction(self, patch: InteractionPatch) -> Optional[InteractionPatch]:
        """
        Apply an optimistic patch.

        Returns the patch that undoes exactly the fields this one changed
        (clamped counters included), or None for an unknown id.
        """
        item = self.entities.get(patch.id)
        if item is None:
            return None

        changes = {}
        undo = InteractionPatch(id=patch.id)
        if patch.collected is not None:
            changes["is_collected"] = patch.collected
            undo.collected = item.is_collected
        if patch.liked is not None:
            changes["is_liked"] = patch.liked
            undo.liked = item.is_liked
        if patch.collect_delta or patch.like_delta:
            stats = replace(
                item.stats,
                collects=max(0, item.stats.collects + patch.collect_delta),
                likes=max(0, item.stats.likes + patch.like_delta),
            )
            changes["stats"] = stats
            undo.collect_delta = item.stats.collects - stats.collects
            undo.like_delta = item.stats.likes - stats.likes
        if patch.following is not None:
            changes["provider"] = replace(item.provider, is_following=patch.following)
            undo.following = item.provider.is_following

        self.entities[patch.id] = replace(item, **changes)
        return undo

    def reconcile_collect(self, item_id: str, collected: bool) -> None:
        """Settle the collect flag to the confirmed end state; counters stay as patched"""
        item = self.entities.get(item_id)
        if item is not None:
            self.entities[item_id] = replace(item, is_collected=collected)

    def reconcile_like(self, item_id: str, liked: bool) -> None:
        item = self.entities.get(item_id)
        if item is not None:
            self.entities[item_id] = replace(item, is_liked=liked)

    def set_provider_following(self, provider_id: str, following: bool) -> int:
        """Set the follow flag on every cached item of a provider"""
        updated = 0
        for item_id, item in list(self.entities.items()):
            if item.provider.id == provider_id:
                self.entities[item_id] = replace(
                    item, provider=replace(item.provider, is_following=following)
                )
                updated += 1
        return updated

    # Queries

    def ordered_items(self, sort: Optional[SortOption] = None) -> List[InspirationItem]:
        order = self.orders[sort or self.sort]
        return [self.entities[i] for i in order if i in self.entities]

    def get(self, item_id: str) -> Optional[InspirationItem]:
        return self.entities.get(item_id)

    def reset(self) -> None:
        """Return to the initial state, invalidating in-flight fetches"""
        self.entities = {}
        self.orders = _per_sort(list)
        self.pages = _per_sort(0)
        self.has_more = _per_sort(True)
        self.filters = InspirationFilters()
        self.sort = SortOption.NEWEST
        self.fetch_state = AsyncState()
        self.pending = None
        for sort in SortOption:
            self.generations[sort] += 1
