from renohub.application.feed_store import FeedStore, FetchStatus, InteractionPatch
from renohub.domain.models import InspirationFilters, InspirationPage, SortOption

from helpers import make_item


def page_of(*items, has_more=True, next_page=None):
    return InspirationPage(items=list(items), has_more=has_more, next_page=next_page)


def apply_page(store, page, items, sort=SortOption.NEWEST, reset=False, **kwargs):
    ticket = store.begin_fetch(page, sort=sort, reset=reset)
    return store.complete_fetch(ticket, page_of(*items, **kwargs))


def test_initial_state():
    store = FeedStore()

    assert store.sort == SortOption.NEWEST
    assert store.fetch_state.status == FetchStatus.IDLE
    for sort in SortOption:
        assert store.orders[sort] == []
        assert store.pages[sort] == 0
        assert store.has_more[sort] is True


def test_reset_fetch_order_matches_returned_items(store):
    apply_page(store, 0, [make_item("x"), make_item("y")])

    apply_page(store, 0, [make_item("c"), make_item("a"), make_item("b")], reset=True)

    assert store.orders[SortOption.NEWEST] == ["c", "a", "b"]


def test_reset_fetch_never_duplicates_ids(store):
    item = make_item("a")
    apply_page(store, 0, [item, make_item("b"), item], reset=True)

    assert store.orders[SortOption.NEWEST] == ["a", "b"]


def test_append_fetch_keeps_existing_positions(store):
    apply_page(store, 0, [make_item("a"), make_item("b")], reset=True)

    apply_page(store, 1, [make_item("z"), make_item("a"), make_item("c")])

    assert store.orders[SortOption.NEWEST] == ["a", "b", "z", "c"]


def test_second_page_resending_item_does_not_duplicate(store):
    a, b, c, d = (make_item(i) for i in "ABCD")
    apply_page(store, 0, [a, b, c], reset=True, has_more=True, next_page=1)

    apply_page(store, 1, [c, d], has_more=False)

    assert store.orders[SortOption.NEWEST] == ["A", "B", "C", "D"]
    assert store.has_more[SortOption.NEWEST] is False


def test_complete_fetch_sets_cursor_and_status(store):
    ticket = store.begin_fetch(0)
    assert store.fetch_state.status == FetchStatus.PENDING

    store.complete_fetch(ticket, page_of(make_item("a"), next_page=1))

    assert store.pages[SortOption.NEWEST] == 1
    assert store.fetch_state.status == FetchStatus.SUCCEEDED
    assert store.fetch_state.error is None


def test_cursor_falls_back_to_requested_page(store):
    apply_page(store, 3, [make_item("a")], has_more=False, next_page=None)

    assert store.pages[SortOption.NEWEST] == 3


def test_complete_fetch_records_fetch_sort_and_filters(store):
    filters = InspirationFilters(type="bathroom")
    ticket = store.begin_fetch(0, sort=SortOption.POPULAR, filters=filters)

    store.complete_fetch(ticket, page_of(make_item("a")))

    assert store.sort == SortOption.POPULAR
    assert store.filters.type == "bathroom"
    assert store.orders[SortOption.POPULAR] == ["a"]
    assert store.orders[SortOption.NEWEST] == []


def test_fetch_upserts_last_write_wins(store):
    apply_page(store, 0, [make_item("a", likes=1)], reset=True)

    apply_page(store, 0, [make_item("a", likes=7)], sort=SortOption.POPULAR, reset=True)

    assert store.get("a").stats.likes == 7
    assert store.ordered_items(SortOption.NEWEST)[0].stats.likes == 7


def test_fail_fetch_records_message(store):
    ticket = store.begin_fetch(0)

    store.fail_fetch(ticket, "network down")

    assert store.fetch_state.status == FetchStatus.FAILED
    assert store.fetch_state.error == "network down"

    store.begin_fetch(0)
    assert store.fetch_state.status == FetchStatus.PENDING
    assert store.fetch_state.error is None


def test_fail_fetch_default_message(store):
    ticket = store.begin_fetch(0)

    store.fail_fetch(ticket, None)

    assert store.fetch_state.error == "Failed to load inspiration feed"


def test_set_filters_clears_only_active_sort(store):
    apply_page(store, 0, [make_item("a")], sort=SortOption.POPULAR, reset=True, next_page=1)
    apply_page(store, 0, [make_item("b")], reset=True, next_page=1)
    assert store.sort == SortOption.NEWEST

    store.set_filters(InspirationFilters(location="Kowloon"))

    assert store.orders[SortOption.NEWEST] == []
    assert store.pages[SortOption.NEWEST] == 0
    assert store.has_more[SortOption.NEWEST] is True
    assert store.orders[SortOption.POPULAR] == ["a"]
    assert store.pages[SortOption.POPULAR] == 1


def test_set_sort_clears_nothing(store):
    apply_page(store, 0, [make_item("a")], reset=True)

    store.set_sort(SortOption.POPULAR)

    assert store.sort == SortOption.POPULAR
    assert store.orders[SortOption.NEWEST] == ["a"]


def test_stale_page_after_filter_change_is_discarded(store):
    ticket = store.begin_fetch(1)
    store.set_filters(InspirationFilters(type="bathroom"))

    applied = store.complete_fetch(ticket, page_of(make_item("old")))

    assert applied is False
    assert "old" not in store.entities
    assert store.orders[SortOption.NEWEST] == []


def test_filter_change_settles_pending_status(store):
    ticket = store.begin_fetch(1)
    store.set_filters(InspirationFilters(type="bathroom"))

    assert store.fetch_state.status == FetchStatus.IDLE
    store.complete_fetch(ticket, page_of(make_item("old")))
    assert store.fetch_state.status == FetchStatus.IDLE


def test_stale_failure_after_filter_change_leaves_idle(store):
    ticket = store.begin_fetch(1)
    store.set_filters(InspirationFilters(type="bathroom"))

    assert store.fail_fetch(ticket, "timeout") is False
    assert store.fetch_state.status == FetchStatus.IDLE
    assert store.fetch_state.error is None


def test_newer_fetch_keeps_pending_while_stale_one_lands(store):
    stale = store.begin_fetch(1)
    store.set_filters(InspirationFilters(type="bathroom"))
    fresh = store.begin_fetch(0, reset=True)

    store.complete_fetch(stale, page_of(make_item("old")))
    assert store.fetch_state.status == FetchStatus.PENDING

    store.complete_fetch(fresh, page_of(make_item("new")))
    assert store.fetch_state.status == FetchStatus.SUCCEEDED
    assert store.pending is None


def test_stale_failure_does_not_override_status(store):
    stale = store.begin_fetch(1)
    fresh = store.begin_fetch(0, reset=True)

    assert store.fail_fetch(stale, "timeout") is False
    assert store.fetch_state.status == FetchStatus.PENDING

    store.complete_fetch(fresh, page_of(make_item("a")))
    assert store.fetch_state.status == FetchStatus.SUCCEEDED


def test_concurrent_pages_with_same_filters_both_apply(store):
    first = store.begin_fetch(1)
    second = store.begin_fetch(2)

    assert store.complete_fetch(second, page_of(make_item("c")))
    assert store.complete_fetch(first, page_of(make_item("b")))

    assert store.orders[SortOption.NEWEST] == ["c", "b"]


def test_reset_fetch_supersedes_only_its_own_sort(store):
    popular = store.begin_fetch(1, sort=SortOption.POPULAR)
    store.begin_fetch(0, sort=SortOption.NEWEST, reset=True)

    assert store.complete_fetch(popular, page_of(make_item("p")))


def test_collect_toggle_round_trip_restores_counter(store):
    apply_page(store, 0, [make_item("a", collects=3)], reset=True)

    store.mark_interaction(InteractionPatch(id="a", collected=True, collect_delta=1))
    store.mark_interaction(InteractionPatch(id="a", collected=False, collect_delta=-1))

    item = store.get("a")
    assert item.stats.collects == 3
    assert item.is_collected is False


def test_like_patch_scenario(store):
    apply_page(store, 0, [make_item("A", likes=5)], reset=True)

    store.mark_interaction(InteractionPatch(id="A", liked=True, like_delta=1))
    assert store.get("A").stats.likes == 6
    assert store.get("A").is_liked is True

    store.mark_interaction(InteractionPatch(id="A", liked=False, like_delta=-1))
    assert store.get("A").stats.likes == 5
    assert store.get("A").is_liked is False


def test_counters_are_clamped_at_zero(store):
    apply_page(store, 0, [make_item("a", collects=0, likes=1)], reset=True)

    store.mark_interaction(InteractionPatch(id="a", collect_delta=-1, like_delta=-3))

    assert store.get("a").stats.collects == 0
    assert store.get("a").stats.likes == 0


def test_interaction_visible_through_every_sort(store):
    item = make_item("a", likes=2)
    apply_page(store, 0, [item], sort=SortOption.NEWEST, reset=True)
    apply_page(store, 0, [item], sort=SortOption.POPULAR, reset=True)

    store.mark_interaction(InteractionPatch(id="a", liked=True, like_delta=1))

    newest = store.ordered_items(SortOption.NEWEST)[0]
    popular = store.ordered_items(SortOption.POPULAR)[0]
    assert newest.stats.likes == popular.stats.likes == 3
    assert newest.is_liked and popular.is_liked


def test_mark_interaction_unknown_id_is_noop(store):
    assert store.mark_interaction(InteractionPatch(id="missing", liked=True)) is None
    assert store.entities == {}


def test_mark_interaction_following_patches_provider(store):
    apply_page(store, 0, [make_item("a")], reset=True)

    store.mark_interaction(InteractionPatch(id="a", following=True))

    assert store.get("a").provider.is_following is True


def test_remove_item_strips_every_order(store):
    item = make_item("a")
    apply_page(store, 0, [item, make_item("b")], sort=SortOption.NEWEST, reset=True)
    apply_page(store, 0, [item], sort=SortOption.POPULAR, reset=True)
    apply_page(store, 0, [item], sort=SortOption.PERSONALIZED, reset=True)

    store.remove_item("a")

    assert "a" not in store.entities
    for sort in SortOption:
        assert "a" not in store.orders[sort]
    assert store.orders[SortOption.NEWEST] == ["b"]


def test_upsert_new_matching_item_is_prepended(store):
    apply_page(store, 0, [make_item("a"), make_item("b")], reset=True)

    assert store.upsert_item(make_item("new")) is True

    assert store.orders[SortOption.NEWEST] == ["new", "a", "b"]


def test_upsert_prepends_to_active_sort_regardless_of_mode(store):
    apply_page(store, 0, [make_item("a")], sort=SortOption.POPULAR, reset=True)

    store.upsert_item(make_item("new"))

    assert store.orders[SortOption.POPULAR] == ["new", "a"]
    assert store.orders[SortOption.NEWEST] == []


def test_upsert_tracked_item_only_updates_entity(store):
    apply_page(store, 0, [make_item("a", likes=1), make_item("b")], reset=True)

    assert store.upsert_item(make_item("b", likes=9)) is False

    assert store.orders[SortOption.NEWEST] == ["a", "b"]
    assert store.get("b").stats.likes == 9


def test_upsert_item_outside_filters_is_not_listed(store):
    store.set_filters(InspirationFilters(type="bathroom"))

    assert store.upsert_item(make_item("k", project_type="kitchen")) is False

    assert "k" in store.entities
    assert store.orders[SortOption.NEWEST] == []


def test_reconcile_sets_flag_without_touching_counters(store):
    apply_page(store, 0, [make_item("a", collects=4, likes=2)], reset=True)
    store.mark_interaction(InteractionPatch(id="a", collected=True, collect_delta=1))

    store.reconcile_collect("a", True)
    store.reconcile_like("a", True)

    item = store.get("a")
    assert item.is_collected and item.is_liked
    assert item.stats.collects == 5
    assert item.stats.likes == 2


def test_set_provider_following_sweeps_all_items(store):
    apply_page(store, 0, [
        make_item("a", provider_id="p1"),
        make_item("b", provider_id="p2"),
        make_item("c", provider_id="p1"),
    ], reset=True)

    updated = store.set_provider_following("p1", True)

    assert updated == 2
    assert store.get("a").provider.is_following
    assert store.get("c").provider.is_following
    assert not store.get("b").provider.is_following


def test_undo_patch_reverts_only_its_own_fields(store):
    apply_page(store, 0, [make_item("a", likes=5, collects=2)], reset=True)

    undo = store.mark_interaction(InteractionPatch(id="a", liked=True, like_delta=1))
    store.mark_interaction(InteractionPatch(id="a", collected=True, collect_delta=1))
    store.mark_interaction(undo)

    item = store.get("a")
    assert (item.is_liked, item.stats.likes) == (False, 5)
    assert (item.is_collected, item.stats.collects) == (True, 3)


def test_undo_patch_respects_clamped_counter(store):
    apply_page(store, 0, [make_item("a", likes=0)], reset=True)

    undo = store.mark_interaction(InteractionPatch(id="a", liked=False, like_delta=-1))
    store.mark_interaction(undo)

    assert store.get("a").stats.likes == 0


def test_reset_returns_to_initial_state_and_invalidates_tickets(store):
    apply_page(store, 0, [make_item("a")], reset=True)
    store.set_sort(SortOption.POPULAR)
    ticket = store.begin_fetch(1, sort=SortOption.NEWEST)

    store.reset()

    assert store.entities == {}
    assert store.sort == SortOption.NEWEST
    assert store.fetch_state.status == FetchStatus.IDLE
    assert store.complete_fetch(ticket, page_of(make_item("late"))) is False
