from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from renohub.domain.models import LikeTarget
from renohub.infrastructure.repositories import ForumRepository
from renohub.infrastructure.storage import MediaStorage, build_object_path
from renohub.schemas import (
    CreateCommentRequest,
    CreatePostRequest,
    UpdatePostRequest,
)


def post_row(post_id="post-1", **overrides):
    row = {
        "id": post_id, "user_id": "u1", "category_id": "c1",
        "title": "New kitchen", "content": "Looking for advice on cabinets",
        "tags": ["kitchen"], "media_urls": [], "like_count": 2,
        "username": "alice", "created_at": "2024-03-01T10:00:00Z",
    }
    row.update(overrides)
    return row


@pytest.fixture
def storage():
    mock = MagicMock(spec=MediaStorage)
    mock.upload = AsyncMock(return_value="https://cdn.example.com/forum-media/u1/1.png")
    return mock


@pytest.fixture
def repo(backend, storage, test_settings):
    return ForumRepository(backend, storage, test_settings)


@pytest.mark.asyncio
async def test_get_categories_active_ordered(repo, backend):
    backend.respond("categories", [{"id": "c1", "name": "Kitchens", "slug": "kitchens"}])

    result = await repo.get_categories()

    assert [c.slug for c in result.value] == ["kitchens"]
    query = backend.queries_for("categories")[0]
    assert query.args_of("eq") == [("is_active", True)]
    assert query.args_of("order") == [("display_order",)]


@pytest.mark.asyncio
async def test_get_posts_filters_category_and_pages(repo, backend):
    backend.respond("posts_with_user", [post_row()])

    result = await repo.get_posts(category_id="c1", limit=10, offset=20)

    assert result.value[0].username == "alice"
    query = backend.queries_for("posts_with_user")[0]
    assert query.args_of("eq") == [("category_id", "c1")]
    assert query.args_of("range") == [(20, 29)]


@pytest.mark.asyncio
async def test_get_post_missing_is_none(repo, backend):
    backend.fail("posts_with_user", "no rows", code="PGRST116")

    result = await repo.get_post("missing")

    assert result.is_success()
    assert result.value is None


@pytest.mark.asyncio
async def test_create_post_rereads_through_view(repo, backend):
    backend.respond("posts", [{"id": "post-9"}])
    backend.respond("posts_with_user", post_row("post-9"))
    request = CreatePostRequest(
        category_id="c1", title="  New kitchen ", content="Looking for advice on cabinets",
        tags=["#kitchen", "kitchen", " tiles "],
    )

    result = await repo.create_post("u1", request)

    assert result.value.id == "post-9"
    inserted = backend.queries_for("posts")[0].args_of("insert")[0][0]
    assert inserted["title"] == "New kitchen"
    assert inserted["tags"] == ["kitchen", "tiles"]


def test_create_post_validation():
    with pytest.raises(ValidationError):
        CreatePostRequest(category_id="c1", title="ab", content="Looking for advice")
    with pytest.raises(ValidationError):
        CreatePostRequest(category_id="c1", title="Valid", content="short")


@pytest.mark.asyncio
async def test_update_post_writes_only_given_fields(repo, backend):
    backend.respond("posts_with_user", post_row(title="Edited"))

    result = await repo.update_post("post-1", UpdatePostRequest(title="Edited"))

    assert result.value.title == "Edited"
    update = backend.queries_for("posts")[0].args_of("update")[0][0]
    assert update == {"title": "Edited"}


@pytest.mark.asyncio
async def test_update_post_missing_after_update_fails(repo, backend):
    backend.respond("posts_with_user", None)

    result = await repo.update_post("post-1", UpdatePostRequest(content="Some new content here"))

    assert result.is_failure()
    assert result.error.message == "Post not found after update"


@pytest.mark.asyncio
async def test_delete_post_is_soft(repo, backend):
    result = await repo.delete_post("post-1")

    assert result.value is True
    query = backend.queries_for("posts")[0]
    assert query.args_of("update") == [({"is_deleted": True},)]
    assert not query.called("delete")


@pytest.mark.asyncio
async def test_get_comments_builds_threads(repo, backend):
    backend.respond("comments_with_user", [
        {"id": "1", "post_id": "p", "user_id": "u1", "content": "top"},
        {"id": "2", "post_id": "p", "user_id": "u2", "content": "reply", "parent_id": "1"},
        {"id": "3", "post_id": "p", "user_id": "u3", "content": "orphan", "parent_id": "99"},
    ])

    result = await repo.get_comments("p")

    assert [c.id for c in result.value] == ["1"]
    assert [c.id for c in result.value[0].replies] == ["2"]


@pytest.mark.asyncio
async def test_create_comment(repo, backend):
    backend.respond("comments", [{"id": "c9", "post_id": "p", "user_id": "u1", "content": "Nice"}])

    result = await repo.create_comment("u1", CreateCommentRequest(post_id="p", content="Nice"))

    assert result.value.id == "c9"


@pytest.mark.asyncio
async def test_like_duplicate_tolerated(repo, backend):
    backend.fail("likes", "duplicate key value", code="23505")

    result = await repo.like_target("u1", "post-1", LikeTarget.POST)

    assert result.value is True


@pytest.mark.asyncio
async def test_unlike_matches_target(repo, backend):
    await repo.unlike_target("u1", "c1", LikeTarget.COMMENT)

    query = backend.queries_for("likes")[0]
    assert query.args_of("eq") == [
        ("user_id", "u1"), ("target_id", "c1"), ("target_type", "comment"),
    ]


@pytest.mark.asyncio
async def test_has_liked_uses_rpc(repo, backend):
    backend.respond("user_liked_target", True)

    result = await repo.has_liked("u1", "post-1", LikeTarget.POST)

    assert result.value is True
    assert backend.queries_for("user_liked_target")[0].params == {
        "target_uuid": "post-1", "target_type_str": "post", "user_uuid": "u1",
    }


@pytest.mark.asyncio
async def test_cannot_follow_self(repo, backend):
    result = await repo.follow_user("u1", "u1")

    assert result.is_failure()
    assert backend.queries == []


@pytest.mark.asyncio
async def test_bookmarked_posts(repo, backend):
    backend.respond("bookmarks", [{"post_id": "a"}, {"post_id": "b"}])
    backend.respond("posts_with_user", [post_row("a"), post_row("b")])

    result = await repo.get_bookmarked_posts("u1")

    assert [p.id for p in result.value] == ["a", "b"]
    assert backend.queries_for("posts_with_user")[0].args_of("in_") == [("id", ["a", "b"])]


@pytest.mark.asyncio
async def test_no_bookmarks_skips_post_query(repo, backend):
    result = await repo.get_bookmarked_posts("u1")

    assert result.value == []
    assert backend.queries_for("posts_with_user") == []


@pytest.mark.asyncio
async def test_repost_writes_comment(repo, backend):
    await repo.repost_post("u1", "post-1", comment="")

    row = backend.queries_for("reposts")[0].args_of("insert")[0][0]
    assert row == {"user_id": "u1", "post_id": "post-1", "comment": None}


@pytest.mark.asyncio
async def test_upload_media_uses_forum_bucket(repo, storage):
    result = await repo.upload_media(b"data", "photo.png", "u1")

    assert result.value.endswith("1.png")
    storage.upload.assert_awaited_once_with(b"data", "photo.png", "u1", "forum-media")


@pytest.mark.asyncio
async def test_upload_media_failure_is_result(repo, storage):
    storage.upload.side_effect = RuntimeError("Payload too large")

    result = await repo.upload_media(b"data", "photo.png", "u1")

    assert result.is_failure()


def test_object_path():
    assert build_object_path("u1", "my.photo.JPG", timestamp_ms=1700) == "u1/1700.JPG"


@pytest.mark.asyncio
async def test_media_storage_upload():
    bucket = MagicMock()
    bucket.upload = AsyncMock()
    bucket.get_public_url = AsyncMock(return_value="https://cdn/x.png")
    backend = MagicMock()
    backend.storage.from_.return_value = bucket

    url = await MediaStorage(backend).upload(b"png", "x.png", "u1", "forum-media")

    assert url == "https://cdn/x.png"
    backend.storage.from_.assert_called_with("forum-media")
    path, data, options = bucket.upload.await_args.args
    assert path.startswith("u1/") and path.endswith(".png")
    assert options == {"content-type": "image/png"}


@pytest.mark.asyncio
async def test_media_storage_upsert_with_prefix():
    bucket = MagicMock()
    bucket.upload = AsyncMock()
    bucket.get_public_url = AsyncMock(return_value="https://cdn/logo.png")
    backend = MagicMock()
    backend.storage.from_.return_value = bucket

    await MediaStorage(backend).upload(b"png", "logo.png", "p1", "provider-assets", prefix="logo-", upsert=True)

    path, _, options = bucket.upload.await_args.args
    assert path.startswith("p1/logo-")
    assert options == {"content-type": "image/png", "upsert": "true"}


def test_object_path_prefix():
    assert build_object_path("p1", "a.webp", timestamp_ms=5, prefix="avatar-") == "p1/avatar-5.webp"
