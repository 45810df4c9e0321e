"""
Forum repository - Categories, posts, comments and social relations
"""
from typing import List, Optional
import logging

from ...config import Settings, settings
from ...domain.comments import build_comment_tree
from ...domain.errors import BackendError, to_backend_error
from ...domain.models import Category, Comment, LikeTarget, Post
from ...domain.repositories import IForumRepository
from ...domain.result import Result
from ...schemas import (
    CreateCategoryRequest,
    CreateCommentRequest,
    CreatePostRequest,
    UpdatePostRequest,
)
from ..backend import BackendConnection
from ..mappers import ForumMapper
from ..storage import MediaStorage
from .base import BackendRepository

logger = logging.getLogger(__name__)


class ForumRepository(BackendRepository, IForumRepository):
    """Forum repository; reads go through the ``*_with_user`` views"""

    def __init__(
        self,
        backend: BackendConnection,
        storage: MediaStorage,
        app_settings: Settings = settings,
    ):
        super().__init__(backend, app_settings)
        self.storage = storage

    # Categories

    async def get_categories(self) -> Result[List[Category]]:
        try:
            response = await (
                self.backend.table("categories")
                .select("*")
                .eq("is_active", True)
                .order("display_order")
                .execute()
            )
            return Result.ok([ForumMapper.to_category(row) for row in response.data or []])
        except Exception as e:
            logger.error(f"Failed to fetch categories: {e}")
            return Result.fail(to_backend_error(e))

    async def create_category(self, request: CreateCategoryRequest) -> Result[Category]:
        try:
            response = await (
                self.backend.table("categories")
                .insert(request.model_dump())
                .execute()
            )
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Category was not created"))
            logger.info(f"Category created: {request.slug}")
            return Result.ok(ForumMapper.to_category(rows[0]))
        except Exception as e:
            logger.error(f"Failed to create category {request.slug}: {e}")
            return Result.fail(to_backend_error(e))

    # Posts

    async def get_posts(
        self, category_id: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Result[List[Post]]:
        try:
            query = self.backend.table("posts_with_user").select("*")
            if category_id:
                query = query.eq("category_id", category_id)
            response = await (
                query.order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return Result.ok([ForumMapper.to_post(row) for row in response.data or []])
        except Exception as e:
            logger.error(f"Failed to fetch posts: {e}")
            return Result.fail(to_backend_error(e))

    async def get_post(self, post_id: str) -> Result[Optional[Post]]:
        try:
            row = await self._maybe_single(
                self.backend.table("posts_with_user").select("*").eq("id", post_id)
            )
            return Result.ok(ForumMapper.to_post(row) if row else None)
        except Exception as e:
            logger.error(f"Failed to fetch post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def _reread_post(self, post_id: str, missing_message: str) -> Result[Post]:
        result = await self.get_post(post_id)
        if result.is_failure():
            return Result.fail(result.error)
        if result.value is None:
            return Result.fail(BackendError(missing_message))
        return Result.ok(result.value)

    async def create_post(self, user_id: str, request: CreatePostRequest) -> Result[Post]:
        """Insert a post, then re-read it through the view for author data"""
        try:
            response = await (
                self.backend.table("posts")
                .insert({
                    "user_id": user_id,
                    "category_id": request.category_id,
                    "title": request.title,
                    "content": request.content,
                    "tags": request.tags,
                    "media_urls": request.media_urls,
                })
                .execute()
            )
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Post was not created"))
        except Exception as e:
            logger.error(f"Failed to create post for user {user_id}: {e}")
            return Result.fail(to_backend_error(e))

        logger.info(f"Post created: {rows[0]['id']} by user {user_id}")
        return await self._reread_post(rows[0]["id"], "Failed to fetch created post")

    async def update_post(self, post_id: str, request: UpdatePostRequest) -> Result[Post]:
        update_data = request.to_row()
        if update_data:
            try:
                await self.backend.table("posts").update(update_data).eq("id", post_id).execute()
            except Exception as e:
                logger.error(f"Failed to update post {post_id}: {e}")
                return Result.fail(to_backend_error(e))

        return await self._reread_post(post_id, "Post not found after update")

    async def delete_post(self, post_id: str) -> Result[bool]:
        try:
            await self.backend.table("posts").update({"is_deleted": True}).eq("id", post_id).execute()
            logger.info(f"Post soft-deleted: {post_id}")
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to delete post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Comments

    async def get_comments(self, post_id: str) -> Result[List[Comment]]:
        try:
            response = await (
                self.backend.table("comments_with_user")
                .select("*")
                .eq("post_id", post_id)
                .order("created_at")
                .execute()
            )
            comments = [ForumMapper.to_comment(row) for row in response.data or []]
            return Result.ok(build_comment_tree(comments))
        except Exception as e:
            logger.error(f"Failed to fetch comments for post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def create_comment(
        self, user_id: str, request: CreateCommentRequest
    ) -> Result[Comment]:
        try:
            response = await (
                self.backend.table("comments")
                .insert({
                    "post_id": request.post_id,
                    "user_id": user_id,
                    "parent_id": request.parent_id,
                    "content": request.content,
                    "media_urls": request.media_urls,
                })
                .execute()
            )
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Comment was not created"))
            return Result.ok(ForumMapper.to_comment(rows[0]))
        except Exception as e:
            logger.error(f"Failed to create comment on post {request.post_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def delete_comment(self, comment_id: str) -> Result[bool]:
        try:
            await (
                self.backend.table("comments")
                .update({"is_deleted": True})
                .eq("id", comment_id)
                .execute()
            )
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to delete comment {comment_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Likes

    async def like_target(
        self, user_id: str, target_id: str, target_type: LikeTarget
    ) -> Result[bool]:
        try:
            await self._insert_relation("likes", {
                "user_id": user_id,
                "target_id": target_id,
                "target_type": target_type.value,
            })
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to like {target_type.value} {target_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def unlike_target(
        self, user_id: str, target_id: str, target_type: LikeTarget
    ) -> Result[bool]:
        try:
            await self._delete_relation("likes", {
                "user_id": user_id,
                "target_id": target_id,
                "target_type": target_type.value,
            })
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to unlike {target_type.value} {target_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def has_liked(
        self, user_id: str, target_id: str, target_type: LikeTarget
    ) -> Result[bool]:
        try:
            response = await self.backend.rpc("user_liked_target", {
                "target_uuid": target_id,
                "target_type_str": target_type.value,
                "user_uuid": user_id,
            }).execute()
            return Result.ok(bool(response.data))
        except Exception as e:
            logger.error(f"Failed to check like on {target_type.value} {target_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Follows

    async def follow_user(self, follower_id: str, followed_id: str) -> Result[bool]:
        if follower_id == followed_id:
            return Result.fail(BackendError("Cannot follow yourself"))
        try:
            await self._insert_relation("follows", {
                "follower_id": follower_id,
                "followed_id": followed_id,
            })
            logger.info(f"User {follower_id} followed {followed_id}")
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to follow {followed_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def unfollow_user(self, follower_id: str, followed_id: str) -> Result[bool]:
        try:
            await self._delete_relation("follows", {
                "follower_id": follower_id,
                "followed_id": followed_id,
            })
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to unfollow {followed_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Bookmarks

    async def bookmark_post(self, user_id: str, post_id: str) -> Result[bool]:
        try:
            await self._insert_relation("bookmarks", {"user_id": user_id, "post_id": post_id})
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to bookmark post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def unbookmark_post(self, user_id: str, post_id: str) -> Result[bool]:
        try:
            await self._delete_relation("bookmarks", {"user_id": user_id, "post_id": post_id})
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to remove bookmark on post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_bookmarked_posts(self, user_id: str) -> Result[List[Post]]:
        try:
            response = await (
                self.backend.table("bookmarks")
                .select("post_id")
                .eq("user_id", user_id)
                .execute()
            )
            post_ids = [row["post_id"] for row in response.data or []]
            if not post_ids:
                return Result.ok([])

            posts_response = await (
                self.backend.table("posts_with_user")
                .select("*")
                .in_("id", post_ids)
                .execute()
            )
            return Result.ok([ForumMapper.to_post(row) for row in posts_response.data or []])
        except Exception as e:
            logger.error(f"Failed to fetch bookmarks for user {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Reposts

    async def repost_post(
        self, user_id: str, post_id: str, comment: Optional[str] = None
    ) -> Result[bool]:
        try:
            await self._insert_relation("reposts", {
                "user_id": user_id,
                "post_id": post_id,
                "comment": comment or None,
            })
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to repost post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def unrepost_post(self, user_id: str, post_id: str) -> Result[bool]:
        try:
            await self._delete_relation("reposts", {"user_id": user_id, "post_id": post_id})
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to remove repost of post {post_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Media

    async def upload_media(self, data: bytes, filename: str, user_id: str) -> Result[str]:
        try:
            url = await self.storage.upload(
                data, filename, user_id, self.settings.FORUM_MEDIA_BUCKET
            )
            return Result.ok(url)
        except Exception as e:
            logger.error(f"Failed to upload {filename} for user {user_id}: {e}")
            return Result.fail(to_backend_error(e))
