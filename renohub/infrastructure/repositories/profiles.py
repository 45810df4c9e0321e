"""
User profile repository
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import ValidationError

from ...config import Settings, settings
from ...domain.errors import BackendError, to_backend_error
from ...domain.models import CollectedImage, FollowedCompany, Post, UserProfile
from ...domain.repositories import IProfileRepository
from ...domain.result import Result
from ...schemas import UpdateProfileRequest, UsernameRequest
from ..backend import BackendConnection
from ..mappers import ForumMapper, ProfileMapper, parse_timestamp
from ..storage import MediaStorage, guess_content_type
from .base import BackendRepository

logger = logging.getLogger(__name__)

AVATAR_CONTENT_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


class ProfileRepository(BackendRepository, IProfileRepository):
    """Profile repository implementation"""

    def __init__(
        self,
        backend: BackendConnection,
        storage: MediaStorage,
        app_settings: Settings = settings,
    ):
        super().__init__(backend, app_settings)
        self.storage = storage

    async def _is_following(self, viewer_id: str, user_id: str) -> bool:
        try:
            response = await self.backend.rpc("user_follows", {
                "follower_uuid": viewer_id,
                "followed_uuid": user_id,
            }).execute()
            return bool(response.data)
        except Exception as e:
            logger.warning(f"Failed to resolve follow state {viewer_id}->{user_id}: {e}")
            return False

    async def get_profile(
        self, user_id: str, viewer_id: Optional[str] = None
    ) -> Result[Optional[UserProfile]]:
        """
        Load a user with follower/following/post counts.

        ``is_following`` is only resolved for a viewer other than the user.
        A missing user yields ``None``.
        """
        try:
            user = await self._maybe_single(
                self.backend.table("app_users")
                .select("id, username, email, full_name, avatar_url")
                .eq("id", user_id)
            )
            if user is None:
                return Result.ok(None)

            stats_response = await self.backend.rpc(
                "get_user_stats", {"user_uuid": user_id}
            ).execute()
            stats_rows = stats_response.data or []
            stats = stats_rows[0] if isinstance(stats_rows, list) and stats_rows else None

            is_following = False
            if viewer_id and viewer_id != user_id:
                is_following = await self._is_following(viewer_id, user_id)

            return Result.ok(ProfileMapper.to_user_profile(user, stats, is_following))
        except Exception as e:
            logger.error(f"Failed to fetch profile {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_user_posts(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[Post]]:
        try:
            response = await (
                self.backend.table("posts_with_user")
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return Result.ok([ForumMapper.to_post(row) for row in response.data or []])
        except Exception as e:
            logger.error(f"Failed to fetch posts of user {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    def _related_users(self, rows: List[Dict[str, Any]]) -> List[UserProfile]:
        users = []
        for row in rows:
            user = row.get("app_users")
            if isinstance(user, dict) and user.get("id"):
                users.append(ProfileMapper.to_user_profile(user))
        return users

    async def get_followers(self, user_id: str) -> Result[List[UserProfile]]:
        try:
            response = await (
                self.backend.table("follows")
                .select("follower_id, app_users!follows_follower_id_fkey(id, username, avatar_url, full_name)")
                .eq("followed_id", user_id)
                .execute()
            )
            return Result.ok(self._related_users(response.data or []))
        except Exception as e:
            logger.error(f"Failed to fetch followers of {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_following(self, user_id: str) -> Result[List[UserProfile]]:
        try:
            response = await (
                self.backend.table("follows")
                .select("followed_id, app_users!follows_followed_id_fkey(id, username, avatar_url, full_name)")
                .eq("follower_id", user_id)
                .execute()
            )
            return Result.ok(self._related_users(response.data or []))
        except Exception as e:
            logger.error(f"Failed to fetch accounts followed by {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def is_username_available(self, username: str) -> Result[bool]:
        try:
            request = UsernameRequest(username=username)
        except ValidationError as e:
            logger.debug(f"Rejected username {username!r}: {e.error_count()} errors")
            return Result.fail(BackendError("Invalid username", code="validation"))

        try:
            response = await self.backend.rpc(
                "is_username_available", {"check_username": request.username}
            ).execute()
            return Result.ok(bool(response.data))
        except Exception as e:
            logger.error(f"Failed to check username availability: {e}")
            return Result.fail(to_backend_error(e))

    # Profile editing

    async def _check_username_change(self, user_id: str, username: str) -> None:
        """Raise when ``username`` is taken or changed too recently"""
        taken = await self._maybe_single(
            self.backend.table("app_users")
            .select("id")
            .ilike("username", username)
            .neq("id", user_id)
        )
        if taken is not None:
            raise BackendError("Username is already taken", code="USERNAME_TAKEN")

        current = await self._maybe_single(
            self.backend.table("app_users")
            .select("username, last_username_change")
            .eq("id", user_id)
        )
        if current is None or current.get("username") == username:
            return

        last_change = parse_timestamp(current.get("last_username_change"))
        if last_change is None:
            return
        if last_change.tzinfo is None:
            last_change = last_change.replace(tzinfo=timezone.utc)
        cooldown = timedelta(days=self.settings.USERNAME_CHANGE_COOLDOWN_DAYS)
        remaining = last_change + cooldown - datetime.now(timezone.utc)
        if remaining > timedelta(0):
            days = remaining.days + (1 if remaining.seconds else 0)
            raise BackendError(
                f"Username can be changed again in {days} days",
                code="USERNAME_COOLDOWN",
                details=str(days),
            )

    async def update_profile(
        self,
        user_id: str,
        request: UpdateProfileRequest,
        avatar: Optional[Tuple[bytes, str]] = None,
    ) -> Result[UserProfile]:
        """
        Update profile fields and optionally replace the avatar.

        A new username must be unused (case-insensitive) and the previous
        change must be older than ``USERNAME_CHANGE_COOLDOWN_DAYS``.
        The profile is re-read after the write.
        """
        update_data = request.to_row()
        try:
            if request.username:
                await self._check_username_change(user_id, request.username)
                update_data["last_username_change"] = datetime.now(timezone.utc).isoformat()

            if avatar is not None:
                upload = await self.upload_avatar(user_id, *avatar)
                if upload.is_failure():
                    return Result.fail(upload.error)
                update_data["avatar_url"] = upload.value

            if update_data:
                await (
                    self.backend.table("app_users")
                    .update(update_data)
                    .eq("id", user_id)
                    .execute()
                )
                logger.info(f"Profile {user_id} updated: {', '.join(sorted(update_data))}")
        except Exception as e:
            logger.error(f"Failed to update profile {user_id}: {e}")
            return Result.fail(to_backend_error(e))

        result = await self.get_profile(user_id)
        if result.is_failure():
            return Result.fail(result.error)
        if result.value is None:
            return Result.fail(BackendError("Profile not found after update"))
        return Result.ok(result.value)

    async def upload_avatar(self, user_id: str, data: bytes, filename: str) -> Result[str]:
        if len(data) > self.settings.AVATAR_MAX_BYTES:
            return Result.fail(BackendError("Avatar file is too large", code="validation"))
        if guess_content_type(filename) not in AVATAR_CONTENT_TYPES:
            return Result.fail(BackendError("Unsupported avatar type", code="validation"))

        try:
            url = await self.storage.upload(
                data, filename, user_id, self.settings.AVATAR_BUCKET,
                prefix="avatar-", upsert=True,
            )
            return Result.ok(url)
        except Exception as e:
            logger.error(f"Failed to upload avatar for {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    # Collections

    async def get_collected_images(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[CollectedImage]]:
        try:
            response = await (
                self.backend.table("user_collected_images")
                .select("*")
                .eq("user_id", user_id)
                .order("collected_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return Result.ok([
                ProfileMapper.to_collected_image(row) for row in response.data or []
            ])
        except Exception as e:
            logger.error(f"Failed to fetch collected images of {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_followed_companies(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[FollowedCompany]]:
        try:
            response = await (
                self.backend.table("user_followed_companies")
                .select("*")
                .eq("user_id", user_id)
                .order("followed_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return Result.ok([
                ProfileMapper.to_followed_company(row) for row in response.data or []
            ])
        except Exception as e:
            logger.error(f"Failed to fetch followed companies of {user_id}: {e}")
            return Result.fail(to_backend_error(e))
