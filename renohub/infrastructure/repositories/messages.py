"""
Private message repository
"""
from typing import List
import logging

from ...domain.errors import BackendError, to_backend_error
from ...domain.models import Message
from ...domain.repositories import IMessageRepository
from ...domain.result import Result
from ...schemas import CreateMessageRequest
from ..mappers import ForumMapper
from .base import BackendRepository

logger = logging.getLogger(__name__)

MESSAGE_COLUMNS = (
    "*, "
    "sender:app_users!messages_sender_id_fkey(username, avatar_url), "
    "receiver:app_users!messages_receiver_id_fkey(username, avatar_url)"
)


class MessageRepository(BackendRepository, IMessageRepository):
    """Message repository implementation"""

    async def get_conversations(self, user_id: str) -> Result[List[Message]]:
        """All messages the user sent or received, newest first"""
        try:
            response = await (
                self.backend.table("messages")
                .select(MESSAGE_COLUMNS)
                .or_(f"sender_id.eq.{user_id},receiver_id.eq.{user_id}")
                .order("created_at", desc=True)
                .execute()
            )
            return Result.ok([ForumMapper.to_message(row) for row in response.data or []])
        except Exception as e:
            logger.error(f"Failed to fetch conversations for user {user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def get_conversation(
        self, user_id: str, other_user_id: str
    ) -> Result[List[Message]]:
        """Messages exchanged between two users, oldest first"""
        try:
            response = await (
                self.backend.table("messages")
                .select(MESSAGE_COLUMNS)
                .or_(
                    f"and(sender_id.eq.{user_id},receiver_id.eq.{other_user_id}),"
                    f"and(sender_id.eq.{other_user_id},receiver_id.eq.{user_id})"
                )
                .order("created_at")
                .execute()
            )
            return Result.ok([ForumMapper.to_message(row) for row in response.data or []])
        except Exception as e:
            logger.error(f"Failed to fetch conversation {user_id}<->{other_user_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def send_message(
        self, sender_id: str, request: CreateMessageRequest
    ) -> Result[Message]:
        try:
            response = await (
                self.backend.table("messages")
                .insert({
                    "sender_id": sender_id,
                    "receiver_id": request.receiver_id,
                    "content": request.content,
                    "media_urls": request.media_urls,
                })
                .execute()
            )
            rows = response.data or []
            if not rows:
                return Result.fail(BackendError("Message was not sent"))
            logger.info(f"Message sent from {sender_id} to {request.receiver_id}")
            return Result.ok(ForumMapper.to_message(rows[0]))
        except Exception as e:
            logger.error(f"Failed to send message from {sender_id}: {e}")
            return Result.fail(to_backend_error(e))

    async def mark_as_read(self, message_ids: List[str]) -> Result[bool]:
        if not message_ids:
            return Result.ok(True)
        try:
            await (
                self.backend.table("messages")
                .update({"is_read": True})
                .in_("id", message_ids)
                .execute()
            )
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to mark {len(message_ids)} messages as read: {e}")
            return Result.fail(to_backend_error(e))

    async def delete_message(self, message_id: str, user_id: str) -> Result[bool]:
        """Hide a message on the caller's side only"""
        try:
            row = await self._maybe_single(
                self.backend.table("messages")
                .select("sender_id, receiver_id")
                .eq("id", message_id)
            )
            if row is None:
                return Result.fail(BackendError("Message not found"))

            update_data = {}
            if row.get("sender_id") == user_id:
                update_data["is_deleted_by_sender"] = True
            if row.get("receiver_id") == user_id:
                update_data["is_deleted_by_receiver"] = True
            if not update_data:
                return Result.fail(BackendError("Not a participant of this message"))

            await self.backend.table("messages").update(update_data).eq("id", message_id).execute()
            return Result.ok(True)
        except Exception as e:
            logger.error(f"Failed to delete message {message_id}: {e}")
            return Result.fail(to_backend_error(e))
