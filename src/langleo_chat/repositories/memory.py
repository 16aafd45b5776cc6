"""In-memory conversation log."""

import asyncio
from typing import Dict, List
from uuid import uuid4

import structlog

from ..domain.models import ChatMessage, utcnow
from .base import ConversationLog

logger = structlog.get_logger()


class InMemoryConversationLog(ConversationLog):
    """Conversation log kept in process memory.

    Appends are serialized by a single lock, so a user's records keep their
    insertion order and ``created_at`` never goes backwards within a user.
    """

    def __init__(self) -> None:
        self._messages: Dict[str, List[ChatMessage]] = {}
        self._lock = asyncio.Lock()
        logger.info("conversation_log_initialized", backend="memory")

    async def append(self, record: ChatMessage) -> ChatMessage:
        async with self._lock:
            history = self._messages.setdefault(record.user_id, [])
            created_at = utcnow()
            if history and history[-1].created_at > created_at:
                created_at = history[-1].created_at
            stored = record.model_copy(update={"id": uuid4(), "created_at": created_at})
            history.append(stored)

            logger.info(
                "message_added",
                user_id=record.user_id,
                sender=record.sender.value,
                language=record.language,
            )
            return stored

    async def list_for_user(self, user_id: str) -> List[ChatMessage]:
        async with self._lock:
            # stable sort keeps insertion order for equal timestamps
            return sorted(self._messages.get(user_id, []), key=lambda m: m.created_at)
