"""Base conversation log interface."""

from abc import ABC, abstractmethod
from typing import List

from ..domain.models import ChatMessage


class ConversationLog(ABC):
    """Append-only, per-user ordered record of chat messages."""

    @abstractmethod
    async def append(self, record: ChatMessage) -> ChatMessage:
        """Assign id and timestamp, persist, and return the stored record."""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[ChatMessage]:
        """All messages for a user, oldest first."""
        pass
