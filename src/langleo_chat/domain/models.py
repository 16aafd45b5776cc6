"""Domain models for the chat application."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Sender(str, Enum):
    """Who wrote a message."""

    USER = "user"
    BOT = "bot"


class ChatMessage(BaseModel):
    """One turn half: a user message or the bot reply to it."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    sender: Sender = Sender.USER
    language: str = "en"
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}
