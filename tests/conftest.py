"""Shared fakes for the chat pipeline tests."""

import asyncio
from typing import List, Optional

import pytest

from langleo_chat.domain.errors import TranslationError
from langleo_chat.domain.models import ChatMessage
from langleo_chat.repositories.base import ConversationLog
from langleo_chat.repositories.memory import InMemoryConversationLog
from langleo_chat.services.chat import ChatService, SafeTranslator
from langleo_chat.services.llm import ReplyGenerator


class FakeEngine:
    """Completion engine returning a canned reply or raising a canned error."""

    name = "fake"

    def __init__(self, reply: str = "Hi there!", error: Optional[Exception] = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []

    async def complete(self, system, prompt, temperature=0.7, max_tokens=512):
        self.calls.append({"system": system, "prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeBackend:
    """Translation backend with a fixed outcome."""

    def __init__(self, name: str, result: Optional[str] = None, fail: bool = False):
        self.name = name
        self.result = result
        self.fail = fail
        self.calls = []

    async def translate(self, text, source_lang, target_lang):
        self.calls.append((text, source_lang, target_lang))
        if self.fail:
            raise TranslationError(f"{self.name} is down", backend=self.name)
        return self.result if self.result is not None else f"[{target_lang}] {text}"


class BrokenLog(ConversationLog):
    """Log whose storage is unavailable."""

    async def append(self, record: ChatMessage) -> ChatMessage:
        raise OSError("disk full")

    async def list_for_user(self, user_id: str) -> List[ChatMessage]:
        raise OSError("disk full")


@pytest.fixture
def log():
    return InMemoryConversationLog()


@pytest.fixture
def make_service(log):
    """Build a ChatService around the given engine and translation backends."""

    def _make(engine=None, backends=None, conversation_log=None):
        engine = engine or FakeEngine()
        backends = backends if backends is not None else [FakeBackend("primary"), FakeBackend("secondary")]
        return ChatService(conversation_log or log, ReplyGenerator(engine), SafeTranslator(backends))

    return _make
