"""Turn submission: reply in the user's language, or a translated apology."""

from enum import Enum
from typing import List, Sequence, Tuple

import structlog

from ..domain.errors import PersistenceError, ProviderError, TranslationError, ValidationError
from ..domain.languages import DEFAULT_LANGUAGE
from ..domain.models import ChatMessage, Sender
from ..metrics import TRANSLATION_FAILURES, TURNS
from ..repositories.base import ConversationLog
from .llm import ReplyGenerator
from .translation import is_noop

logger = structlog.get_logger()

RATE_LIMIT_REPLY = (
    "I've reached my API rate limit. Please wait a moment and try again, "
    "or contact support for a new API key."
)
CONNECTION_REPLY = "I'm having trouble connecting right now. Please try again."

QUOTA_STATUS = 429


class FailureKind(str, Enum):
    QUOTA_EXCEEDED = "quota_exceeded"
    OTHER = "other"


def classify(error: BaseException) -> FailureKind:
    """Quota-exceeded when either the HTTP status or the embedded provider code is 429.

    Providers report throttling through one or the other, so both are checked.
    """
    if isinstance(error, ProviderError):
        if error.status == QUOTA_STATUS:
            return FailureKind.QUOTA_EXCEEDED
        if error.code is not None and str(error.code).strip() == str(QUOTA_STATUS):
            return FailureKind.QUOTA_EXCEEDED
    return FailureKind.OTHER


def fallback_text(kind: FailureKind) -> str:
    return RATE_LIMIT_REPLY if kind is FailureKind.QUOTA_EXCEEDED else CONNECTION_REPLY


class SafeTranslator:
    """Tries each translation backend in order and never raises.

    When every backend fails the original text comes back untranslated.
    """

    def __init__(self, backends: Sequence):
        self.backends = list(backends)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if is_noop(text, source_lang, target_lang):
            return text

        for backend in self.backends:
            name = getattr(backend, "name", type(backend).__name__)
            try:
                translated = await backend.translate(text, source_lang, target_lang)
                if not isinstance(translated, str) or not translated.strip():
                    raise TranslationError("Backend returned no text", backend=name)
                return translated
            except Exception as e:
                TRANSLATION_FAILURES.labels(backend=name).inc()
                logger.warning(
                    "translation_backend_failed",
                    backend=name,
                    source=source_lang,
                    target=target_lang,
                    error=repr(e),
                )

        logger.warning("translation_unavailable", source=source_lang, target=target_lang)
        return text

    async def aclose(self) -> None:
        for backend in self.backends:
            close = getattr(backend, "aclose", None)
            if close is not None:
                await close()


class ChatService:
    """Runs one turn: persist the user message, resolve a reply, persist the reply."""

    def __init__(
        self,
        log: ConversationLog,
        reply_generator: ReplyGenerator,
        translator: SafeTranslator,
    ):
        self.log = log
        self.reply_generator = reply_generator
        self.translator = translator

    async def submit_turn(
        self, user_id: str, message: str, language: str = DEFAULT_LANGUAGE
    ) -> Tuple[ChatMessage, ChatMessage]:
        """Persist and return ``(user_record, bot_record)``.

        Only ``ValidationError`` and ``PersistenceError`` escape; every provider
        failure becomes a fallback reply.
        """
        if not message or not message.strip():
            raise ValidationError("Message is required")
        if not language or not language.strip():
            language = DEFAULT_LANGUAGE

        user_record = await self._persist(
            ChatMessage(user_id=user_id, text=message, sender=Sender.USER, language=language)
        )

        reply, outcome = await self.resolve_reply(message, language)

        bot_record = await self._persist(
            ChatMessage(user_id=user_id, text=reply, sender=Sender.BOT, language=language)
        )
        TURNS.labels(outcome=outcome).inc()
        logger.info(
            "turn_completed",
            user_id=user_id,
            language=language,
            outcome=outcome,
            user_message_length=len(message),
            reply_length=len(reply),
        )
        return user_record, bot_record

    async def resolve_reply(self, message: str, language: str) -> Tuple[str, str]:
        """Final reply text plus the outcome label (``reply`` or a ``FailureKind`` value)."""
        try:
            return await self.reply_generator.generate_reply(message, language), "reply"
        except Exception as e:
            kind = classify(e)
            logger.warning(
                "reply_generation_failed",
                classification=kind.value,
                language=language,
                error=repr(e),
            )
            return await self.fallback_reply(kind, language), kind.value

    async def fallback_reply(self, kind: FailureKind, language: str) -> str:
        canonical = fallback_text(kind)
        if language == DEFAULT_LANGUAGE:
            return canonical
        return await self.translator.translate(canonical, DEFAULT_LANGUAGE, language)

    async def aclose(self) -> None:
        """Release provider connections."""
        await self.reply_generator.aclose()
        await self.translator.aclose()

    async def list_history(self, user_id: str) -> List[ChatMessage]:
        try:
            return await self.log.list_for_user(user_id)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error("history_read_error", user_id=user_id, error=str(e))
            raise PersistenceError(f"Could not read history for {user_id}") from e

    async def _persist(self, record: ChatMessage) -> ChatMessage:
        try:
            return await self.log.append(record)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(
                "message_persist_error",
                user_id=record.user_id,
                sender=record.sender.value,
                error=str(e),
            )
            raise PersistenceError(f"Could not store {record.sender.value} message") from e
