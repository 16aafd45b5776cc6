"""Translation backends.

Both backends share ``translate(text, source_lang, target_lang)`` and raise
``TranslationError`` on failure. Choosing between them is the caller's job.
"""

import asyncio
from typing import Optional

import httpx
import structlog

from ..domain.errors import ProviderError, TranslationError

logger = structlog.get_logger()

TRANSLATION_PROMPT = """Translate the following text from {source} to {target}. Return only the translation, no quotes, no commentary.

Text to translate: {text}"""


def is_noop(text: str, source_lang: str, target_lang: str) -> bool:
    return not text or source_lang == target_lang


class CompletionTranslator:
    """Translation by instructing a chat-completion engine."""

    name = "completion"

    def __init__(self, engine, temperature: float = 0.3, max_tokens: int = 256):
        self.engine = engine
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if is_noop(text, source_lang, target_lang):
            return text

        prompt = TRANSLATION_PROMPT.format(
            source=source_lang or "auto", target=target_lang, text=text
        )
        try:
            translated = await self.engine.complete(
                None, prompt, temperature=self.temperature, max_tokens=self.max_tokens
            )
        except ProviderError as e:
            raise TranslationError(str(e), backend=self.name) from e
        except Exception as e:
            raise TranslationError(f"Completion engine failed: {e!r}", backend=self.name) from e
        if not isinstance(translated, str) or not translated.strip():
            raise TranslationError("Empty translation from completion engine", backend=self.name)
        return translated.strip()


class LibreTranslator:
    """LibreTranslate's /translate endpoint."""

    name = "libre"

    def __init__(
        self,
        endpoint: str = "https://libretranslate.de/translate",
        api_key: Optional[str] = None,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if is_noop(text, source_lang, target_lang):
            return text

        body = {
            "q": text,
            "source": source_lang or "auto",
            "target": target_lang,
            "format": "text",
        }
        if self.api_key:
            body["api_key"] = self.api_key

        try:
            response = await asyncio.wait_for(
                self._client.post(self.endpoint, json=body), timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise TranslationError(f"LibreTranslate timed out after {self.timeout}s", backend=self.name) from e
        except httpx.HTTPStatusError as e:
            raise TranslationError(
                f"LibreTranslate returned HTTP {e.response.status_code}", backend=self.name
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TranslationError(f"LibreTranslate request failed: {e}", backend=self.name) from e

        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str) or not translated.strip():
            raise TranslationError("Empty translation from LibreTranslate", backend=self.name)
        return translated

    async def aclose(self) -> None:
        await self._client.aclose()
