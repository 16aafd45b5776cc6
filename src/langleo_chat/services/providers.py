"""Chat-completion engines used for replies and translation.

Every engine exposes the same coroutine::

    complete(system, prompt, temperature, max_tokens) -> str

and reports failures as ``ProviderError`` carrying the HTTP status and, when the
provider embeds one in its error body, the provider error code. A request that
times out or never reaches the provider has no status.
"""

import asyncio
from typing import Any, Optional, Union

import google.generativeai as genai
import httpx
import structlog
from google.api_core import exceptions

from ..config import Settings
from ..domain.errors import EmptyResponse, ProviderError

logger = structlog.get_logger()


def _embedded_error_code(response: httpx.Response) -> Optional[Union[int, str]]:
    """Pull the provider error code out of a JSON error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("code") is not None:
        return error["code"]
    return body.get("code")


def _first_choice_text(body: Any) -> Optional[str]:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class MistralClient:
    """Mistral chat-completions over HTTP."""

    name = "mistral"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "mistral-small",
        endpoint: str = "https://api.mistral.ai/v1/chat/completions",
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.info("completion_engine_init", engine=self.name, model=model, has_key=bool(api_key))

    async def complete(
        self,
        system: Optional[str],
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 512,
    ) -> str:
        if not self.api_key:
            raise ProviderError("Missing MISTRAL_API_KEY")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            # httpx timeouts are per phase; wait_for bounds the whole call
            response = await asyncio.wait_for(
                self._client.post(
                    self.endpoint,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                ),
                timeout=self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise ProviderError(f"Mistral request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Mistral request failed: {e}") from e

        if response.is_error:
            code = _embedded_error_code(response)
            logger.warning(
                "mistral_error_response",
                status=response.status_code,
                code=code,
                body=response.text[:500],
            )
            raise ProviderError(
                f"Mistral returned HTTP {response.status_code}",
                status=response.status_code,
                code=code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise EmptyResponse("Mistral returned a non-JSON body", status=response.status_code) from e

        content = (_first_choice_text(body) or "").strip()
        if not content:
            logger.error("mistral_empty_response", body=body)
            raise EmptyResponse("Empty response from Mistral", status=response.status_code)
        return content

    async def aclose(self) -> None:
        await self._client.aclose()


class GeminiClient:
    """Google Gemini through the generativeai SDK."""

    name = "gemini"

    def __init__(self, api_key: Optional[str], model: str = "gemini-1.5-flash", timeout: float = 8.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        if api_key:
            genai.configure(api_key=api_key)
        logger.info("completion_engine_init", engine=self.name, model=model, has_key=bool(api_key))

    async def complete(
        self,
        system: Optional[str],
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 512,
    ) -> str:
        if not self.api_key:
            raise ProviderError("Missing GEMINI_API_KEY")

        model = genai.GenerativeModel(self.model, system_instruction=system or None)
        try:
            response = await asyncio.wait_for(
                model.generate_content_async(
                    prompt,
                    generation_config=genai.GenerationConfig(
                        temperature=temperature,
                        max_output_tokens=max_tokens,
                    ),
                    request_options={"timeout": self.timeout},
                ),
                timeout=self.timeout,
            )
        except exceptions.GoogleAPICallError as e:
            status = int(e.code) if e.code is not None else None
            raise ProviderError(f"Gemini request failed: {e.message}", status=status) from e
        except asyncio.TimeoutError as e:
            raise ProviderError(f"Gemini request timed out after {self.timeout}s") from e
        except exceptions.GoogleAPIError as e:
            raise ProviderError(f"Gemini request failed: {e}") from e
        except genai.types.BlockedPromptException as e:
            raise EmptyResponse(f"Gemini blocked the prompt: {e}") from e

        try:
            content = (response.text or "").strip()
        except ValueError as e:
            # .text raises when the candidate was blocked or has no parts
            raise EmptyResponse(f"Empty response from Gemini: {e}") from e
        if not content:
            raise EmptyResponse("Empty response from Gemini")
        return content

    async def aclose(self) -> None:
        """The SDK owns its transport; nothing to release."""


def build_engine(settings: Settings):
    """Completion engine named by ``settings.llm_provider``."""
    if settings.llm_provider == "gemini":
        return GeminiClient(settings.gemini_api_key, settings.gemini_model, settings.provider_timeout)
    return MistralClient(
        settings.mistral_api_key,
        model=settings.mistral_model,
        endpoint=settings.mistral_endpoint,
        timeout=settings.provider_timeout,
    )
