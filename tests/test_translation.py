"""Test suite for the translation backends."""

import asyncio
import json

import httpx
import pytest

from conftest import FakeEngine
from langleo_chat.domain.errors import ProviderError, TranslationError
from langleo_chat.services.translation import CompletionTranslator, LibreTranslator


def libre(handler, api_key=None):
    return LibreTranslator(endpoint="https://libre.test/translate", api_key=api_key, transport=httpx.MockTransport(handler))


def unreachable(request):
    pytest.fail(f"unexpected request to {request.url}")


@pytest.mark.asyncio
@pytest.mark.parametrize("text, source, target", [("Hello", "fr", "fr"), ("", "en", "de"), ("", "ja", "ja")])
async def test_noop_translation(text, source, target):
    """Both backends return the text untouched without calling out."""
    engine = FakeEngine(error=ProviderError("should not be called"))

    assert await CompletionTranslator(engine).translate(text, source, target) == text
    assert await libre(unreachable).translate(text, source, target) == text
    assert engine.calls == []


@pytest.mark.asyncio
async def test_completion_translator_prompt():
    engine = FakeEngine(reply="  Bonjour  ")

    translated = await CompletionTranslator(engine).translate("Hello", "en", "fr")

    assert translated == "Bonjour"
    call = engine.calls[0]
    assert call["system"] is None
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 256
    assert "from en to fr" in call["prompt"]
    assert call["prompt"].endswith("Text to translate: Hello")


@pytest.mark.asyncio
async def test_completion_translator_wraps_provider_errors():
    engine = FakeEngine(error=ProviderError("throttled", status=429))

    with pytest.raises(TranslationError) as info:
        await CompletionTranslator(engine).translate("Hello", "en", "fr")

    assert info.value.backend == "completion"


@pytest.mark.asyncio
async def test_libre_request_and_response():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"translatedText": "Hallo"})

    assert await libre(handler, api_key="k").translate("Hello", "en", "de") == "Hallo"
    assert captured["body"] == {"q": "Hello", "source": "en", "target": "de", "format": "text", "api_key": "k"}


@pytest.mark.asyncio
async def test_libre_http_error():
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(TranslationError) as info:
        await libre(handler).translate("Hello", "en", "de")

    assert info.value.backend == "libre"


@pytest.mark.asyncio
async def test_libre_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(TranslationError):
        await libre(handler).translate("Hello", "en", "de")


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(200, json={}),
    httpx.Response(200, json={"translatedText": ""}),
    httpx.Response(200, json={"translatedText": "   "}),
    httpx.Response(200, json={"translatedText": ["Bonjour"]}),
    httpx.Response(200, json={"translatedText": 42}),
    httpx.Response(200, json=["Bonjour"]),
    httpx.Response(200, text="not json"),
])
async def test_libre_unusable_body(response):
    with pytest.raises(TranslationError):
        await libre(lambda request: response).translate("Hello", "en", "de")


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [RuntimeError("boom"), KeyError("choices")])
async def test_completion_translator_wraps_any_engine_failure(error):
    with pytest.raises(TranslationError) as info:
        await CompletionTranslator(FakeEngine(error=error)).translate("Hi", "en", "fr")

    assert info.value.backend == "completion"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   ", None])
async def test_completion_translator_rejects_empty_text(reply):
    engine = FakeEngine()
    engine.reply = reply

    with pytest.raises(TranslationError):
        await CompletionTranslator(engine).translate("Hi", "en", "fr")


@pytest.mark.asyncio
async def test_libre_deadline_covers_the_whole_call():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json={"translatedText": "Hallo"})

    translator = LibreTranslator(endpoint="https://libre.test/translate", timeout=0.05, transport=httpx.MockTransport(handler))

    with pytest.raises(TranslationError):
        await translator.translate("Hello", "en", "de")
    await translator.aclose()


@pytest.mark.asyncio
async def test_libre_reuses_one_client():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        return httpx.Response(200, json={"translatedText": "Hallo"})

    translator = libre(handler)
    client = translator._client
    await translator.translate("Hello", "en", "de")
    await translator.translate("Bye", "en", "de")

    assert translator._client is client
    assert hosts == ["libre.test", "libre.test"]
    await translator.aclose()
    assert client.is_closed
