"""
Unit tests for LLM provider factory and implementations.

WHAT: Test provider selection, Gemini and OpenRouter request/response handling
WHY: Ensure provider layer works correctly before the assistant relies on it
HOW: Mock HTTP with respx, test success and failure paths
"""

import json

import httpx
import pytest
import respx

from quicksupply.core.config import settings
from quicksupply.llm.gemini import GeminiProvider, to_gemini_schema
from quicksupply.llm.openrouter import OpenRouterProvider
from quicksupply.llm.provider_factory import get_provider, set_provider
from quicksupply.llm.types import (
    Citation,
    ProviderDisabledError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from quicksupply.services.prompts import MATCH_SCHEMA

from tests.fixtures.mock_llm import MockLLMProvider

GEMINI_URL = "https://gemini.test/v1beta"
GEMINI_GENERATE = f"{GEMINI_URL}/models/gemini-test:generateContent"
OPENROUTER_URL = "https://openrouter.test/api/v1"

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Hi"},
    {"role": "assistant", "content": "Hello"},
    {"role": "user", "content": "Find silk"},
]

GEMINI_RESPONSE = {
    "candidates": [{
        "content": {"parts": [{"text": "Mekong "}, {"text": "Crafts"}]},
        "groundingMetadata": {"groundingChunks": [
            {"web": {"title": "Silk Guide", "uri": "https://silk.example"}},
            {},
        ]},
    }],
    "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 3, "totalTokenCount": 15},
    "modelVersion": "gemini-test-001",
}

OPENROUTER_RESPONSE = {
    "choices": [{"message": {
        "content": "Mekong Crafts",
        "annotations": [
            {"type": "url_citation", "url_citation": {"title": "Silk Guide", "url": "https://silk.example"}},
            {"type": "file", "file": {}},
        ],
    }}],
    "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    "model": "openrouter/test",
}


@pytest.fixture
async def gemini():
    provider = GeminiProvider(api_key="test-key", base_url=GEMINI_URL, max_retries=2, retry_delay=0)
    yield provider
    await provider.close()


@pytest.fixture
async def openrouter():
    provider = OpenRouterProvider(api_key="sk-or-test-1234", base_url=OPENROUTER_URL, max_retries=2, retry_delay=0)
    yield provider
    await provider.close()


@pytest.mark.unit
@pytest.mark.llm
class TestProviderFactory:
    """Test provider factory selection logic."""

    async def test_factory_returns_gemini(self, monkeypatch):
        monkeypatch.setattr(settings, "LLM_PROVIDER", "gemini")

        provider = get_provider()

        assert isinstance(provider, GeminiProvider)
        assert get_provider() is provider
        await provider.close()

    async def test_factory_returns_openrouter(self, monkeypatch):
        monkeypatch.setattr(settings, "LLM_PROVIDER", "openrouter")

        provider = get_provider()

        assert isinstance(provider, OpenRouterProvider)
        await provider.close()

    def test_factory_raises_on_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "LLM_PROVIDER", "unknown_provider")

        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_provider()

    def test_set_provider_overrides(self):
        mock = MockLLMProvider()
        set_provider(mock)

        assert get_provider() is mock


@pytest.mark.unit
@pytest.mark.llm
class TestGeminiSchema:
    """Test JSON schema conversion."""

    def test_uppercases_types_and_drops_additional_properties(self):
        converted = to_gemini_schema(MATCH_SCHEMA)

        assert converted["type"] == "OBJECT"
        assert "additionalProperties" not in converted
        assert converted["properties"]["ids"] == {"type": "ARRAY", "items": {"type": "STRING"}}
        item = converted["properties"]["analysis"]["items"]
        assert item["type"] == "OBJECT"
        assert "additionalProperties" not in item
        assert item["required"] == ["name", "reason"]


@pytest.mark.unit
@pytest.mark.llm
class TestGeminiProvider:
    """Test Gemini provider implementation."""

    async def test_generate_success(self, gemini):
        with respx.mock:
            route = respx.post(GEMINI_GENERATE).mock(return_value=httpx.Response(200, json=GEMINI_RESPONSE))

            result = await gemini.generate(MESSAGES, temperature=0.3, max_tokens=256, model="gemini-test")

        assert result.text == "Mekong Crafts"
        assert result.model == "gemini-test-001"
        assert result.usage["total_tokens"] == 15
        assert result.citations == [
            Citation(title="Silk Guide", uri="https://silk.example"),
            Citation(title="Related Source", uri="#"),
        ]

        request = route.calls.last.request
        assert request.headers["x-goog-api-key"] == "test-key"
        payload = json.loads(request.content)
        assert payload["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
        assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
        assert payload["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 256}
        assert "tools" not in payload

    async def test_json_schema_and_web_search(self, gemini):
        with respx.mock:
            route = respx.post(GEMINI_GENERATE).mock(return_value=httpx.Response(200, json=GEMINI_RESPONSE))

            await gemini.generate(
                MESSAGES, temperature=0.2, max_tokens=64, model="gemini-test",
                json_schema=MATCH_SCHEMA, web_search=True,
            )

        payload = json.loads(route.calls.last.request.content)
        assert payload["generationConfig"]["responseMimeType"] == "application/json"
        assert payload["generationConfig"]["responseSchema"]["type"] == "OBJECT"
        assert payload["tools"] == [{"google_search": {}}]

    async def test_retries_server_errors(self, gemini):
        with respx.mock:
            route = respx.post(GEMINI_GENERATE).mock(side_effect=[
                httpx.Response(503),
                httpx.Response(200, json=GEMINI_RESPONSE),
            ])

            result = await gemini.generate(MESSAGES, temperature=0.3, max_tokens=256, model="gemini-test")

        assert result.text == "Mekong Crafts"
        assert route.call_count == 2

    async def test_client_error_does_not_retry(self, gemini):
        with respx.mock:
            route = respx.post(GEMINI_GENERATE).mock(return_value=httpx.Response(400, json={"error": "bad"}))

            with pytest.raises(ProviderResponseError, match="HTTP 400"):
                await gemini.generate(MESSAGES, temperature=0.3, max_tokens=256, model="gemini-test")

        assert route.call_count == 1

    async def test_timeout(self, gemini):
        with respx.mock:
            route = respx.post(GEMINI_GENERATE).mock(side_effect=httpx.ReadTimeout("slow"))

            with pytest.raises(ProviderTimeoutError):
                await gemini.generate(MESSAGES, temperature=0.3, max_tokens=256, model="gemini-test")

        assert route.call_count == 2

    async def test_connection_refused(self, gemini):
        with respx.mock:
            respx.post(GEMINI_GENERATE).mock(side_effect=httpx.ConnectError("refused"))

            with pytest.raises(ProviderUnavailableError):
                await gemini.generate(MESSAGES, temperature=0.3, max_tokens=256, model="gemini-test")

    async def test_malformed_body(self, gemini):
        with respx.mock:
            respx.post(GEMINI_GENERATE).mock(return_value=httpx.Response(200, json={"candidates": []}))

            with pytest.raises(ProviderResponseError, match="Invalid response format"):
                await gemini.generate(MESSAGES, temperature=0.3, max_tokens=256, model="gemini-test")

    async def test_ping_lists_models(self, gemini):
        with respx.mock:
            respx.get(f"{GEMINI_URL}/models").mock(return_value=httpx.Response(
                200, json={"models": [{"name": "models/gemini-a"}, {"name": "models/gemini-b"}]},
            ))

            status = await gemini.ping()

        assert status.available is True
        assert status.models == ["gemini-a", "gemini-b"]

    async def test_disabled_without_key(self):
        provider = GeminiProvider(api_key="", base_url=GEMINI_URL)
        try:
            assert provider.enabled is False
            assert (await provider.ping()).available is False
            with pytest.raises(ProviderDisabledError):
                await provider.generate(MESSAGES, temperature=0.3, max_tokens=256)
        finally:
            await provider.close()


@pytest.mark.unit
@pytest.mark.llm
class TestOpenRouterProvider:
    """Test OpenRouter provider implementation."""

    async def test_generate_success(self, openrouter):
        with respx.mock:
            route = respx.post(f"{OPENROUTER_URL}/chat/completions").mock(
                return_value=httpx.Response(200, json=OPENROUTER_RESPONSE)
            )

            result = await openrouter.generate(
                MESSAGES, temperature=0.5, max_tokens=128, json_schema=MATCH_SCHEMA, web_search=True,
            )

        assert result.text == "Mekong Crafts"
        assert result.model == "openrouter/test"
        assert result.citations == [Citation(title="Silk Guide", uri="https://silk.example")]

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer sk-or-test-1234"
        payload = json.loads(request.content)
        assert payload["messages"] == MESSAGES
        assert payload["stream"] is False
        assert payload["response_format"]["type"] == "json_schema"
        assert payload["response_format"]["json_schema"]["strict"] is True
        assert payload["response_format"]["json_schema"]["schema"] == MATCH_SCHEMA
        assert payload["plugins"] == [{"id": "web"}]

    async def test_plain_request_has_no_extras(self, openrouter):
        with respx.mock:
            route = respx.post(f"{OPENROUTER_URL}/chat/completions").mock(
                return_value=httpx.Response(200, json=OPENROUTER_RESPONSE)
            )

            await openrouter.generate(MESSAGES, temperature=0.5, max_tokens=128)

        payload = json.loads(route.calls.last.request.content)
        assert "response_format" not in payload
        assert "plugins" not in payload

    async def test_retries_then_fails_on_server_error(self, openrouter):
        with respx.mock:
            route = respx.post(f"{OPENROUTER_URL}/chat/completions").mock(return_value=httpx.Response(502))

            with pytest.raises(ProviderResponseError, match="Server error"):
                await openrouter.generate(MESSAGES, temperature=0.5, max_tokens=128)

        assert route.call_count == 2

    async def test_unauthorized_is_response_error(self, openrouter):
        with respx.mock:
            respx.post(f"{OPENROUTER_URL}/chat/completions").mock(return_value=httpx.Response(401, text="no key"))

            with pytest.raises(ProviderResponseError, match="HTTP 401"):
                await openrouter.generate(MESSAGES, temperature=0.5, max_tokens=128)

    async def test_ping(self, openrouter):
        with respx.mock:
            respx.get(f"{OPENROUTER_URL}/models").mock(return_value=httpx.Response(
                200, json={"data": [{"id": "model-1"}, {"id": "model-2"}]},
            ))

            status = await openrouter.ping()

        assert status.available is True
        assert status.models == ["model-1", "model-2"]

    async def test_disabled_without_key(self):
        provider = OpenRouterProvider(api_key="", base_url=OPENROUTER_URL)
        try:
            with pytest.raises(ProviderDisabledError):
                await provider.generate(MESSAGES, temperature=0.5, max_tokens=128)
        finally:
            await provider.close()
