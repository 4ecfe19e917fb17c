"""
Gemini provider implementation.

WHAT: Google Generative Language API provider (default)
WHY: Structured JSON output and Google Search grounding for sourcing answers
HOW: generateContent REST calls with API key header, retry logic, grounding metadata parsing
"""

import asyncio
import httpx
import json
from typing import Any

from .types import (
    ChatMessage,
    Citation,
    LLMResult,
    ProviderStatus,
    ProviderDisabledError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
)
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert a JSON-schema subset to Gemini's OpenAPI-style schema (uppercase types)."""
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: to_gemini_schema(prop) for name, prop in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = to_gemini_schema(value)
        elif key == "additionalProperties":
            continue
        else:
            converted[key] = value
    return converted


def _split_messages(messages: list[ChatMessage]) -> tuple[str, list[dict]]:
    """Gemini takes the system prompt separately and calls the assistant role 'model'."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    contents = [
        {"role": "model" if m["role"] == "assistant" else "user", "parts": [{"text": m["content"]}]}
        for m in messages
        if m["role"] != "system"
    ]
    return "\n\n".join(system_parts), contents


class GeminiProvider:
    """Gemini LLM provider."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ):
        """Initialize Gemini provider (requires GEMINI_API_KEY)."""
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.default_model = settings.GEMINI_DEFAULT_MODEL
        self.max_retries = max_retries or settings.LLM_MAX_RETRIES
        self.retry_delay = settings.LLM_RETRY_DELAY if retry_delay is None else retry_delay
        self.enabled = bool(self.api_key and self.api_key.strip())

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(5.0, read=float(timeout or settings.LLM_TIMEOUT)),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            headers={"x-goog-api-key": self.api_key} if self.enabled else {},
        )
        if self.enabled:
            logger.info(f"Gemini provider initialized (model: {self.default_model})")
        else:
            logger.warning("Gemini provider initialized without GEMINI_API_KEY; AI features will use fallbacks")

    def _check_enabled(self):
        """Raise exception if no API key is configured."""
        if not self.enabled:
            raise ProviderDisabledError("GEMINI_API_KEY is not set")

    async def ping(self) -> ProviderStatus:
        """
        Check Gemini availability by listing models.

        Returns:
            ProviderStatus with available models
        """
        if not self.enabled:
            return ProviderStatus(available=False, base_url=self.base_url, error="API key not configured")

        try:
            response = await self.client.get(f"{self.base_url}/models", timeout=10.0)
            response.raise_for_status()
            data = response.json()

            models = [m.get("name", "").removeprefix("models/") for m in data.get("models", [])]

            logger.info(f"Gemini ping success ({len(models)} models available)")

            return ProviderStatus(
                available=True,
                base_url=self.base_url,
                models=models[:10] if models else None,
            )
        except httpx.TimeoutException:
            logger.warning("Gemini ping timeout")
            return ProviderStatus(available=False, base_url=self.base_url, error="Request timed out")
        except httpx.ConnectError:
            logger.warning("Gemini not reachable")
            return ProviderStatus(available=False, base_url=self.base_url, error="Connection refused")
        except Exception as e:
            logger.error(f"Gemini ping failed: {e}")
            return ProviderStatus(available=False, base_url=self.base_url, error=str(e))

    def _build_payload(
        self,
        messages: list[ChatMessage],
        temperature: float,
        max_tokens: int,
        json_schema: dict[str, Any] | None,
        web_search: bool,
    ) -> dict[str, Any]:
        system_prompt, contents = _split_messages(messages)
        generation_config: dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if json_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = to_gemini_schema(json_schema)

        payload: dict[str, Any] = {"contents": contents, "generationConfig": generation_config}
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if web_search:
            payload["tools"] = [{"google_search": {}}]
        return payload

    @staticmethod
    def _parse_response(data: dict, model: str) -> LLMResult:
        candidate = data["candidates"][0]
        parts = candidate.get("content", {}).get("parts", [])
        text = "".join(part.get("text", "") for part in parts)

        chunks = candidate.get("groundingMetadata", {}).get("groundingChunks", [])
        citations = [
            Citation(
                title=chunk.get("web", {}).get("title") or "Related Source",
                uri=chunk.get("web", {}).get("uri") or "#",
            )
            for chunk in chunks
        ]

        usage_meta = data.get("usageMetadata", {})
        usage = {
            "prompt_tokens": usage_meta.get("promptTokenCount"),
            "completion_tokens": usage_meta.get("candidatesTokenCount"),
            "total_tokens": usage_meta.get("totalTokenCount"),
        }
        return LLMResult(
            text=text,
            usage=usage,
            model=data.get("modelVersion", model),
            citations=citations,
        )

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        max_tokens: int,
        json_schema: dict[str, Any] | None = None,
        web_search: bool = False,
        model: str | None = None
    ) -> LLMResult:
        """
        Generate complete response.

        Args:
            messages: Conversation history
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            json_schema: Optional response schema (JSON mode)
            web_search: Enable Google Search grounding
            model: Optional model name (uses default_model if not provided)

        Returns:
            LLMResult with text, usage, model and grounding citations

        Raises:
            ProviderDisabledError: No API key configured
            ProviderTimeoutError: Request timed out
            ProviderUnavailableError: Gemini not reachable
            ProviderResponseError: Invalid response from Gemini
        """
        self._check_enabled()

        model_to_use = model or self.default_model
        payload = self._build_payload(messages, temperature, max_tokens, json_schema, web_search)
        url = f"{self.base_url}/models/{model_to_use}:generateContent"

        # Retry logic with exponential backoff
        for attempt in range(self.max_retries):
            try:
                response = await self.client.post(url, json=payload)
                response.raise_for_status()
                result = self._parse_response(response.json(), model_to_use)

                logger.info(f"Gemini generate success (model: {result.model}, tokens: {result.usage.get('total_tokens', 'unknown')})")
                return result

            except httpx.TimeoutException as e:
                logger.warning(f"Gemini timeout (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderTimeoutError(f"Request timed out after {self.max_retries} attempts") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.ConnectError as e:
                logger.error(f"Gemini connection refused (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError("Gemini is not reachable") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status >= 500 or status == 429:
                    logger.error(f"Gemini server error {status} (attempt {attempt + 1}/{self.max_retries})")
                    if attempt == self.max_retries - 1:
                        raise ProviderResponseError(f"Server error: {status}") from e
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                else:
                    # Client errors don't retry
                    raise ProviderResponseError(f"HTTP {status}: {e.response.text}") from e

            except (KeyError, IndexError, json.JSONDecodeError) as e:
                logger.error(f"Invalid response from Gemini: {e}")
                raise ProviderResponseError(f"Invalid response format: {e}") from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
