"""
OpenRouter provider implementation.

WHAT: External LLM provider via OpenRouter API
WHY: Alternative hosted models when Gemini is not available to the deployment
HOW: OpenAI-compatible API with authorization headers, retry logic, JSON schema and web plugin
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


class OpenRouterProvider:
    """OpenRouter LLM provider."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ):
        """Initialize OpenRouter provider (requires OPENROUTER_API_KEY)."""
        self.api_key = settings.OPENROUTER_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.OPENROUTER_BASE_URL).rstrip("/")
        self.default_model = settings.OPENROUTER_DEFAULT_MODEL
        self.max_retries = max_retries or settings.LLM_MAX_RETRIES
        self.retry_delay = settings.LLM_RETRY_DELAY if retry_delay is None else retry_delay
        self.enabled = bool(self.api_key and self.api_key.strip())

        headers = {
            "HTTP-Referer": settings.APP_NAME,
            "X-Title": settings.APP_NAME,
        }
        if self.enabled:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(5.0, read=float(settings.LLM_TIMEOUT) * 2),  # Longer timeout for cloud API
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            headers=headers,
        )
        if self.enabled:
            masked = '*' * 10 + self.api_key[-4:] if len(self.api_key) > 4 else '***'
            logger.info(f"OpenRouter provider initialized (model: {self.default_model}, API key: {masked})")
        else:
            logger.warning("OpenRouter provider initialized without OPENROUTER_API_KEY; AI features will use fallbacks")

    def _check_enabled(self):
        """Raise exception if no API key is configured."""
        if not self.enabled:
            raise ProviderDisabledError(
                "OPENROUTER_API_KEY is not set. Get a key from https://openrouter.ai/keys"
            )

    async def ping(self) -> ProviderStatus:
        """
        Check OpenRouter availability by fetching models list.

        Returns:
            ProviderStatus with available models
        """
        if not self.enabled:
            return ProviderStatus(available=False, base_url=self.base_url, error="API key not configured")

        try:
            response = await self.client.get(f"{self.base_url}/models", timeout=10.0)
            response.raise_for_status()
            data = response.json()

            # Extract model IDs
            models = [model.get("id") for model in data.get("data", [])]

            logger.info(f"OpenRouter ping success ({len(models)} models available)")

            return ProviderStatus(
                available=True,
                base_url=self.base_url,
                models=models[:10] if models else None,  # Return first 10
                error=None
            )
        except httpx.TimeoutException:
            logger.warning("OpenRouter ping timeout")
            return ProviderStatus(available=False, base_url=self.base_url, error="Request timed out")
        except httpx.ConnectError:
            logger.warning("OpenRouter not reachable")
            return ProviderStatus(available=False, base_url=self.base_url, error="Connection refused")
        except Exception as e:
            logger.error(f"OpenRouter ping failed: {e}")
            return ProviderStatus(available=False, base_url=self.base_url, error=str(e))

    @staticmethod
    def _citations(message: dict) -> list[Citation]:
        """Web plugin results arrive as url_citation annotations."""
        citations = []
        for annotation in message.get("annotations") or []:
            if annotation.get("type") != "url_citation":
                continue
            cited = annotation.get("url_citation", {})
            citations.append(Citation(
                title=cited.get("title") or "Related Source",
                uri=cited.get("url") or "#",
            ))
        return citations

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
            json_schema: Optional response schema (structured outputs)
            web_search: Enable the web search plugin
            model: Optional model name (uses default_model if not provided)

        Returns:
            LLMResult with text, usage, model and citations

        Raises:
            ProviderDisabledError: No API key configured
            ProviderTimeoutError: Request timed out
            ProviderUnavailableError: OpenRouter not reachable
            ProviderResponseError: Invalid response from OpenRouter
        """
        self._check_enabled()

        # Use provided model or fall back to default
        model_to_use = model or self.default_model
        logger.debug(f"Using model: {model_to_use} (requested: {model}, default: {self.default_model})")

        payload: dict[str, Any] = {
            "model": model_to_use,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False
        }
        if json_schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "response", "strict": True, "schema": json_schema},
            }
        if web_search:
            payload["plugins"] = [{"id": "web"}]

        # Retry logic with exponential backoff
        for attempt in range(self.max_retries):
            try:
                response = await self.client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload
                )
                response.raise_for_status()
                data = response.json()

                # Extract response
                message = data["choices"][0]["message"]
                text = message["content"] or ""
                usage = data.get("usage", {})
                response_model = data.get("model", model_to_use)

                logger.info(f"OpenRouter generate success (model: {response_model}, tokens: {usage.get('total_tokens', 'unknown')})")

                return LLMResult(
                    text=text,
                    usage=usage,
                    model=response_model,
                    citations=self._citations(message),
                )

            except httpx.TimeoutException as e:
                logger.warning(f"OpenRouter timeout (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderTimeoutError(f"Request timed out after {self.max_retries} attempts") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.ConnectError as e:
                logger.error(f"OpenRouter connection refused (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError("OpenRouter is not reachable") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    logger.error(f"OpenRouter server error {e.response.status_code} (attempt {attempt + 1}/{self.max_retries})")
                    if attempt == self.max_retries - 1:
                        raise ProviderResponseError(f"Server error: {e.response.status_code}") from e
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                else:
                    # Client errors don't retry
                    raise ProviderResponseError(f"HTTP {e.response.status_code}: {e.response.text}") from e

            except (KeyError, IndexError, json.JSONDecodeError) as e:
                logger.error(f"Invalid response from OpenRouter: {e}")
                raise ProviderResponseError(f"Invalid response format: {e}") from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
