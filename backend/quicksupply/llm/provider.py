"""
LLM provider protocol definition.

WHAT: Abstract interface for LLM providers
WHY: Decouple the supplier assistant from specific provider implementations
HOW: Use Protocol to define async methods for ping and generate
"""

from typing import Any, Protocol
from .types import ChatMessage, LLMResult, ProviderStatus


class LLMProvider(Protocol):
    """Protocol defining the interface all LLM providers must implement."""

    async def ping(self) -> ProviderStatus:
        """Check provider health and availability."""
        ...

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
        Generate a complete response.

        json_schema asks for a JSON document of that shape; web_search enables
        search grounding where the provider supports it.
        """
        ...

    async def close(self) -> None:
        """Release HTTP resources."""
        ...
