"""
Supplier assistant.

WHAT: Dossier generation, supplier matching, persona replies and sourcing advice over the LLM provider
WHY: AI features enrich the directory but must never block it
HOW: Prompt -> provider.generate -> tolerant JSON parsing; any failure returns a templated fallback
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .prompts import (
    MATCH_SCHEMA, PROFILE_SCHEMA, render_match_prompt, render_profile_prompt,
    render_sourcing_prompt, render_supplier_persona_prompt,
)
from ..core.config import settings
from ..llm.provider import LLMProvider
from ..llm.provider_factory import get_provider
from ..llm.types import Citation, ProviderError
from ..models.directory import (
    GeneratedDossier, MatchExplanation, MatchResult, OnboardingForm, SupplierRecord,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

REPLY_FALLBACK = "Thank you for your message. We have received your inquiry and will respond as soon as possible."
REPLY_EMPTY = "Thank you for your inquiry. Our team will get back to you shortly."
ADVICE_FALLBACK = "Error connecting to AI. Please try again later."
ADVICE_EMPTY = "I'm sorry, I couldn't process that request."


@dataclass(frozen=True)
class AdviceReply:
    """Sourcing assistant answer with the web sources it cited."""
    text: str
    links: tuple[Citation, ...] = ()


def extract_json(text: str) -> Any:
    """Parse a JSON document, tolerating a markdown code fence around it."""
    response_text = text.strip()

    # Try to extract JSON if wrapped in markdown
    if "```json" in response_text:
        json_start = response_text.find("```json") + 7
        json_end = response_text.find("```", json_start)
        response_text = response_text[json_start:json_end].strip()
    elif "```" in response_text:
        json_start = response_text.find("```") + 3
        json_end = response_text.find("```", json_start)
        response_text = response_text[json_start:json_end].strip()

    return json.loads(response_text)


def fallback_dossier(form: OnboardingForm) -> GeneratedDossier:
    """Template profile used whenever generation fails."""
    return GeneratedDossier(
        description=(
            f"Verified manufacturer in {form.location} specializing in {form.category}. "
            "Committed to quality and international standards."
        ),
        certifications=("ISO 9001",),
        established_year=2020,
        employee_count="50+",
        factory_size="1,000 sqm",
        business_type="Manufacturer",
    )


def _optional_text(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


class SupplierAssistant:
    """AI collaborator facade; every public method has a non-raising fallback."""

    def __init__(self, provider: Optional[LLMProvider] = None, match_limit: Optional[int] = None):
        self._provider = provider
        self.match_limit = match_limit or settings.AI_MATCH_LIMIT

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider()
        return self._provider

    async def generate_profile(self, form: OnboardingForm) -> GeneratedDossier:
        """
        Generate dossier fields for an onboarding supplier.

        Returns:
            GeneratedDossier from the model, or the fallback template
        """
        try:
            result = await self.provider.generate(
                render_profile_prompt(form),
                temperature=settings.LLM_DEFAULT_TEMPERATURE,
                max_tokens=settings.LLM_DEFAULT_MAX_TOKENS,
                json_schema=PROFILE_SCHEMA,
            )
            data = extract_json(result.text)
            dossier = GeneratedDossier(
                description=str(data["description"]).strip(),
                certifications=tuple(str(c) for c in data.get("certifications") or ()),
                established_year=int(data["establishedYear"]) if data.get("establishedYear") else None,
                employee_count=_optional_text(data.get("employeeCount")),
                factory_size=_optional_text(data.get("factorySize")),
                business_type=_optional_text(data.get("businessType")),
            )
            if not dossier.description:
                raise ValueError("empty description")
            logger.info(f"Generated dossier for {form.name}")
            return dossier
        except (ProviderError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Profile generation failed, using template: {e}")
            return fallback_dossier(form)

    async def match_suppliers(self, requirements: str, candidates: Sequence[SupplierRecord]) -> MatchResult:
        """
        Pick the best-fitting candidates for buyer requirements.

        Ids the model invents (not among candidates) are dropped; at most match_limit are kept.
        """
        if not requirements.strip() or not candidates:
            return MatchResult()
        try:
            result = await self.provider.generate(
                render_match_prompt(requirements, candidates, self.match_limit),
                temperature=0.2,
                max_tokens=settings.LLM_DEFAULT_MAX_TOKENS,
                json_schema=MATCH_SCHEMA,
            )
            data = extract_json(result.text)
            known = {c.id for c in candidates}
            ids: list[str] = []
            for raw_id in data.get("ids") or []:
                candidate_id = str(raw_id)
                if candidate_id in known and candidate_id not in ids:
                    ids.append(candidate_id)
            analysis = tuple(
                MatchExplanation(name=str(item["name"]), reason=str(item["reason"]))
                for item in (data.get("analysis") or [])
            )
            match = MatchResult(ids=tuple(ids[:self.match_limit]), analysis=analysis[:self.match_limit])
            logger.info(f"AI match returned {len(match.ids)} suppliers")
            return match
        except (ProviderError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Supplier matching failed: {e}")
            return MatchResult()

    async def chat_reply(self, message: str, supplier: SupplierRecord) -> str:
        """Reply in the persona of the supplier's sales manager."""
        try:
            result = await self.provider.generate(
                render_supplier_persona_prompt(message, supplier),
                temperature=settings.LLM_DEFAULT_TEMPERATURE,
                max_tokens=settings.LLM_DEFAULT_MAX_TOKENS,
            )
            return result.text.strip() or REPLY_EMPTY
        except ProviderError as e:
            logger.warning(f"Supplier reply failed for {supplier.name}: {e}")
            return REPLY_FALLBACK

    async def sourcing_advice(self, query: str, suppliers: Sequence[SupplierRecord]) -> AdviceReply:
        """General sourcing answer grounded in the directory and web search."""
        try:
            result = await self.provider.generate(
                render_sourcing_prompt(query, suppliers),
                temperature=settings.LLM_DEFAULT_TEMPERATURE,
                max_tokens=settings.LLM_DEFAULT_MAX_TOKENS,
                web_search=True,
            )
            return AdviceReply(text=result.text.strip() or ADVICE_EMPTY, links=tuple(result.citations))
        except ProviderError as e:
            logger.warning(f"Sourcing advice failed: {e}")
            return AdviceReply(text=ADVICE_FALLBACK)
