"""
Prompt templates for the supplier assistant.

WHAT: Prompts and response schemas for dossier generation, matching, persona chat and sourcing advice
WHY: Keep prompt wording out of the assistant's fallback/parsing logic
HOW: Template strings with context injection, return ChatMessage lists
"""

import json
from typing import Sequence

from ..llm.types import ChatMessage
from ..models.directory import OnboardingForm, SupplierRecord

PLATFORM_CONTEXT = "QuickSupply, a B2B marketplace connecting international buyers with Cambodian suppliers"

PROFILE_SCHEMA = {
    "type": "object",
    "properties": {
        "description": {"type": "string"},
        "certifications": {"type": "array", "items": {"type": "string"}},
        "establishedYear": {"type": "integer"},
        "employeeCount": {"type": "string"},
        "factorySize": {"type": "string"},
        "businessType": {"type": "string"},
    },
    "required": ["description", "certifications", "establishedYear", "employeeCount", "factorySize", "businessType"],
    "additionalProperties": False,
}

MATCH_SCHEMA = {
    "type": "object",
    "properties": {
        "ids": {"type": "array", "items": {"type": "string"}},
        "analysis": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "reason": {"type": "string"},
                },
                "required": ["name", "reason"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["ids", "analysis"],
    "additionalProperties": False,
}


def supplier_digest(suppliers: Sequence[SupplierRecord]) -> str:
    """Compact JSON view of the directory for prompt context."""
    return json.dumps([
        {
            "id": s.id,
            "name": s.name,
            "industry": s.industry.value,
            "category": s.category,
            "location": s.location,
            "description": s.description,
            "certifications": list(s.certifications),
            "products": [p.name for p in s.products],
        }
        for s in suppliers
    ], ensure_ascii=False)


def render_profile_prompt(form: OnboardingForm) -> list[ChatMessage]:
    """Dossier generation for a newly registering supplier."""
    user_prompt = f"""A new supplier is registering on QuickSupply (Cambodia B2B).
Name: {form.name}
Location: {form.location}
Industry: {form.industry.value}
Category: {form.category}
Annual Capacity: {form.capacity}

Task: Generate a professional B2B factory profile.
Return a JSON object with:
1. "description": A high-quality 3-paragraph company bio highlighting quality, location, and export readiness.
2. "certifications": Array of 2-3 realistic certifications for this industry (e.g., ISO 9001, GOTS, OEKO-TEX).
3. "establishedYear": A realistic year (e.g., between 2000 and 2023).
4. "employeeCount": A realistic range (e.g., "50-100", "500+").
5. "factorySize": A realistic size in sqm (e.g., "2,500 sqm").
6. "businessType": A professional classification (e.g., "Manufacturer", "Direct Exporter")."""

    return [
        {"role": "system", "content": f"You write supplier profiles for {PLATFORM_CONTEXT}. Respond only with valid JSON."},
        {"role": "user", "content": user_prompt},
    ]


def render_match_prompt(requirements: str, candidates: Sequence[SupplierRecord], limit: int) -> list[ChatMessage]:
    """Rank candidates against buyer requirements."""
    user_prompt = f"""Given these supplier profiles: {supplier_digest(candidates)}
And these user requirements: "{requirements}"
Analyze the requirements and select the top {limit} matching suppliers.
Return a JSON object with:
1. "ids": an array of the IDs of the top {limit} matching suppliers.
2. "analysis": an array of exactly {limit} objects (or fewer if less than {limit} match), each containing:
   - "name": The name of the supplier.
   - "reason": A one-sentence specific reason why this supplier is a great fit."""

    return [
        {"role": "system", "content": f"You are a sourcing analyst for {PLATFORM_CONTEXT}. Respond only with valid JSON."},
        {"role": "user", "content": user_prompt},
    ]


def render_supplier_persona_prompt(message: str, supplier: SupplierRecord) -> list[ChatMessage]:
    """Reply as the supplier's sales manager."""
    product_names = ", ".join(p.name for p in supplier.products)
    system_prompt = f"""You are the Sales and Export Manager for "{supplier.name}" based in {supplier.location}, Cambodia.
Your company profile: {supplier.description}
Your products: {product_names}

Instructions:
1. Reply as the owner/manager of the factory.
2. Be professional, polite, and eager to do business.
3. Mention specific details about your products or location if relevant.
4. Keep the response concise (2-3 paragraphs max).
5. Do not mention you are an AI."""

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": f'A potential international buyer has sent you this message: "{message}"'},
    ]


def render_sourcing_prompt(query: str, suppliers: Sequence[SupplierRecord]) -> list[ChatMessage]:
    """General sourcing assistant with access to the directory and web search."""
    system_prompt = f"""You are the Cambodian Sourcing Assistant for {PLATFORM_CONTEXT}.
Context of our internal database: {supplier_digest(suppliers)}

Instructions:
1. If a match exists in our database, highlight them.
2. Use web search to find more real-time information or additional reputable suppliers in Cambodia that aren't in our list.
3. Provide helpful advice on sourcing from Cambodia (taxes, shipping, reliability).
4. Be professional and encouraging."""

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": f'User Query: "{query}"'},
    ]
