"""
Buyer directory filtering and grouping.

WHAT: Turn the merged supplier list into the industry -> category -> suppliers tree buyers browse
WHY: Search, sector filter and AI match all narrow the same view
HOW: Pure functions over SupplierRecord tuples; an active AI match overrides free-text search
"""

from typing import Iterable, Sequence

from ..models.directory import Industry, MatchResult, SupplierRecord
from .navigation import ALL_INDUSTRIES

GENERAL_CATEGORY = "General"

Grouped = dict[str, dict[str, list[SupplierRecord]]]


def matches_search(record: SupplierRecord, term: str) -> bool:
    """Case-insensitive substring match over name, category, product names and description."""
    needle = term.lower()
    return (
        needle in record.name.lower()
        or needle in record.category.lower()
        or any(needle in product.name.lower() for product in record.products)
        or needle in record.description.lower()
    )


def visible_suppliers(
    suppliers: Iterable[SupplierRecord],
    search_term: str = "",
    industry_filter: str = ALL_INDUSTRIES,
    match: MatchResult | None = None,
) -> list[SupplierRecord]:
    """Suppliers shown to buyers; owner dossiers never appear in the directory."""
    filtered = [s for s in suppliers if not s.is_owner]

    if match is not None and match.active:
        wanted = set(match.ids)
        filtered = [s for s in filtered if s.id in wanted]
    elif search_term:
        filtered = [s for s in filtered if matches_search(s, search_term)]

    if industry_filter and industry_filter != ALL_INDUSTRIES:
        filtered = [s for s in filtered if s.industry.value == industry_filter]
    return filtered


def group_suppliers(suppliers: Sequence[SupplierRecord]) -> Grouped:
    """Group by industry label then category, preserving input order."""
    structure: Grouped = {}
    for supplier in suppliers:
        categories = structure.setdefault(supplier.industry.value, {})
        categories.setdefault(supplier.category or GENERAL_CATEGORY, []).append(supplier)
    return structure


def match_candidates(suppliers: Iterable[SupplierRecord]) -> list[SupplierRecord]:
    """Records the AI matcher may pick from."""
    return [s for s in suppliers if not s.is_owner]


def sectors() -> list[str]:
    """Filter chips offered to buyers."""
    return [ALL_INDUSTRIES, *(industry.value for industry in Industry)]
