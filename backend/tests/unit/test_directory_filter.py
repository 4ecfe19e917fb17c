"""
Unit tests for buyer directory filtering and grouping.

WHAT: Test search, sector filter, AI match override and grouping
WHY: Buyers must never see owner dossiers and must see match results in place of search
HOW: Pure function calls over the sample dataset
"""

import pytest

from quicksupply.models.directory import Industry, MatchResult
from quicksupply.services.directory_filter import (
    group_suppliers, match_candidates, matches_search, sectors, visible_suppliers,
)
from quicksupply.services.navigation import ALL_INDUSTRIES

from tests.fixtures.sample_records import FALLBACK, dossier, supplier

OWNER_DOSSIER = dossier("d1", name="Hidden Dossier")
SUPPLIERS = (*FALLBACK, OWNER_DOSSIER)


@pytest.mark.unit
class TestSearch:
    """Test free-text search."""

    @pytest.mark.parametrize("term", ["textile", "OUTERWEAR", "raincoat", "cashew processor"])
    def test_matches_name_category_product_description(self, term):
        hits = [s for s in FALLBACK if matches_search(s, term)]

        assert hits

    def test_search_is_case_insensitive_substring(self):
        assert [s.id for s in visible_suppliers(SUPPLIERS, "ROASTED")] == ["2"]

    def test_no_filters_shows_everything_but_dossiers(self):
        visible = visible_suppliers(SUPPLIERS)

        assert [s.id for s in visible] == ["1", "2", "3"]
        assert OWNER_DOSSIER not in visible

    def test_dossier_hidden_even_when_searched(self):
        assert visible_suppliers(SUPPLIERS, "Hidden") == []


@pytest.mark.unit
class TestSectorAndMatch:
    """Test sector filter and AI match override."""

    def test_sector_filter(self):
        visible = visible_suppliers(SUPPLIERS, industry_filter=Industry.HANDICRAFTS.value)

        assert [s.id for s in visible] == ["3"]

    def test_all_sector_is_no_filter(self):
        assert len(visible_suppliers(SUPPLIERS, industry_filter=ALL_INDUSTRIES)) == 3

    def test_active_match_overrides_search(self):
        match = MatchResult(ids=("3", "1"))

        visible = visible_suppliers(SUPPLIERS, search_term="cashew", match=match)

        assert [s.id for s in visible] == ["1", "3"]

    def test_match_combines_with_sector(self):
        match = MatchResult(ids=("3", "1"))

        visible = visible_suppliers(SUPPLIERS, industry_filter=Industry.GARMENT_TEXTILE.value, match=match)

        assert [s.id for s in visible] == ["1"]

    def test_inactive_match_falls_back_to_search(self):
        assert [s.id for s in visible_suppliers(SUPPLIERS, "scarf", match=MatchResult())] == ["3"]

    def test_match_candidates_exclude_dossiers(self):
        assert OWNER_DOSSIER not in match_candidates(SUPPLIERS)


@pytest.mark.unit
class TestGrouping:
    """Test industry -> category grouping."""

    def test_groups_preserve_order(self):
        extra = supplier("4", "Second Outerwear")

        grouped = group_suppliers([*FALLBACK, extra])

        assert list(grouped) == ["Garment & Textile", "Agriculture", "Handicrafts"]
        assert [s.id for s in grouped["Garment & Textile"]["Outerwear"]] == ["1", "4"]
        assert list(grouped["Agriculture"]) == ["Nuts & Seeds"]

    def test_blank_category_grouped_as_general(self):
        grouped = group_suppliers([supplier("5", "No Category", category="")])

        assert list(grouped["Garment & Textile"]) == ["General"]

    def test_sectors(self):
        chips = sectors()

        assert chips[0] == ALL_INDUSTRIES
        assert chips[1:] == [industry.value for industry in Industry]
