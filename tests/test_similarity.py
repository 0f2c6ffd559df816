"""Tests for three-tier duplicate detection."""

import pytest

from seo_content_audit.models import ContentItem, ImpactLevel
from seo_content_audit.similarity import (
    MAX_EXAMPLES,
    SimilarityOptions,
    calculate_fuzzy_similarity,
    calculate_jaccard_similarity,
    calculate_length_similarity,
    calculate_levenshtein_similarity,
    calculate_semantic_similarity,
    detect_duplicates,
    levenshtein_distance,
)

from conftest import make_items

# Same words, different order: too far apart for fuzzy, close enough for semantic
SEMANTIC_A = "Affordable plumbing services for your home and office"
SEMANTIC_B = "For your home and office affordable plumbing services"


class TestExactTier:
    """Tests for exact-match grouping."""

    def test_identical_titles_on_two_pages(self):
        """Two pages with the same title form one Low-impact exact group."""
        items = make_items(["Home | Acme", "Home | Acme"])
        result = detect_duplicates(items)

        assert len(result.duplicate_groups) == 1
        group = result.duplicate_groups[0]
        assert group.similarity_score == 100
        assert group.impact_level == ImpactLevel.LOW
        assert group.duplication_type == "exact"
        assert len(group.urls) == 2
        assert result.stats.exact_matches == 1

    def test_boilerplate_heading_on_twelve_pages(self):
        """A heading repeated on twelve pages is Critical with eleven duplicates."""
        items = make_items(["Welcome"] * 12)
        result = detect_duplicates(items, SimilarityOptions(min_content_length=5))

        assert len(result.duplicate_groups) == 1
        group = result.duplicate_groups[0]
        assert len(group.urls) == 12
        assert group.impact_level == ImpactLevel.CRITICAL
        assert result.duplicate_count == 11

    def test_cosmetic_differences_match(self):
        """Case, whitespace and punctuation do not prevent an exact match."""
        items = make_items(["Home | Acme Widgets", "home   acme widgets!"])
        result = detect_duplicates(items)

        assert result.stats.exact_matches == 1

    def test_representative_is_first_original_text(self):
        items = make_items(["Home | Acme Widgets", "home acme widgets"])
        result = detect_duplicates(items)

        assert result.duplicate_groups[0].content == "Home | Acme Widgets"

    def test_same_page_repeats_are_not_duplicates(self):
        """Repeats on one page (under URL variants) never form a group."""
        items = [
            ContentItem("Shared footer heading", "https://acme.com/a", 0),
            ContentItem("Shared footer heading", "https://www.acme.com/a/", 0),
        ]
        result = detect_duplicates(items)

        assert result.duplicate_groups == []
        assert result.duplicate_count == 0

    def test_urls_deduplicated(self):
        """URL variants of one page count once."""
        items = [
            ContentItem("Shared footer heading", "https://acme.com/a", 0),
            ContentItem("Shared footer heading", "https://acme.com/a/", 0),
            ContentItem("Shared footer heading", "https://acme.com/b", 1),
        ]
        group = detect_duplicates(items).duplicate_groups[0]

        assert group.urls == ["https://acme.com/a", "https://acme.com/b"]
        assert group.impact_level == ImpactLevel.LOW


class TestFuzzyTier:
    """Tests for fuzzy grouping."""

    def test_near_identical_titles(self):
        """A one-character difference is a fuzzy match scored at the threshold."""
        items = make_items([
            "Best running shoes for men 2024",
            "Best running shoes for men 2025",
        ])
        result = detect_duplicates(items)

        assert result.stats.exact_matches == 0
        assert result.stats.fuzzy_matches == 1
        group = result.duplicate_groups[0]
        assert group.duplication_type == "fuzzy"
        assert group.similarity_score == 85

    def test_unrelated_content_not_grouped(self):
        items = make_items([
            "Industrial widgets for factories",
            "Garden furniture summer sale",
        ])
        result = detect_duplicates(items)

        assert result.duplicate_groups == []


class TestSemanticTier:
    """Tests for semantic grouping."""

    def test_reordered_sentence(self):
        """Reordered wording is caught by the semantic tier only."""
        items = make_items([SEMANTIC_A, SEMANTIC_B])
        result = detect_duplicates(items)

        assert result.stats.fuzzy_matches == 0
        assert result.stats.semantic_matches == 1
        group = result.duplicate_groups[0]
        assert group.duplication_type == "semantic"
        assert group.similarity_score == 75
        assert group.content == SEMANTIC_A


class TestTierExclusivity:
    """Items claimed by one tier are not reconsidered by later tiers."""

    def test_exact_claims_before_fuzzy(self):
        """A near-duplicate of an exact group is not pulled into a fuzzy group."""
        items = make_items([
            "Best running shoes for men 2024",
            "Best running shoes for men 2024",
            "Best running shoes for men 2025",
        ])
        result = detect_duplicates(items)

        assert result.stats.exact_matches == 1
        assert result.stats.fuzzy_matches == 0
        assert result.stats.semantic_matches == 0
        assert len(result.duplicate_groups[0].urls) == 2

    def test_each_item_in_at_most_one_group(self):
        items = make_items([
            "Best running shoes for men 2024",
            "Best running shoes for men 2024",
            "Best running shoes for men 2025",
            "Best running shoes for men 2026",
            SEMANTIC_A,
            SEMANTIC_B,
        ])
        result = detect_duplicates(items)

        all_urls = [url for group in result.duplicate_groups for url in group.urls]
        assert len(all_urls) == len(set(all_urls))

    def test_groups_ordered_by_tier(self):
        items = make_items([
            SEMANTIC_A,
            "Best running shoes for men 2025",
            "Home | Acme",
            SEMANTIC_B,
            "Best running shoes for men 2026",
            "Home | Acme",
        ])
        result = detect_duplicates(items)

        assert [g.duplication_type for g in result.duplicate_groups] == [
            "exact", "fuzzy", "semantic",
        ]


class TestDetectionResult:
    """Tests for result bookkeeping."""

    @pytest.mark.parametrize("pages,expected", [
        (2, ImpactLevel.LOW),
        (3, ImpactLevel.MEDIUM),
        (4, ImpactLevel.MEDIUM),
        (5, ImpactLevel.HIGH),
        (9, ImpactLevel.HIGH),
        (10, ImpactLevel.CRITICAL),
    ])
    def test_impact_from_distinct_pages(self, pages, expected):
        items = make_items(["Shared call to action"] * pages)
        group = detect_duplicates(items).duplicate_groups[0]

        assert group.impact_level == expected

    def test_duplicate_count(self):
        """Each group contributes its page count minus one."""
        items = make_items(["Title one for the site"] * 3 + ["Another repeated title"] * 2)
        result = detect_duplicates(items)

        assert result.duplicate_count == 3

    def test_examples_capped(self):
        texts = []
        for i in range(8):
            texts += [f"Repeated heading number {i} text"] * 2
        result = detect_duplicates(make_items(texts))

        assert len(result.examples) == MAX_EXAMPLES

    def test_short_content_ignored(self):
        """Items below the minimum length yield an empty result, not an error."""
        result = detect_duplicates(make_items(["Hi", "Hi", "Hey"]))

        assert result.duplicate_groups == []
        assert result.total_analyzed == 0
        assert result.examples == []

    def test_empty_input(self):
        result = detect_duplicates([])

        assert result.duplicate_groups == []
        assert result.duplicate_count == 0

    def test_total_analyzed_counts_valid_items(self):
        result = detect_duplicates(make_items(["Hi", "Long enough content"]))

        assert result.total_analyzed == 1


class TestMetrics:
    """Tests for component similarity metrics."""

    def test_levenshtein_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0

    def test_levenshtein_similarity_empty(self):
        assert calculate_levenshtein_similarity("", "") == 100

    def test_jaccard_empty_sets(self):
        """Two texts without significant words are identical."""
        assert calculate_jaccard_similarity("a b", "") == 100

    def test_jaccard_one_empty(self):
        assert calculate_jaccard_similarity("widgets", "") == 0

    def test_length_similarity(self):
        assert calculate_length_similarity("ab", "abcd") == 50

    def test_identical_scores_full(self):
        assert calculate_fuzzy_similarity("Same text here", "Same text here") == 100
        assert calculate_semantic_similarity("Same text here", "Same text here") == 100

    def test_scores_are_symmetric(self):
        assert calculate_fuzzy_similarity(SEMANTIC_A, SEMANTIC_B) == calculate_fuzzy_similarity(
            SEMANTIC_B, SEMANTIC_A
        )
