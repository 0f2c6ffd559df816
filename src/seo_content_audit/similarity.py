"""
Similarity detection module.

Three-tier duplicate detection over a homogeneous list of content items:
- Exact: identical after normalization (case, whitespace, punctuation)
- Fuzzy: Levenshtein + word Jaccard + length ratio composite
- Semantic: word Jaccard + structural pattern + key-phrase composite

Cheaper, more precise tiers run first and claim items before the
more expensive tiers see them.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .models import (
    ContentGroup,
    ContentItem,
    DetectionStats,
    DuplicateAnalysisResult,
    DuplicateItem,
    ImpactLevel,
)
from .text_utils import (
    dedupe_urls,
    extract_key_phrases,
    normalize_content,
    normalize_url,
    round_score,
    significant_words,
    structural_pattern,
)

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 5


@dataclass(frozen=True)
class SimilarityOptions:
    """
    Thresholds for the detector tiers.

    Attributes:
        exact_match_threshold: Score reported for exact groups.
        fuzzy_match_threshold: Minimum fuzzy composite (0-100) to join a group.
        semantic_threshold: Minimum semantic composite (0-100) to join a group.
        min_content_length: Items shorter than this are ignored.
    """
    exact_match_threshold: int = 100
    fuzzy_match_threshold: int = 85
    semantic_threshold: int = 75
    min_content_length: int = 10


DEFAULT_SIMILARITY_OPTIONS = SimilarityOptions()


def detect_duplicates(
    content: list[ContentItem],
    options: SimilarityOptions = DEFAULT_SIMILARITY_OPTIONS,
) -> DuplicateAnalysisResult:
    """
    Detect duplicates using the exact, fuzzy and semantic tiers in order.

    Args:
        content: Items of a single content type.
        options: Tier thresholds.

    Returns:
        DuplicateAnalysisResult. Empty or all-short input yields an empty result.
    """
    valid = [item for item in content if len(item.content) >= options.min_content_length]
    if not valid:
        return DuplicateAnalysisResult()

    claimed: set[int] = set()

    exact_groups = _find_exact_matches(valid, claimed, options.exact_match_threshold)
    fuzzy_groups = _find_linked_matches(
        valid, claimed, calculate_fuzzy_similarity, options.fuzzy_match_threshold
    )
    semantic_groups = _find_linked_matches(
        valid, claimed, calculate_semantic_similarity, options.semantic_threshold
    )

    exact_items = _to_duplicate_items(exact_groups, "exact")
    fuzzy_items = _to_duplicate_items(fuzzy_groups, "fuzzy")
    semantic_items = _to_duplicate_items(semantic_groups, "semantic")
    groups = exact_items + fuzzy_items + semantic_items

    duplicate_count = sum(len(group.urls) - 1 for group in groups)
    examples = [
        group.content for group in groups[:MAX_EXAMPLES] if group.content.strip()
    ]

    logger.debug(
        f"Detected {len(exact_items)} exact, {len(fuzzy_items)} fuzzy and "
        f"{len(semantic_items)} semantic groups across {len(valid)} items"
    )

    return DuplicateAnalysisResult(
        duplicate_groups=groups,
        duplicate_count=duplicate_count,
        total_analyzed=len(valid),
        examples=examples,
        stats=DetectionStats(
            exact_matches=len(exact_items),
            fuzzy_matches=len(fuzzy_items),
            semantic_matches=len(semantic_items),
        ),
    )


def _find_exact_matches(
    content: list[ContentItem],
    claimed: set[int],
    score: int,
) -> list[ContentGroup]:
    """Group items by normalized content. Only multi-page groups claim items."""
    buckets: dict[str, list[int]] = {}
    for index, item in enumerate(content):
        buckets.setdefault(normalize_content(item.content), []).append(index)

    groups: list[ContentGroup] = []
    for indices in buckets.values():
        if len(indices) < 2:
            continue
        items = [content[i] for i in indices]
        if count_distinct_pages(items) < 2:
            continue
        claimed.update(indices)
        groups.append(ContentGroup(
            representative_content=items[0].content,
            items=items,
            similarity=score,
        ))

    return groups


def _find_linked_matches(
    content: list[ContentItem],
    claimed: set[int],
    scorer: Callable[[str, str], int],
    threshold: int,
) -> list[ContentGroup]:
    """
    Single-link clustering over unclaimed items.

    Each unclaimed item anchors a group and pulls in every later unclaimed
    item scoring at or above the threshold. Joined items never become
    anchors themselves. Only members of a formed group are claimed, so
    unmatched items stay available to the next tier.
    """
    groups: list[ContentGroup] = []
    visited: set[int] = set()

    for index, anchor in enumerate(content):
        if index in claimed or index in visited:
            continue
        visited.add(index)
        members = [index]

        for other_index in range(index + 1, len(content)):
            if other_index in claimed or other_index in visited:
                continue
            if scorer(anchor.content, content[other_index].content) >= threshold:
                members.append(other_index)
                visited.add(other_index)

        if len(members) > 1:
            claimed.update(members)
            groups.append(ContentGroup(
                representative_content=anchor.content,
                items=[content[i] for i in members],
                similarity=threshold,
            ))

    return groups


def _to_duplicate_items(groups: list[ContentGroup], duplication_type: str) -> list[DuplicateItem]:
    """URL-deduplicate groups and drop any that cover a single page."""
    result: list[DuplicateItem] = []
    for group in groups:
        urls = dedupe_urls(item.url for item in group.items)
        if len(urls) < 2:
            continue
        result.append(DuplicateItem(
            content=group.representative_content,
            urls=urls,
            similarity_score=group.similarity,
            impact_level=ImpactLevel.from_url_count(len(urls)),
            duplication_type=duplication_type,
        ))
    return result


def count_distinct_pages(items: Iterable[ContentItem]) -> int:
    """Number of distinct normalized URLs among the items."""
    return len({normalize_url(item.url) for item in items})


# ============================================================================
# Composite scores
# ============================================================================

def calculate_fuzzy_similarity(text1: str, text2: str) -> int:
    """Weighted fuzzy score: 50% Levenshtein, 30% word Jaccard, 20% length."""
    levenshtein = calculate_levenshtein_similarity(text1, text2)
    jaccard = calculate_jaccard_similarity(text1, text2)
    length = calculate_length_similarity(text1, text2)
    return round_score(levenshtein * 0.5 + jaccard * 0.3 + length * 0.2)


def calculate_semantic_similarity(text1: str, text2: str) -> int:
    """Weighted semantic score: 40% word Jaccard, 20% structure, 40% key phrases."""
    words = calculate_jaccard_similarity(text1, text2)
    structure = calculate_structural_similarity(text1, text2)
    phrases = calculate_keyphrase_similarity(text1, text2)
    return round_score(words * 0.4 + structure * 0.2 + phrases * 0.4)


# ============================================================================
# Component metrics (each 0-100)
# ============================================================================

def levenshtein_distance(str1: str, str2: str) -> int:
    """Classic edit distance with unit costs, computed row by row."""
    if str1 == str2:
        return 0
    if not str1:
        return len(str2)
    if not str2:
        return len(str1)

    previous = list(range(len(str1) + 1))
    for j, char2 in enumerate(str2, start=1):
        current = [j]
        for i, char1 in enumerate(str1, start=1):
            cost = 0 if char1 == char2 else 1
            current.append(min(
                current[i - 1] + 1,
                previous[i] + 1,
                previous[i - 1] + cost,
            ))
        previous = current

    return previous[-1]


def calculate_levenshtein_similarity(str1: str, str2: str) -> int:
    """1 - distance / longer length, as a percentage."""
    max_length = max(len(str1), len(str2))
    if max_length == 0:
        return 100
    return round_score((1 - levenshtein_distance(str1, str2) / max_length) * 100)


def _jaccard(set1: set[str], set2: set[str]) -> int:
    if not set1 and not set2:
        return 100
    if not set1 or not set2:
        return 0
    return round_score(len(set1 & set2) / len(set1 | set2) * 100)


def calculate_jaccard_similarity(text1: str, text2: str) -> int:
    """Jaccard similarity of word sets (words longer than 2 chars)."""
    return _jaccard(set(significant_words(text1)), set(significant_words(text2)))


def calculate_length_similarity(text1: str, text2: str) -> int:
    """Shorter length over longer length, as a percentage."""
    len1, len2 = len(text1), len(text2)
    if len1 == 0 and len2 == 0:
        return 100
    return round_score(min(len1, len2) / max(len1, len2) * 100)


def calculate_structural_similarity(text1: str, text2: str) -> int:
    """Jaccard over punctuation/casing layout with alphanumerics masked."""
    return calculate_jaccard_similarity(structural_pattern(text1), structural_pattern(text2))


def calculate_keyphrase_similarity(text1: str, text2: str) -> int:
    """Jaccard over word bigram and trigram sets."""
    return _jaccard(set(extract_key_phrases(text1)), set(extract_key_phrases(text2)))
