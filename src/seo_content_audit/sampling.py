"""
Content sampling strategy module.

Smart sampling for large sites to stay within token limits while keeping
the analysis representative:
- Small corpora are analyzed in full
- Medium corpora use systematic sampling that preserves exact duplicates
- Large corpora are ranked by SEO priority
- Very large corpora are clustered and sampled per cluster
"""

import logging
from dataclasses import dataclass, field
from typing import Union

from .models import (
    ContentItem,
    ContentStats,
    ContentType,
    SamplingMethod,
    SamplingResult,
    SamplingStrategy,
)
from .text_utils import light_normalize, round_score

logger = logging.getLogger(__name__)

# Base priority by content type
TYPE_PRIORITY = {
    "titles": 100,
    "descriptions": 80,
    "headings": 60,
    "paragraphs": 40,
}
DEFAULT_TYPE_PRIORITY = 50

# Word-Jaccard percentage for two items to share a cluster
CLUSTER_SIMILARITY_THRESHOLD = 70

# Priority sampling is biased towards important pages
PRIORITY_REPRESENTATIVENESS_FACTOR = 85


@dataclass
class ClusterInfo:
    """A cluster built greedily around its first-seen centroid."""
    centroid: int
    members: list[int] = field(default_factory=list)
    avg_similarity: int = 100


def determine_sampling_strategy(stats: ContentStats, content_length: int) -> SamplingStrategy:
    """
    Choose a sampling strategy from corpus size and estimated tokens.

    The first matching rule wins.

    Args:
        stats: Content statistics (only estimated_tokens is used).
        content_length: Number of items in the corpus.

    Returns:
        The SamplingStrategy to apply.
    """
    if content_length <= 15 and stats.estimated_tokens <= 2000:
        return SamplingStrategy(
            method=SamplingMethod.NONE,
            sample_size=content_length,
            reason="Small dataset - analyze all content",
        )

    if content_length <= 50 and stats.estimated_tokens <= 5000:
        return SamplingStrategy(
            method=SamplingMethod.REPRESENTATIVE,
            sample_size=min(25, content_length),
            reason="Medium dataset - representative sampling",
        )

    if content_length <= 100:
        return SamplingStrategy(
            method=SamplingMethod.PRIORITY,
            sample_size=min(30, content_length),
            reason="Large dataset - priority-based sampling",
        )

    return SamplingStrategy(
        method=SamplingMethod.CLUSTER,
        sample_size=min(40, content_length),
        reason="Very large dataset - cluster-based sampling",
    )


def sample_content(
    content: list[ContentItem],
    strategy: SamplingStrategy,
    content_type: Union[ContentType, str],
) -> SamplingResult:
    """
    Apply a sampling strategy.

    Every input item ends up in exactly one of ``sampled`` or ``excluded``.

    Args:
        content: Items of one content type.
        strategy: Strategy chosen by determine_sampling_strategy.
        content_type: Content type (drives priority weights and insight text).

    Returns:
        SamplingResult with insights describing what was done.
    """
    type_name = content_type.value if isinstance(content_type, ContentType) else content_type

    if strategy.method == SamplingMethod.NONE or len(content) <= strategy.sample_size:
        return SamplingResult(
            sampled=list(content),
            excluded=[],
            representativeness=100,
            strategy=strategy,
            insights=[f"All {len(content)} {type_name} analyzed"],
        )

    if strategy.method == SamplingMethod.PRIORITY:
        return _apply_priority_sampling(content, strategy, type_name)
    if strategy.method == SamplingMethod.CLUSTER:
        return _apply_cluster_sampling(content, strategy, type_name)
    return _apply_representative_sampling(content, strategy, type_name)


def _split(content: list[ContentItem], chosen: list[int]) -> tuple[list[ContentItem], list[ContentItem]]:
    """Partition items by position into (chosen order, remaining input order)."""
    chosen_set = set(chosen)
    sampled = [content[i] for i in chosen]
    excluded = [item for i, item in enumerate(content) if i not in chosen_set]
    return sampled, excluded


def _retained_percent(sampled: int, total: int) -> int:
    return round_score(sampled / total * 100) if total else 100


def _apply_representative_sampling(
    content: list[ContentItem],
    strategy: SamplingStrategy,
    type_name: str,
) -> SamplingResult:
    """Keep duplicate evidence, then stride through the rest for topical spread."""
    duplicate_groups = find_exact_duplicate_groups(content)

    preserved: list[int] = []
    if strategy.preserve_exact_duplicates:
        for group in duplicate_groups:
            preserved.extend(group[:2])

    preserved_set = set(preserved)
    unique = [i for i in range(len(content)) if i not in preserved_set]

    remaining_slots = max(0, strategy.sample_size - len(preserved))
    spread: list[int] = []
    if remaining_slots and unique:
        step = max(1, len(unique) // remaining_slots)
        spread = unique[::step][:remaining_slots]

    sampled, excluded = _split(content, preserved + spread)

    return SamplingResult(
        sampled=sampled,
        excluded=excluded,
        representativeness=_retained_percent(len(sampled), len(content)),
        strategy=strategy,
        insights=[
            f"Representative sample: {len(sampled)}/{len(content)} {type_name}",
            f"Preserved {len(preserved)} exact duplicates",
            f"{len(duplicate_groups)} duplicate groups detected",
        ],
    )


def _apply_priority_sampling(
    content: list[ContentItem],
    strategy: SamplingStrategy,
    type_name: str,
) -> SamplingResult:
    """Rank by SEO priority and keep the top items."""
    scores = [calculate_content_priority(item, type_name) for item in content]
    ranked = sorted(range(len(content)), key=lambda i: scores[i], reverse=True)

    chosen = ranked[:strategy.sample_size]
    sampled, excluded = _split(content, chosen)

    avg_priority = sum(scores[i] for i in chosen) / len(chosen) if chosen else 0

    return SamplingResult(
        sampled=sampled,
        excluded=excluded,
        representativeness=round_score(
            len(sampled) / len(content) * PRIORITY_REPRESENTATIVENESS_FACTOR
        ),
        strategy=strategy,
        insights=[
            f"Priority-based sample: {len(sampled)}/{len(content)} {type_name}",
            f"Average priority score: {round_score(avg_priority)}",
            "Focused on homepage, landing pages, and duplicate content",
        ],
    )


def _apply_cluster_sampling(
    content: list[ContentItem],
    strategy: SamplingStrategy,
    type_name: str,
) -> SamplingResult:
    """Sample each similarity cluster, always keeping its centroid."""
    clusters = create_content_clusters(content, CLUSTER_SIMILARITY_THRESHOLD)

    # Every centroid is kept, even when clusters outnumber the slots
    per_cluster = max(1, strategy.sample_size // len(clusters))
    extra = strategy.sample_size - per_cluster * len(clusters)

    chosen: list[int] = []
    for index, cluster in enumerate(clusters):
        cluster_size = per_cluster + (1 if index < extra else 0)
        chosen.append(cluster.centroid)
        chosen.extend(cluster.members[:max(0, cluster_size - 1)])

    sampled, excluded = _split(content, chosen)
    avg_similarity = sum(c.avg_similarity for c in clusters) / len(clusters)

    insights = [
        f"Cluster-based sample: {len(sampled)}/{len(content)} {type_name}",
        f"{len(clusters)} content clusters identified",
        f"Average {round_score(avg_similarity)}% intra-cluster similarity",
    ]
    if len(sampled) > strategy.sample_size:
        insights.append(
            f"Sample exceeds target of {strategy.sample_size} to keep one item per cluster"
        )

    return SamplingResult(
        sampled=sampled,
        excluded=excluded,
        representativeness=_retained_percent(len(sampled), len(content)),
        strategy=strategy,
        insights=insights,
        centroids=[content[c.centroid] for c in clusters],
    )


def calculate_content_priority(item: ContentItem, content_type: str) -> int:
    """
    Score an item by SEO importance.

    Combines the content-type base weight, URL pattern bonuses and a
    length adjustment. Never negative.
    """
    priority = TYPE_PRIORITY.get(content_type, DEFAULT_TYPE_PRIORITY)
    url = item.url.lower()

    if _is_homepage(url) or "index" in url or "home" in url:
        priority += 30
    if "about" in url or "contact" in url or "service" in url:
        priority += 20
    if "product" in url or "category" in url or "shop" in url:
        priority += 15
    if "landing" in url or "/lp" in url or "promo" in url:
        priority += 25

    if len(item.content) > 100:
        priority += 10
    if len(item.content) < 20:
        priority -= 20

    return max(0, priority)


def _is_homepage(url: str) -> bool:
    """True when the URL has no path beyond the root."""
    without_scheme = url.split("://", 1)[-1]
    path = without_scheme.split("/", 1)[1] if "/" in without_scheme else ""
    path = path.split("?", 1)[0].split("#", 1)[0]
    return path.strip("/") == ""


def find_exact_duplicate_groups(content: list[ContentItem]) -> list[list[int]]:
    """Positions of items sharing a lightly-normalized key, multi-member groups only."""
    buckets: dict[str, list[int]] = {}
    for index, item in enumerate(content):
        buckets.setdefault(light_normalize(item.content), []).append(index)
    return [indices for indices in buckets.values() if len(indices) > 1]


def create_content_clusters(content: list[ContentItem], threshold: int) -> list[ClusterInfo]:
    """
    Greedy first-seen-wins clustering.

    Each unclaimed item becomes a centroid and claims every later unclaimed
    item whose word Jaccard with it reaches the threshold. Clusters are then
    ordered by size, largest first, keeping discovery order for ties.
    """
    clusters: list[ClusterInfo] = []
    claimed: set[int] = set()

    for index, item in enumerate(content):
        if index in claimed:
            continue
        claimed.add(index)

        members: list[int] = []
        similarities: list[int] = []
        for other in range(index + 1, len(content)):
            if other in claimed:
                continue
            similarity = simple_similarity(item.content, content[other].content)
            if similarity >= threshold:
                members.append(other)
                similarities.append(similarity)
                claimed.add(other)

        avg = sum(similarities) / len(similarities) if similarities else 100
        clusters.append(ClusterInfo(
            centroid=index,
            members=members,
            avg_similarity=round_score(avg),
        ))

    return sorted(clusters, key=lambda c: len(c.members), reverse=True)


def simple_similarity(text1: str, text2: str) -> int:
    """Word Jaccard (no length filter) used for clustering, 0-100."""
    words1 = set(text1.lower().split())
    words2 = set(text2.lower().split())
    union = words1 | words2
    if not union:
        return 0
    return round_score(len(words1 & words2) / len(union) * 100)
