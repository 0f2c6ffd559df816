"""
Token budget tracking and batching.

Handles:
- Per-run token allowance shared by every enrichment call
- Token estimation for content items
- Packing prioritized items into batches that fit a token limit
"""

import logging
import math
import threading
from dataclasses import dataclass, field

from .models import ContentItem, ContentStats, ContentType
from .sampling import DEFAULT_TYPE_PRIORITY, TYPE_PRIORITY

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_TOKENS = 15000
DEFAULT_BATCH_SIZE = 10

# Share of the estimate added for JSON framing and the model's reply
FORMAT_BUFFER_RATIO = 0.2

# Per-batch input limits by corpus complexity, minus tokens reserved for
# the system prompt and instructions
BATCH_INPUT_LIMITS = {"high": 6000, "medium": 4000, "low": 2000}
RESERVED_PROMPT_TOKENS = 500


class TokenBudget:
    """
    Shrinking token allowance for one analysis run.

    ``available_tokens`` only ever decreases and never drops below zero.
    Enrichment workers charge it concurrently, so ``consume`` is guarded
    by a lock.
    """

    def __init__(self, total: int = DEFAULT_TOTAL_TOKENS):
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        self.total = total
        self._available = total
        self._lock = threading.Lock()

    @property
    def available_tokens(self) -> int:
        return self._available

    @property
    def tokens_used(self) -> int:
        return self.total - self._available

    @property
    def is_exhausted(self) -> bool:
        return self._available <= 0

    def can_afford(self, tokens: int) -> bool:
        """Check if a charge of this size fits in what is left."""
        return 0 < tokens <= self._available

    def consume(self, tokens: int) -> int:
        """
        Charge tokens against the budget.

        Args:
            tokens: Amount to charge. Negative amounts are ignored.

        Returns:
            The amount actually charged (less than requested when the
            budget runs out).
        """
        if tokens <= 0:
            return 0
        with self._lock:
            charged = min(tokens, self._available)
            self._available -= charged
        if self._available == 0:
            logger.debug("Token budget exhausted")
        return charged

    def __repr__(self) -> str:
        return f"TokenBudget(available={self._available}, total={self.total})"


def estimate_token_usage(text: str) -> int:
    """
    Estimate tokens for one item including formatting overhead.

    Uses 4 characters per token plus a 20% buffer.
    """
    base_tokens = math.ceil(len(text) / 4)
    return base_tokens + math.ceil(base_tokens * FORMAT_BUFFER_RATIO)


def batch_token_limit(stats: ContentStats, remaining: int) -> int:
    """Input token limit for one batch given corpus complexity and what is left."""
    limit = BATCH_INPUT_LIMITS.get(stats.complexity, BATCH_INPUT_LIMITS["low"])
    return min(limit - RESERVED_PROMPT_TOKENS, remaining)


@dataclass
class AnalysisBatch:
    """A group of items sent to the model in one call."""
    items: list[ContentItem] = field(default_factory=list)
    estimated_tokens: int = 0
    priority: int = 1  # 1 = highest priority
    content_type: ContentType = ContentType.TITLES


def prioritize_content(items: list[ContentItem], content_type: ContentType) -> list[ContentItem]:
    """
    Order items by SEO impact, highest first.

    Ties keep their input order.
    """
    base = TYPE_PRIORITY.get(content_type.value, DEFAULT_TYPE_PRIORITY)

    occurrences: dict[str, int] = {}
    for item in items:
        key = item.content.lower()
        occurrences[key] = occurrences.get(key, 0) + 1

    def score(item: ContentItem) -> int:
        url = item.url.lower()
        priority = base
        if url.endswith("/") or "home" in url:
            priority += 20
        if "about" in url or "contact" in url:
            priority += 10
        if occurrences[item.content.lower()] > 1:
            priority += 15
        return priority

    return sorted(items, key=score, reverse=True)


def create_analysis_batches(
    items: list[ContentItem],
    content_type: ContentType,
    budget_tokens: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    prioritize: bool = True,
) -> list[AnalysisBatch]:
    """
    Split items into token-aware batches.

    A batch closes when the next item would push it over ``budget_tokens``
    or when it reaches ``batch_size`` items. An item larger than the limit
    on its own still gets a batch.

    Args:
        items: Items to batch.
        content_type: Content type of every item.
        budget_tokens: Token limit per batch.
        batch_size: Maximum items per batch.
        prioritize: Order items by SEO impact first.

    Returns:
        Batches in dispatch order, ``priority`` numbered from 1.
    """
    if not items:
        return []

    ordered = prioritize_content(items, content_type) if prioritize else list(items)

    batches: list[AnalysisBatch] = []
    current: list[ContentItem] = []
    current_tokens = 0

    def close_batch():
        batches.append(AnalysisBatch(
            items=list(current),
            estimated_tokens=current_tokens,
            priority=len(batches) + 1,
            content_type=content_type,
        ))

    for item in ordered:
        item_tokens = estimate_token_usage(item.content)

        if current and current_tokens + item_tokens > budget_tokens:
            close_batch()
            current = []
            current_tokens = 0

        current.append(item)
        current_tokens += item_tokens

        if len(current) >= batch_size:
            close_batch()
            current = []
            current_tokens = 0

    if current:
        close_batch()

    logger.debug(
        f"Built {len(batches)} {content_type.value} batches from {len(items)} items "
        f"(limit {budget_tokens} tokens, {batch_size} items)"
    )
    return batches
