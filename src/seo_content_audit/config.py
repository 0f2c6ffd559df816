# -*- coding: utf-8 -*-
"""
Centralized configuration for SEO Content Audit.

This module provides a unified configuration dataclass that controls
analysis behavior, including the token budget, model enrichment and
batching parameters.
"""

from dataclasses import dataclass, field, replace

from .models import ContentType
from .similarity import SimilarityOptions


@dataclass
class AnalysisConfig:
    """
    Central configuration for a content-duplication analysis run.

    Attributes:
        max_total_tokens: Token allowance for model enrichment in one run.
            Rule-based detection is free and always runs.
        use_ai_analysis: Master switch for model enrichment.
        similarity: Detector thresholds (exact / fuzzy / semantic).

        model: Model identifier used for enrichment calls.
        temperature: Sampling temperature for enrichment calls.
        max_tokens_per_request: Maximum response tokens per call.

        batch_size: Maximum items per enrichment batch.
        max_concurrent_batches: Batches in flight at once (thread pool size).
        inter_batch_delay: Seconds to wait between batch dispatches.

        enable_template_detection: Ask the model for template patterns
            ("Services in [CITY]") after enriching each content type.

        remaining_headings_min_tokens: H2-H6 are analyzed only when more
            than this many tokens remain after the primary content types.
        heading_min_content_length: Minimum length for headings, which
            are shorter than other content ("Welcome" is 7 characters).
        cache_size: Entries kept by the orchestrator's enrichment cache.
    """

    # Budget
    max_total_tokens: int = 15000

    # Enrichment control
    use_ai_analysis: bool = True
    similarity: SimilarityOptions = field(default_factory=SimilarityOptions)

    # Model parameters
    model: str = "claude-sonnet-4-20250514"
    temperature: float = 0.3
    max_tokens_per_request: int = 4000

    # Batching (rate-limit friendly defaults)
    batch_size: int = 10
    max_concurrent_batches: int = 3
    inter_batch_delay: float = 0.1

    # Template pattern pass
    enable_template_detection: bool = True

    # Headings
    remaining_headings_min_tokens: int = 1000
    heading_min_content_length: int = 5

    # Enrichment cache
    cache_size: int = 256

    @property
    def should_enrich(self) -> bool:
        """Check if model enrichment can happen at all.

        Requires the master switch and a non-zero budget.
        """
        return self.use_ai_analysis and self.max_total_tokens > 0

    def __post_init__(self):
        """Validate configuration values."""
        if self.max_total_tokens < 0:
            raise ValueError(
                f"max_total_tokens must be >= 0, got {self.max_total_tokens}"
            )
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(
                f"temperature must be between 0.0 and 1.0, got {self.temperature}"
            )
        if self.max_tokens_per_request < 1:
            raise ValueError(
                f"max_tokens_per_request must be >= 1, got {self.max_tokens_per_request}"
            )
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.max_concurrent_batches < 1:
            raise ValueError(
                f"max_concurrent_batches must be >= 1, got {self.max_concurrent_batches}"
            )
        if self.inter_batch_delay < 0:
            raise ValueError(
                f"inter_batch_delay must be >= 0, got {self.inter_batch_delay}"
            )
        if self.remaining_headings_min_tokens < 0:
            raise ValueError(
                f"remaining_headings_min_tokens must be >= 0, "
                f"got {self.remaining_headings_min_tokens}"
            )
        if self.heading_min_content_length < 0:
            raise ValueError(
                f"heading_min_content_length must be >= 0, "
                f"got {self.heading_min_content_length}"
            )
        if self.cache_size < 0:
            raise ValueError(f"cache_size must be >= 0, got {self.cache_size}")

        for name in ("exact_match_threshold", "fuzzy_match_threshold", "semantic_threshold"):
            value = getattr(self.similarity, name)
            if not 0 <= value <= 100:
                raise ValueError(f"similarity.{name} must be between 0 and 100, got {value}")
        if self.similarity.min_content_length < 0:
            raise ValueError(
                f"similarity.min_content_length must be >= 0, "
                f"got {self.similarity.min_content_length}"
            )

    def similarity_for(self, content_type: ContentType) -> SimilarityOptions:
        """Detector thresholds for one content type."""
        if content_type == ContentType.HEADINGS:
            return replace(self.similarity, min_content_length=self.heading_min_content_length)
        return self.similarity

    @classmethod
    def rule_based_only(cls, **overrides) -> "AnalysisConfig":
        """Create config that never calls the model.

        Args:
            **overrides: Override any config values

        Returns:
            AnalysisConfig with enrichment disabled
        """
        defaults = {
            "use_ai_analysis": False,
        }
        defaults.update(overrides)
        return cls(**defaults)

    @classmethod
    def with_budget(cls, tokens: int, **overrides) -> "AnalysisConfig":
        """Create config with a specific token allowance.

        A budget of 0 keeps enrichment switched on in principle but no
        call is ever attempted.

        Args:
            tokens: Token allowance for the run
            **overrides: Override any config values

        Returns:
            AnalysisConfig with the given budget
        """
        defaults = {
            "max_total_tokens": tokens,
        }
        defaults.update(overrides)
        return cls(**defaults)

