"""
Data models for SEO Content Audit.

This module defines all the core data structures used throughout the
duplication and keyword analysis pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


HEADING_LEVELS = ("h1", "h2", "h3", "h4", "h5", "h6")


class ContentType(Enum):
    """Content types analyzed by the pipeline, in SEO-impact order."""
    TITLES = "titles"
    DESCRIPTIONS = "descriptions"
    HEADINGS = "headings"
    PARAGRAPHS = "paragraphs"


class ImpactLevel(Enum):
    """Severity of a duplicate group."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def from_url_count(cls, url_count: int) -> "ImpactLevel":
        """Derive the impact level from how many distinct pages share content."""
        if url_count >= 10:
            return cls.CRITICAL
        if url_count >= 5:
            return cls.HIGH
        if url_count >= 3:
            return cls.MEDIUM
        return cls.LOW

    @classmethod
    def parse(cls, value: str) -> Optional["ImpactLevel"]:
        """Case-insensitive lookup, returning None for unknown values."""
        if not isinstance(value, str):
            return None
        for level in cls:
            if level.value.lower() == value.strip().lower():
                return level
        return None

    @property
    def priority(self) -> int:
        """Numeric priority where 1 is the most urgent."""
        return {
            ImpactLevel.CRITICAL: 1,
            ImpactLevel.HIGH: 2,
            ImpactLevel.MEDIUM: 3,
            ImpactLevel.LOW: 4,
        }[self]


class SamplingMethod(Enum):
    """Sampling methods available to the strategy selector."""
    NONE = "none"
    REPRESENTATIVE = "representative"
    PRIORITY = "priority"
    CLUSTER = "cluster"


class StageState(Enum):
    """Processing stages for a single content type."""
    PENDING = "pending"
    SAMPLED = "sampled"
    RULE_DETECTED = "rule_detected"
    ENRICHED = "enriched"
    SKIPPED = "skipped"
    MERGED = "merged"
    DONE = "done"


# ============================================================================
# Upstream page records
# ============================================================================

@dataclass
class HeadingRecord:
    """A heading extracted from a crawled page."""
    level: int
    text: str


@dataclass
class PageRecord:
    """A crawled page as produced by the upstream extractor."""
    url: str = ""
    title: Optional[str] = None
    meta_description: Optional[str] = None
    headings: list[HeadingRecord] = field(default_factory=list)
    paragraphs: list[str] = field(default_factory=list)
    word_count: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "PageRecord":
        """
        Build a PageRecord from a loosely-typed dict.

        Accepts both camelCase and snake_case keys. Fields with the wrong
        type are dropped rather than rejected.
        """
        if isinstance(data, PageRecord):
            return data
        if not isinstance(data, dict):
            return cls()

        def _text(value: Any) -> Optional[str]:
            return value if isinstance(value, str) else None

        headings: list[HeadingRecord] = []
        for heading in data.get("headings") or []:
            if isinstance(heading, HeadingRecord):
                headings.append(heading)
            elif isinstance(heading, dict):
                level = heading.get("level")
                text = heading.get("text")
                if isinstance(level, str) and level.lower().startswith("h"):
                    level = level[1:]
                try:
                    level = int(level)
                except (TypeError, ValueError):
                    continue
                if isinstance(text, str):
                    headings.append(HeadingRecord(level=level, text=text))

        paragraphs = [p for p in (data.get("paragraphs") or []) if isinstance(p, str)]

        word_count = data.get("wordCount", data.get("word_count", 0))
        if not isinstance(word_count, int):
            word_count = 0

        return cls(
            url=_text(data.get("url")) or "",
            title=_text(data.get("title")),
            meta_description=_text(
                data.get("metaDescription", data.get("meta_description"))
            ),
            headings=headings,
            paragraphs=paragraphs,
            word_count=word_count,
        )


# ============================================================================
# Content items and extraction output
# ============================================================================

@dataclass(frozen=True)
class ContentItem:
    """A sanitized piece of page content tagged with its provenance."""
    content: str
    url: str
    page_index: int


@dataclass
class ExtractedContent:
    """All content items extracted from a crawl, split by type."""
    titles: list[ContentItem] = field(default_factory=list)
    descriptions: list[ContentItem] = field(default_factory=list)
    headings: dict[str, list[ContentItem]] = field(
        default_factory=lambda: {level: [] for level in HEADING_LEVELS}
    )
    paragraphs: list[ContentItem] = field(default_factory=list)
    total_pages: int = 0


@dataclass
class ContentStats:
    """Volume statistics used for sampling and budgeting decisions."""
    total_items: int = 0
    average_length: int = 0
    estimated_tokens: int = 0
    complexity: str = "low"  # "low", "medium", "high"


# ============================================================================
# Duplicate detection
# ============================================================================

@dataclass
class ContentGroup:
    """A transient group of similar items produced by one detector tier."""
    representative_content: str
    items: list[ContentItem]
    similarity: int


@dataclass
class DuplicateItem:
    """A duplicate group as it appears in the report."""
    content: str
    urls: list[str]
    similarity_score: int
    impact_level: ImpactLevel
    priority: Optional[int] = None
    root_cause: Optional[str] = None
    improvement_strategy: Optional[str] = None
    duplication_type: Optional[str] = None  # "exact", "fuzzy", "semantic", "model", "template"
    # Winning (batch rank, value) per enriched field; never serialized
    enrichment_sources: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def to_dict(self) -> dict:
        """Serialize to the camelCase wire shape."""
        data: dict[str, Any] = {
            "content": self.content,
            "urls": list(self.urls),
            "similarityScore": self.similarity_score,
            "impactLevel": self.impact_level.value,
        }
        if self.priority is not None:
            data["priority"] = self.priority
        if self.root_cause is not None:
            data["rootCause"] = self.root_cause
        if self.improvement_strategy is not None:
            data["improvementStrategy"] = self.improvement_strategy
        if self.duplication_type is not None:
            data["duplicationType"] = self.duplication_type
        return data


@dataclass
class DetectionStats:
    """Number of groups found by each detector tier."""
    exact_matches: int = 0
    fuzzy_matches: int = 0
    semantic_matches: int = 0


@dataclass
class DuplicateAnalysisResult:
    """Output of the similarity detector for one content type."""
    duplicate_groups: list[DuplicateItem] = field(default_factory=list)
    duplicate_count: int = 0
    total_analyzed: int = 0
    examples: list[str] = field(default_factory=list)
    stats: DetectionStats = field(default_factory=DetectionStats)


# ============================================================================
# Sampling
# ============================================================================

@dataclass(frozen=True)
class SamplingStrategy:
    """Sampling decision for one content type."""
    method: SamplingMethod
    sample_size: int
    reason: str
    preserve_exact_duplicates: bool = True


@dataclass
class SamplingResult:
    """A sample plus the excluded remainder and a self-assessment."""
    sampled: list[ContentItem]
    excluded: list[ContentItem]
    representativeness: int
    strategy: SamplingStrategy
    insights: list[str] = field(default_factory=list)
    centroids: list[ContentItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "method": self.strategy.method.value,
            "sampleSize": self.strategy.sample_size,
            "reason": self.strategy.reason,
            "sampled": len(self.sampled),
            "excluded": len(self.excluded),
            "representativeness": self.representativeness,
            "insights": list(self.insights),
        }


# ============================================================================
# Report
# ============================================================================

@dataclass
class RepetitionSection:
    """Duplication findings for a single content type."""
    repetitive_count: int = 0
    total_count: int = 0
    examples: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    duplicate_groups: list[DuplicateItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "repetitiveCount": self.repetitive_count,
            "totalCount": self.total_count,
            "examples": list(self.examples),
            "recommendations": list(self.recommendations),
            "duplicateGroups": [g.to_dict() for g in self.duplicate_groups],
        }


@dataclass
class HeadingRepetitionSection(RepetitionSection):
    """Heading findings with a per-level breakdown."""
    by_level: dict[str, list[DuplicateItem]] = field(
        default_factory=lambda: {level: [] for level in HEADING_LEVELS}
    )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["byLevel"] = {
            level: [g.to_dict() for g in self.by_level.get(level, [])]
            for level in HEADING_LEVELS
        }
        return data


@dataclass
class ContentDuplicationAnalysis:
    """The final duplication report for one analysis run."""
    title_repetition: RepetitionSection = field(default_factory=RepetitionSection)
    description_repetition: RepetitionSection = field(default_factory=RepetitionSection)
    heading_repetition: HeadingRepetitionSection = field(
        default_factory=HeadingRepetitionSection
    )
    paragraph_repetition: RepetitionSection = field(default_factory=RepetitionSection)
    overall_recommendations: list[str] = field(default_factory=list)

    def section_for(self, content_type: ContentType) -> RepetitionSection:
        """Return the report section for a content type."""
        return {
            ContentType.TITLES: self.title_repetition,
            ContentType.DESCRIPTIONS: self.description_repetition,
            ContentType.HEADINGS: self.heading_repetition,
            ContentType.PARAGRAPHS: self.paragraph_repetition,
        }[content_type]

    @property
    def total_duplicates(self) -> int:
        return (
            self.title_repetition.repetitive_count
            + self.description_repetition.repetitive_count
            + self.heading_repetition.repetitive_count
            + self.paragraph_repetition.repetitive_count
        )

    def to_dict(self) -> dict:
        return {
            "titleRepetition": self.title_repetition.to_dict(),
            "descriptionRepetition": self.description_repetition.to_dict(),
            "headingRepetition": self.heading_repetition.to_dict(),
            "paragraphRepetition": self.paragraph_repetition.to_dict(),
            "overallRecommendations": list(self.overall_recommendations),
        }


@dataclass
class PerformanceStats:
    """Run-level statistics returned alongside the report."""
    total_processing_time: float = 0.0  # seconds
    tokens_used: int = 0
    sampling_stats: dict[str, SamplingResult] = field(default_factory=dict)
    ai_calls_made: int = 0
    failed_batches: int = 0
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "totalProcessingTime": round(self.total_processing_time, 3),
            "tokensUsed": self.tokens_used,
            "samplingStats": {k: v.to_dict() for k, v in self.sampling_stats.items()},
            "aiCallsMade": self.ai_calls_made,
            "failedBatches": self.failed_batches,
            "cancelled": self.cancelled,
        }


@dataclass
class ProcessingResult:
    """Report plus performance statistics."""
    analysis: ContentDuplicationAnalysis
    performance: PerformanceStats

    def to_dict(self) -> dict:
        return {
            "analysis": self.analysis.to_dict(),
            "performance": self.performance.to_dict(),
        }


# ============================================================================
# Keyword repetition
# ============================================================================

@dataclass
class KeywordDensityItem:
    """A keyword whose density suggests over-optimization."""
    keyword: str
    density: float
    occurrences: int
    impact_level: ImpactLevel
    affected_pages: list[str] = field(default_factory=list)
    improvement_strategy: str = ""
    alternatives: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "keyword": self.keyword,
            "density": self.density,
            "occurrences": self.occurrences,
            "impactLevel": self.impact_level.value,
            "affectedPages": list(self.affected_pages),
            "improvementStrategy": self.improvement_strategy,
            "alternatives": list(self.alternatives),
        }


@dataclass
class KeywordOpportunity:
    """A suggested improvement to the site's keyword strategy."""
    suggestion: str
    benefit: str
    implementation: str


@dataclass
class KeywordRepetitionAnalysis:
    """Keyword density and stuffing report for a crawl."""
    health_score: int = 100
    issues: int = 0
    health_recommendations: list[str] = field(default_factory=list)
    top_problematic_keywords: list[KeywordDensityItem] = field(default_factory=list)
    repetitive_count: int = 0
    total_analyzed: int = 0
    pattern_examples: list[str] = field(default_factory=list)
    pattern_recommendations: list[str] = field(default_factory=list)
    affected_pages: int = 0
    severity_level: ImpactLevel = ImpactLevel.LOW
    improvement_areas: list[str] = field(default_factory=list)
    opportunities: list[KeywordOpportunity] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "overallKeywordHealth": {
                "score": self.health_score,
                "issues": self.issues,
                "recommendations": list(self.health_recommendations),
            },
            "topProblematicKeywords": [k.to_dict() for k in self.top_problematic_keywords],
            "siteWidePatterns": {
                "repetitiveCount": self.repetitive_count,
                "totalAnalyzed": self.total_analyzed,
                "examples": list(self.pattern_examples),
                "recommendations": list(self.pattern_recommendations),
            },
            "readabilityImpact": {
                "affectedPages": self.affected_pages,
                "severityLevel": self.severity_level.value,
                "improvementAreas": list(self.improvement_areas),
            },
            "keywordOpportunities": [
                {
                    "suggestion": o.suggestion,
                    "benefit": o.benefit,
                    "implementation": o.implementation,
                }
                for o in self.opportunities
            ],
        }


# ============================================================================
# Pipeline events
# ============================================================================

@dataclass
class PipelineEvent:
    """A structured progress notification emitted by the orchestrator."""
    kind: str  # "run_started", "type_started", "batch_completed", ...
    content_type: Optional[str] = None
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
