"""
SEO Content Audit

Content duplication and keyword quality analysis for crawled websites:
- Detects exact, fuzzy and semantic duplicates across pages
- Samples large sites to stay within a fixed model token budget
- Enriches findings with model-generated root causes and strategies
"""

__version__ = "1.0.0"
__author__ = "SEO Content Audit Team"

from .config import AnalysisConfig

from .models import (
    ContentType,
    ImpactLevel,
    SamplingMethod,
    StageState,
    PageRecord,
    HeadingRecord,
    ContentItem,
    ExtractedContent,
    DuplicateItem,
    SamplingStrategy,
    SamplingResult,
    RepetitionSection,
    HeadingRepetitionSection,
    ContentDuplicationAnalysis,
    PerformanceStats,
    ProcessingResult,
    PipelineEvent,
    KeywordRepetitionAnalysis,
)

from .extractor import extract_page_content, calculate_content_stats

from .similarity import (
    SimilarityOptions,
    DEFAULT_SIMILARITY_OPTIONS,
    detect_duplicates,
)

from .sampling import determine_sampling_strategy, sample_content

from .token_budget import (
    TokenBudget,
    AnalysisBatch,
    estimate_token_usage,
    create_analysis_batches,
)

from .llm_client import LLMClient, LLMClientError, create_llm_client

from .enrichment import (
    EnrichmentParseError,
    EnrichmentRunner,
    EnrichmentOutcome,
    parse_enrichment_response,
    parse_template_response,
    merge_enrichment,
)

from .cache import AnalysisCache

# Pipeline entry points
from .orchestrator import (
    HierarchicalOrchestrator,
    analyze_content_duplication,
    analyze_content_duplication_with_stats,
)

from .keyword_repetition import analyze_keyword_repetition

__all__ = [
    # Configuration
    "AnalysisConfig",
    # Models
    "ContentType",
    "ImpactLevel",
    "SamplingMethod",
    "StageState",
    "PageRecord",
    "HeadingRecord",
    "ContentItem",
    "ExtractedContent",
    "DuplicateItem",
    "SamplingStrategy",
    "SamplingResult",
    "RepetitionSection",
    "HeadingRepetitionSection",
    "ContentDuplicationAnalysis",
    "PerformanceStats",
    "ProcessingResult",
    "PipelineEvent",
    "KeywordRepetitionAnalysis",
    # Extraction
    "extract_page_content",
    "calculate_content_stats",
    # Detection
    "SimilarityOptions",
    "DEFAULT_SIMILARITY_OPTIONS",
    "detect_duplicates",
    # Sampling
    "determine_sampling_strategy",
    "sample_content",
    # Budget
    "TokenBudget",
    "AnalysisBatch",
    "estimate_token_usage",
    "create_analysis_batches",
    # LLM
    "LLMClient",
    "LLMClientError",
    "create_llm_client",
    # Enrichment
    "EnrichmentParseError",
    "EnrichmentRunner",
    "EnrichmentOutcome",
    "parse_enrichment_response",
    "parse_template_response",
    "merge_enrichment",
    "AnalysisCache",
    # Pipeline
    "HierarchicalOrchestrator",
    "analyze_content_duplication",
    "analyze_content_duplication_with_stats",
    "analyze_keyword_repetition",
]
