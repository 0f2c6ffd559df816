"""
Hierarchical processing pipeline.

Orchestrates content analysis in SEO-impact order:
titles -> descriptions -> H1 headings -> paragraphs, then H2-H6 when
budget allows. Each content type is sampled, run through rule-based
detection, optionally enriched by the model, and written to the report.
"""

import copy
import logging
import threading
import time
from typing import Any, Callable, Iterable, Optional, Union

from .cache import AnalysisCache
from .config import AnalysisConfig
from .enrichment import EnrichmentOutcome, EnrichmentRunner
from .extractor import calculate_content_stats, extract_page_content
from .llm_client import LLMClient
from .models import (
    HEADING_LEVELS,
    ContentDuplicationAnalysis,
    ContentItem,
    ContentType,
    DuplicateItem,
    ExtractedContent,
    PageRecord,
    PerformanceStats,
    PipelineEvent,
    ProcessingResult,
    RepetitionSection,
    StageState,
)
from .sampling import determine_sampling_strategy, sample_content
from .similarity import MAX_EXAMPLES, detect_duplicates
from .text_utils import round_score
from .token_budget import RESERVED_PROMPT_TOKENS, TokenBudget

logger = logging.getLogger(__name__)

MAX_HEADING_EXAMPLES = 10

# Enrichment needs room for at least the prompt scaffolding
MIN_ENRICHMENT_TOKENS = RESERVED_PROMPT_TOKENS

ENRICHMENT_UNAVAILABLE_NOTE = (
    "AI enrichment unavailable - showing basic rule-based analysis"
)

PageInput = Union[ExtractedContent, Iterable[Union[PageRecord, dict[str, Any]]]]


class HierarchicalOrchestrator:
    """
    Drives one analysis run over all content types.

    Each call to ``run`` gets a fresh token budget and a fresh report. The
    cache, when injected, outlives runs; otherwise every orchestrator owns
    its own.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        llm_client: Optional[LLMClient] = None,
        on_event: Optional[Callable[[PipelineEvent], None]] = None,
        cache: Optional[AnalysisCache] = None,
    ):
        self.config = config or AnalysisConfig()
        self.llm_client = llm_client
        self.on_event = on_event
        self.cache = cache if cache is not None else AnalysisCache(self.config.cache_size)
        self.stage_states: dict[str, StageState] = {}
        self._enrichment_missed = False
        self._budget_announced = False

    def run(
        self,
        pages_or_extracted: PageInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> ProcessingResult:
        """
        Analyze a crawl.

        Args:
            pages_or_extracted: Page records, or content already extracted.
            cancel_event: Cooperative cancellation signal, checked between
                content types and between batch dispatches.

        Returns:
            ProcessingResult with the report and performance statistics.
        """
        start_time = time.perf_counter()

        if isinstance(pages_or_extracted, ExtractedContent):
            extracted = pages_or_extracted
        else:
            extracted = extract_page_content(pages_or_extracted)

        budget = TokenBudget(self.config.max_total_tokens)
        analysis = ContentDuplicationAnalysis()
        performance = PerformanceStats()
        self.stage_states = {}
        self._enrichment_missed = False
        self._budget_announced = False

        self._emit(
            "run_started",
            message=f"Analyzing {extracted.total_pages} pages with {budget.available_tokens} tokens",
            pages=extracted.total_pages,
            budget=budget.available_tokens,
        )

        steps = [
            (ContentType.TITLES, extracted.titles),
            (ContentType.DESCRIPTIONS, extracted.descriptions),
            (ContentType.HEADINGS, extracted.headings.get("h1", [])),
            (ContentType.PARAGRAPHS, extracted.paragraphs),
        ]

        for content_type, items in steps:
            if _is_cancelled(cancel_event):
                logger.info(f"Run cancelled before {content_type.value}")
                performance.cancelled = True
                break
            self._process_type(content_type, items, budget, analysis, performance, cancel_event)

        if (
            not performance.cancelled
            and budget.available_tokens > self.config.remaining_headings_min_tokens
        ):
            self._process_remaining_headings(extracted, analysis, cancel_event, performance)

        analysis.overall_recommendations = generate_overall_recommendations(
            analysis, extracted.total_pages
        )
        if self._enrichment_missed:
            analysis.overall_recommendations.append(ENRICHMENT_UNAVAILABLE_NOTE)

        performance.tokens_used = budget.tokens_used
        performance.total_processing_time = time.perf_counter() - start_time

        self._emit(
            "run_completed",
            message=(
                f"Found {analysis.total_duplicates} duplicates in "
                f"{performance.total_processing_time:.2f}s using {performance.tokens_used} tokens"
            ),
            duplicates=analysis.total_duplicates,
            tokens_used=performance.tokens_used,
            ai_calls_made=performance.ai_calls_made,
            cancelled=performance.cancelled,
        )

        return ProcessingResult(analysis=analysis, performance=performance)

    def _process_type(
        self,
        content_type: ContentType,
        items: list[ContentItem],
        budget: TokenBudget,
        analysis: ContentDuplicationAnalysis,
        performance: PerformanceStats,
        cancel_event: Optional[threading.Event],
    ) -> None:
        """Sample, detect, enrich and record one content type."""
        type_name = content_type.value
        self._advance(content_type, StageState.PENDING)
        self._emit("type_started", type_name, f"Processing {type_name} ({len(items)} items)", items=len(items))

        try:
            groups: list[DuplicateItem] = []
            total_analyzed = 0
            exact_matches = 0

            if items:
                stats = calculate_content_stats(items)
                strategy = determine_sampling_strategy(stats, len(items))
                sampling = sample_content(items, strategy, content_type)
                performance.sampling_stats[type_name] = sampling
                self._advance(content_type, StageState.SAMPLED)
                logger.info(
                    f"{type_name}: sampled {len(sampling.sampled)}/{len(items)} items "
                    f"({sampling.representativeness}% representative)"
                )

                detection = detect_duplicates(sampling.sampled, self.config.similarity_for(content_type))
                self._advance(content_type, StageState.RULE_DETECTED)
                groups = detection.duplicate_groups
                total_analyzed = detection.total_analyzed
                exact_matches = detection.stats.exact_matches

                groups = self._maybe_enrich(
                    content_type, sampling.sampled, groups, budget, performance, cancel_event
                )
            else:
                self._advance(content_type, StageState.SKIPPED)

            section = analysis.section_for(content_type)
            _fill_section(section, groups, total_analyzed)
            section.recommendations = generate_type_recommendations(
                content_type, section.repetitive_count, len(groups), exact_matches
            )
            if content_type == ContentType.HEADINGS:
                analysis.heading_repetition.by_level["h1"] = list(groups)
            self._advance(content_type, StageState.MERGED)
            self._advance(content_type, StageState.DONE)

            self._emit(
                "type_completed", type_name,
                f"Completed {type_name}: {len(groups)} duplicate groups found",
                groups=len(groups),
                duplicates=section.repetitive_count,
            )
        except Exception as e:
            logger.error(f"Error processing {type_name}: {e}")
            self._emit("type_failed", type_name, str(e))

    def _maybe_enrich(
        self,
        content_type: ContentType,
        sampled: list[ContentItem],
        groups: list[DuplicateItem],
        budget: TokenBudget,
        performance: PerformanceStats,
        cancel_event: Optional[threading.Event],
    ) -> list[DuplicateItem]:
        """Run enrichment when allowed; any failure keeps the rule-based groups."""
        if not (self.config.use_ai_analysis and groups):
            self._advance(content_type, StageState.SKIPPED)
            return groups

        if budget.available_tokens <= MIN_ENRICHMENT_TOKENS:
            self._advance(content_type, StageState.SKIPPED)
            if not self._budget_announced:
                self._budget_announced = True
                self._emit(
                    "budget_exhausted", content_type.value,
                    f"Token budget exhausted, {content_type.value} and later types use rule-based results",
                    available=budget.available_tokens,
                )
            return groups

        if self.llm_client is None:
            self._advance(content_type, StageState.SKIPPED)
            self._enrichment_missed = True
            return groups

        working = copy.deepcopy(groups)
        runner = EnrichmentRunner(
            self.llm_client, self.config, cache=self.cache, on_event=self._dispatch
        )
        try:
            outcome: EnrichmentOutcome = runner.enrich(
                content_type, sampled, working, budget, cancel_event
            )
            if (
                self.config.enable_template_detection
                and not outcome.cancelled
                and not _is_cancelled(cancel_event)
                and budget.available_tokens > MIN_ENRICHMENT_TOKENS
            ):
                outcome.absorb(runner.detect_templates(
                    content_type, sampled, working, budget, cancel_event
                ))
        except Exception as e:
            logger.warning(f"AI analysis failed for {content_type.value}, using rule-based results only: {e}")
            self._advance(content_type, StageState.SKIPPED)
            return groups

        performance.ai_calls_made += outcome.calls_made
        performance.failed_batches += outcome.failed_batches
        if outcome.cancelled:
            performance.cancelled = True
        if outcome.budget_exhausted:
            self._budget_announced = True
        if outcome.all_failed:
            self._enrichment_missed = True

        self._advance(content_type, StageState.ENRICHED)
        return working

    def _process_remaining_headings(
        self,
        extracted: ExtractedContent,
        analysis: ContentDuplicationAnalysis,
        cancel_event: Optional[threading.Event],
        performance: PerformanceStats,
    ) -> None:
        """Rule-based detection for H2-H6, folded into the heading section."""
        section = analysis.heading_repetition
        logger.info(f"Processing remaining heading levels with {len(section.examples)} existing examples")

        for level in HEADING_LEVELS[1:]:
            if _is_cancelled(cancel_event):
                performance.cancelled = True
                break
            items = extracted.headings.get(level, [])
            if not items:
                continue

            try:
                detection = detect_duplicates(items, self.config.similarity_for(ContentType.HEADINGS))
            except Exception as e:
                logger.error(f"Error processing {level} headings: {e}")
                continue

            section.by_level[level] = detection.duplicate_groups
            section.repetitive_count += detection.duplicate_count
            section.total_count += detection.total_analyzed
            section.examples = _unique(section.examples + detection.examples)[:MAX_HEADING_EXAMPLES]
            logger.info(f"Processed {level}: {len(detection.duplicate_groups)} duplicate groups")

        group_count = sum(len(groups) for groups in section.by_level.values())
        section.recommendations = generate_type_recommendations(
            ContentType.HEADINGS,
            section.repetitive_count,
            group_count,
            sum(1 for g in section.by_level.get("h1", []) if g.duplication_type == "exact"),
        )

    def _advance(self, content_type: ContentType, state: StageState) -> None:
        self.stage_states[content_type.value] = state
        logger.debug(f"{content_type.value} -> {state.value}")

    def _emit(
        self,
        kind: str,
        content_type: Optional[str] = None,
        message: str = "",
        **details,
    ) -> None:
        self._dispatch(PipelineEvent(kind=kind, content_type=content_type, message=message, details=details))

    def _dispatch(self, event: PipelineEvent) -> None:
        """Log an event and hand it to the callback, which may not break the run."""
        if event.kind in ("type_failed", "batch_failed"):
            logger.warning(f"[{event.kind}] {event.message}")
        else:
            logger.info(f"[{event.kind}] {event.message}")

        if self.on_event is None:
            return
        try:
            self.on_event(event)
        except Exception as e:
            logger.warning(f"Event callback failed for {event.kind}: {e}")


def _is_cancelled(cancel_event: Optional[threading.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _fill_section(section: RepetitionSection, groups: list[DuplicateItem], total_analyzed: int) -> None:
    section.duplicate_groups = list(groups)
    section.repetitive_count = sum(len(group.urls) - 1 for group in groups)
    section.total_count = total_analyzed
    section.examples = [g.content for g in groups[:MAX_EXAMPLES] if g.content.strip()]


# ============================================================================
# Recommendations
# ============================================================================

def generate_type_recommendations(
    content_type: ContentType,
    duplicate_count: int,
    group_count: int,
    exact_matches: int = 0,
) -> list[str]:
    """Recommendations for one content type's section."""
    type_name = content_type.value

    if duplicate_count == 0:
        return [f"Excellent! No duplicate {type_name} detected."]

    recommendations = [f"Found {duplicate_count} duplicate {type_name} across {group_count} groups"]

    if content_type == ContentType.TITLES:
        recommendations.append("Create unique, descriptive titles for each page")
        recommendations.append("Include target keywords relevant to page content")
        if exact_matches > 0:
            recommendations.append("Fix exact title duplicates immediately - these hurt SEO significantly")
    elif content_type == ContentType.DESCRIPTIONS:
        recommendations.append("Write unique meta descriptions (150-160 characters) for each page")
        recommendations.append("Focus on compelling copy that encourages clicks")
    elif content_type == ContentType.HEADINGS:
        recommendations.append("Use descriptive headings that clearly indicate section content")
        recommendations.append("Maintain proper heading hierarchy (H1 → H2 → H3)")
    elif content_type == ContentType.PARAGRAPHS:
        recommendations.append("Ensure each page provides unique value to users")
        recommendations.append("Remove or differentiate boilerplate content")

    return recommendations


def generate_overall_recommendations(
    analysis: ContentDuplicationAnalysis,
    total_pages: int,
) -> list[str]:
    """Site-level recommendations ordered by SEO impact."""
    total_duplicates = analysis.total_duplicates

    if total_duplicates == 0:
        return [f"Excellent content uniqueness across all {total_pages} pages!"]

    recommendations = []
    titles = analysis.title_repetition.repetitive_count
    descriptions = analysis.description_repetition.repetitive_count
    headings = analysis.heading_repetition.repetitive_count

    if titles > 0:
        recommendations.append(f"🔥 CRITICAL: Fix {titles} duplicate titles first - highest SEO impact")
    if descriptions > 0:
        recommendations.append(
            f"⚡ HIGH: Address {descriptions} duplicate meta descriptions - affects click-through rates"
        )
    if headings > 0:
        recommendations.append(
            f"📋 MEDIUM: Review {headings} duplicate headings - improve content structure"
        )

    duplicate_ratio = total_duplicates / total_pages * 100 if total_pages else 0.0
    if duplicate_ratio > 30:
        recommendations.append("Consider implementing template-based content generation with unique variables")
    elif duplicate_ratio > 15:
        recommendations.append("Focus on making landing pages and product pages more distinctive")

    recommendations.append(
        f"Overall: {total_duplicates} content issues found across {total_pages} pages "
        f"({round_score(duplicate_ratio)}% duplication rate)"
    )
    return recommendations


# ============================================================================
# Entry points
# ============================================================================

def analyze_content_duplication_with_stats(
    pages: PageInput,
    config: Optional[AnalysisConfig] = None,
    llm_client: Optional[LLMClient] = None,
    on_event: Optional[Callable[[PipelineEvent], None]] = None,
    cancel_event: Optional[threading.Event] = None,
    cache: Optional[AnalysisCache] = None,
) -> ProcessingResult:
    """
    Analyze content duplication and return the report with run statistics.

    Args:
        pages: Page records or pre-extracted content.
        config: Analysis configuration (defaults apply when None).
        llm_client: Client for model enrichment. None means rule-based only.
        on_event: Optional progress callback.
        cancel_event: Optional cancellation signal.
        cache: Optional long-lived enrichment cache.

    Returns:
        ProcessingResult.
    """
    orchestrator = HierarchicalOrchestrator(
        config=config, llm_client=llm_client, on_event=on_event, cache=cache
    )
    return orchestrator.run(pages, cancel_event=cancel_event)


def analyze_content_duplication(
    pages: PageInput,
    config: Optional[AnalysisConfig] = None,
    llm_client: Optional[LLMClient] = None,
) -> ContentDuplicationAnalysis:
    """Analyze content duplication and return just the report."""
    return analyze_content_duplication_with_stats(pages, config, llm_client).analysis
