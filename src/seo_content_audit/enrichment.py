"""
Model-assisted enrichment of duplicate findings.

Rule-based groups are sent to the model in small batches. The model adds
root causes and improvement strategies, may re-grade impact, and may point
out duplicates the rules missed. Every response is validated against a
schema before it touches the report; anything malformed is discarded and
the rule-based findings stand.
"""

import hashlib
import json
import logging
import math
import re
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from .cache import AnalysisCache
from .config import AnalysisConfig
from .extractor import calculate_content_stats
from .llm_client import LLMClient, LLMClientError
from .models import ContentItem, ContentType, DuplicateItem, ImpactLevel, PipelineEvent
from .text_utils import dedupe_urls, normalize_content, normalize_url, round_score
from .token_budget import (
    AnalysisBatch,
    TokenBudget,
    batch_token_limit,
    create_analysis_batches,
)

logger = logging.getLogger(__name__)

MAX_PROMPT_ITEMS = 10
MAX_PROMPT_CONTENT_LENGTH = 200

# Template detection: cost-capped at two batches of up to 15 items
MIN_TEMPLATE_ITEMS = 3
MAX_TEMPLATE_PROMPT_ITEMS = 15
MAX_TEMPLATE_BATCHES = 2
TEMPLATE_SIMILARITY_SCORE = 85

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_PERCENT_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*%?\s*$")


class EnrichmentParseError(Exception):
    """Raised when a model response is not valid enrichment JSON."""
    pass


# ============================================================================
# Response schemas
# ============================================================================

class EnrichmentGroupSchema(BaseModel):
    """One duplicate group as reported by the model."""

    content: str = Field(min_length=1)
    affected_urls: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("affected_urls", "urls"),
    )
    similarity_score: Optional[int] = Field(default=None, ge=0, le=100)
    impact_level: Optional[ImpactLevel] = None
    root_cause: Optional[str] = None
    improvement_strategy: Optional[str] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must be non-empty")
        return v.strip()

    @field_validator("affected_urls", mode="before")
    @classmethod
    def urls_are_strings(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [url for url in v if isinstance(url, str) and url.strip()]
        return v

    @field_validator("similarity_score", mode="before")
    @classmethod
    def coerce_percentage(cls, v: Any) -> Any:
        """Accept 95, 95.4 and "95%"."""
        if v is None or isinstance(v, bool):
            return v
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError(f"not a finite percentage: {v!r}")
            return round_score(v)
        if isinstance(v, str):
            match = _PERCENT_RE.match(v)
            if not match:
                raise ValueError(f"not a percentage: {v!r}")
            return round_score(float(match.group(1)))
        return v

    @field_validator("impact_level", mode="before")
    @classmethod
    def parse_impact_level(cls, v: Any) -> Any:
        if v is None or isinstance(v, ImpactLevel):
            return v
        level = ImpactLevel.parse(v)
        if level is None:
            raise ValueError(f"unknown impact level: {v!r}")
        return level


class EnrichmentResponseSchema(BaseModel):
    """Top-level enrichment response."""

    duplicate_groups: list[EnrichmentGroupSchema] = Field(
        default_factory=list,
        validation_alias=AliasChoices("duplicate_groups", "duplicates"),
    )
    summary: Optional[str] = None


class TemplateInstanceSchema(BaseModel):
    """One page following a template pattern."""

    content: str = ""
    url: str = Field(min_length=1)


class TemplatePatternSchema(BaseModel):
    """A template such as "Services in [LOCATION]" and the pages using it."""

    pattern: str = Field(min_length=1)
    variables: list[str]
    instances: list[TemplateInstanceSchema]
    business_impact: Optional[ImpactLevel] = Field(
        default=None,
        validation_alias=AliasChoices("business_impact", "businessImpact"),
    )
    recommendation: str

    @field_validator("pattern")
    @classmethod
    def pattern_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("pattern must be non-empty")
        return v.strip()

    @field_validator("business_impact", mode="before")
    @classmethod
    def parse_business_impact(cls, v: Any) -> Any:
        """Unknown grades fall back to Low rather than failing the reply."""
        if v is None or isinstance(v, ImpactLevel):
            return v
        return ImpactLevel.parse(v) or ImpactLevel.LOW


class TemplateResponseSchema(BaseModel):
    """Top-level template-detection response."""

    patterns: list[TemplatePatternSchema] = Field(default_factory=list)


def extract_json_object(text: str) -> dict:
    """
    Pull the outermost JSON object out of a model reply.

    Tolerates prose or a fenced code block around the object.

    Raises:
        EnrichmentParseError: If no JSON object can be decoded.
    """
    if not isinstance(text, str) or not text.strip():
        raise EnrichmentParseError("Empty model response")

    match = _JSON_OBJECT_RE.search(text)
    if not match:
        raise EnrichmentParseError("No JSON object found in model response")

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise EnrichmentParseError(f"Invalid JSON in model response: {e}")

    if not isinstance(data, dict):
        raise EnrichmentParseError("Model response JSON is not an object")
    return data


def parse_enrichment_response(text: str) -> EnrichmentResponseSchema:
    """
    Parse and validate a duplicate-analysis reply.

    Args:
        text: Raw model output.

    Returns:
        Validated EnrichmentResponseSchema.

    Raises:
        EnrichmentParseError: On malformed JSON or any schema violation.
    """
    data = extract_json_object(text)
    try:
        return EnrichmentResponseSchema.model_validate(data)
    except ValidationError as e:
        raise EnrichmentParseError(
            f"Model response failed validation ({e.error_count()} errors)"
        )


def parse_template_response(text: str) -> TemplateResponseSchema:
    """Parse and validate a template-detection reply.

    Raises:
        EnrichmentParseError: On malformed JSON or any schema violation.
    """
    data = extract_json_object(text)
    try:
        return TemplateResponseSchema.model_validate(data)
    except ValidationError as e:
        raise EnrichmentParseError(
            f"Template response failed validation ({e.error_count()} errors)"
        )


def template_findings(patterns: list[TemplatePatternSchema]) -> list[EnrichmentGroupSchema]:
    """Express template patterns as duplicate findings, one per pattern."""
    findings = []
    for pattern in patterns:
        findings.append(EnrichmentGroupSchema(
            content=pattern.pattern,
            affected_urls=[instance.url for instance in pattern.instances],
            similarity_score=TEMPLATE_SIMILARITY_SCORE,
            impact_level=pattern.business_impact or ImpactLevel.LOW,
            root_cause=f"Template pattern detected: {pattern.pattern}",
            improvement_strategy=pattern.recommendation or None,
        ))
    return findings


# ============================================================================
# Merge
# ============================================================================

APPENDED_TYPES = ("model", "template")


def merge_enrichment(
    groups: list[DuplicateItem],
    enriched: list[EnrichmentGroupSchema],
    rank: int = 0,
    duplication_type: str = "model",
) -> list[DuplicateItem]:
    """
    Fold model findings into rule-based groups, in place.

    Groups are matched on normalized content. A matched group picks up the
    model's root cause and strategy, and its impact level when the model
    gave one. Unmatched model groups covering at least two pages are
    appended after the rule-based groups, ordered by normalized content.

    Conflicts resolve the same way whatever order batches arrive in: the
    most severe model impact wins, and text fields come from the lowest
    ``rank`` that supplied them (ties go to the smaller string). Applying
    the same findings twice changes nothing.

    Args:
        groups: Rule-based groups (mutated).
        enriched: Validated model groups.
        rank: Precedence of the supplying batch, lower wins.
        duplication_type: Type recorded on appended groups.

    Returns:
        The same ``groups`` list.
    """
    by_key: dict[str, DuplicateItem] = {}
    for group in groups:
        if group.content:
            by_key.setdefault(normalize_content(group.content), group)

    for model_group in enriched:
        key = normalize_content(model_group.content)
        if not key:
            continue

        existing = by_key.get(key)
        if existing is None:
            urls = dedupe_urls(sorted(model_group.affected_urls))
            if len(urls) < 2:
                logger.debug(f"Ignoring model group with {len(urls)} distinct page(s)")
                continue
            impact = ImpactLevel.from_url_count(len(urls))
            existing = DuplicateItem(
                content=model_group.content,
                urls=urls,
                similarity_score=model_group.similarity_score or 0,
                impact_level=impact,
                priority=impact.priority,
                duplication_type=duplication_type,
            )
            groups.append(existing)
            by_key[key] = existing
        elif existing.duplication_type in APPENDED_TYPES:
            _widen_appended_group(existing, model_group)

        _apply_findings(existing, model_group, rank)

    rule_groups = [g for g in groups if g.duplication_type not in APPENDED_TYPES]
    appended = [g for g in groups if g.duplication_type in APPENDED_TYPES]
    appended.sort(key=lambda g: normalize_content(g.content))
    groups[:] = rule_groups + appended
    return groups


def _prefer(current: Optional[tuple], candidate: tuple) -> tuple:
    return candidate if current is None or candidate < current else current


def _apply_findings(group: DuplicateItem, finding: EnrichmentGroupSchema, rank: int) -> None:
    sources = group.enrichment_sources

    for name in ("root_cause", "improvement_strategy"):
        value = getattr(finding, name)
        if value:
            sources[name] = _prefer(sources.get(name), (rank, value))
            setattr(group, name, sources[name][1])

    if finding.impact_level is not None:
        current = sources.get("impact_level")
        if current is None or finding.impact_level.priority < current.priority:
            sources["impact_level"] = finding.impact_level

    impact = sources.get("impact_level")
    if impact is not None:
        group.impact_level = impact
        group.priority = impact.priority


def _widen_appended_group(group: DuplicateItem, finding: EnrichmentGroupSchema) -> None:
    """Union pages and keep the highest score when a model group is reported again."""
    group.urls = dedupe_urls(sorted(group.urls + finding.affected_urls))
    group.similarity_score = max(group.similarity_score, finding.similarity_score or 0)
    group.content = min(group.content, finding.content)
    if "impact_level" not in group.enrichment_sources:
        group.impact_level = ImpactLevel.from_url_count(len(group.urls))
        group.priority = group.impact_level.priority


# ============================================================================
# Prompts
# ============================================================================

TYPE_INSTRUCTIONS = {
    ContentType.TITLES: """TITLE ANALYSIS FOCUS:
- Page titles are CRITICAL for SEO rankings
- Each title should be unique and descriptive
- Identify template-based duplicates vs intentional similarities
- Prioritize homepage and landing page title issues""",
    ContentType.DESCRIPTIONS: """META DESCRIPTION ANALYSIS FOCUS:
- Meta descriptions affect click-through rates
- 150-160 character optimal length
- Each page needs unique, compelling descriptions
- Identify missing vs duplicate descriptions""",
    ContentType.HEADINGS: """HEADING ANALYSIS FOCUS:
- H1 tags are most important for SEO
- Heading hierarchy should be logical
- Avoid generic headings like "Welcome" or "About"
- Focus on content structure and keyword relevance""",
    ContentType.PARAGRAPHS: """CONTENT ANALYSIS FOCUS:
- Look for substantial content duplication
- Identify boilerplate text vs unique content
- Focus on content that appears across multiple pages
- Consider user experience impact""",
}


def build_system_prompt(content_type: ContentType) -> str:
    """System prompt for a duplicate-analysis call."""
    return f"""You are an expert SEO content analyst specializing in {content_type.value} optimization.
Your role is to identify content duplication issues that impact search engine rankings and user experience.
Provide strategic, actionable recommendations that prioritize the most critical SEO improvements.
Always respond in valid JSON format with detailed analysis."""


def escape_for_prompt(content: str) -> str:
    """Escape quotes and control characters, then truncate."""
    escaped = (
        content.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return escaped[:MAX_PROMPT_CONTENT_LENGTH]


def build_duplicate_prompt(batch: AnalysisBatch) -> str:
    """
    Build the user prompt for one batch.

    Lists up to MAX_PROMPT_ITEMS items as ``n. "content" → url`` and asks
    for the duplicate_groups JSON shape.
    """
    items = batch.items[:MAX_PROMPT_ITEMS]
    content_items = "\n".join(
        f'{index}. "{escape_for_prompt(item.content)}" → {item.url}'
        for index, item in enumerate(items, start=1)
    )
    type_name = batch.content_type.value
    instructions = TYPE_INSTRUCTIONS.get(
        batch.content_type, "Analyze for duplication patterns and SEO impact."
    )

    return f"""Analyze these {type_name} for duplication patterns:

CONTENT ({len(items)} items):
{content_items}

{instructions}

ANALYSIS REQUIREMENTS:
1. Identify exact matches and high similarity content (80%+ similar)
2. Group duplicates with their URLs
3. Assess SEO impact level (Critical/High/Medium/Low)
4. Provide specific improvement strategies
5. Include similarity scores

RESPONSE FORMAT:
{{
  "duplicate_groups": [
    {{
      "content": "duplicate content text",
      "affected_urls": ["url1", "url2"],
      "similarity_score": 95,
      "impact_level": "Critical",
      "improvement_strategy": "specific recommendation",
      "root_cause": "likely cause of duplication"
    }}
  ],
  "summary": "brief analysis summary"
}}

Focus on providing actionable insights for the most critical duplicates."""


def build_template_system_prompt(content_type: ContentType) -> str:
    """System prompt for a template-detection call."""
    return (
        f"You are an SEO expert analyzing {content_type.value} for template patterns. "
        "Identify content that follows similar patterns with only variable parts changing "
        "(like location names, product names, etc.). Respond only with valid JSON."
    )


def build_template_prompt(batch: AnalysisBatch) -> str:
    """User prompt asking which items share a template with variable slots."""
    items = batch.items[:MAX_TEMPLATE_PROMPT_ITEMS]
    content_items = "\n".join(
        f'{index}. "{escape_for_prompt(item.content)}" (URL: {item.url})'
        for index, item in enumerate(items, start=1)
    )

    return f"""Analyze these {batch.content_type.value} for template patterns where only variable parts change:

{content_items}

Identify patterns like:
- "Services in [CITY]" where only city names change
- "[PRODUCT] - Free Shipping" where only product names change
- "About [COMPANY]" where only company names change

Respond with JSON format:
{{
  "patterns": [
    {{
      "pattern": "Services in [LOCATION]",
      "variables": ["LOCATION"],
      "instances": [
        {{
          "content": "Services in Boston",
          "url": "example.com/boston",
          "extractedVariables": {{"LOCATION": "Boston"}}
        }}
      ],
      "businessImpact": "high|medium|low",
      "recommendation": "Specific advice for this pattern"
    }}
  ]
}}"""


# ============================================================================
# Batched runner
# ============================================================================

@dataclass
class EnrichmentOutcome:
    """What one enrichment pass did."""
    calls_made: int = 0
    tokens_used: int = 0
    failed_batches: int = 0
    cached_batches: int = 0
    cancelled: bool = False
    budget_exhausted: bool = False

    @property
    def all_failed(self) -> bool:
        """True when calls were made and none of them succeeded."""
        return self.calls_made > 0 and self.failed_batches == self.calls_made

    def absorb(self, other: "EnrichmentOutcome") -> "EnrichmentOutcome":
        """Add another pass's counts to this one."""
        self.calls_made += other.calls_made
        self.tokens_used += other.tokens_used
        self.failed_batches += other.failed_batches
        self.cached_batches += other.cached_batches
        self.cancelled = self.cancelled or other.cancelled
        self.budget_exhausted = self.budget_exhausted or other.budget_exhausted
        return self


def _duplicate_findings(text: str) -> list[EnrichmentGroupSchema]:
    return parse_enrichment_response(text).duplicate_groups


def _template_findings(text: str) -> list[EnrichmentGroupSchema]:
    return template_findings(parse_template_response(text).patterns)


@dataclass(frozen=True)
class EnrichmentPass:
    """How one kind of model call is prompted, parsed and merged."""
    name: str
    system_prompt: Callable[[ContentType], str]
    user_prompt: Callable[[AnalysisBatch], str]
    parse: Callable[[str], list[EnrichmentGroupSchema]]
    duplication_type: str = "model"


DUPLICATE_PASS = EnrichmentPass(
    "duplicates", build_system_prompt, build_duplicate_prompt, _duplicate_findings
)
TEMPLATE_PASS = EnrichmentPass(
    "templates", build_template_system_prompt, build_template_prompt, _template_findings,
    duplication_type="template",
)


def batch_cache_key(batch: AnalysisBatch) -> str:
    """Stable digest of a batch's normalized content and pages."""
    parts = sorted(
        f"{normalize_content(item.content)}\t{normalize_url(item.url)}"
        for item in batch.items
    )
    return hashlib.sha256("\n".join(parts).encode("utf-8")).hexdigest()


class EnrichmentRunner:
    """
    Dispatches enrichment batches on a bounded thread pool.

    Tokens are charged before each dispatch, so the budget never goes
    negative and a batch that cannot be afforded is never sent. Results are
    merged on the calling thread as batches complete. A batch that fails
    for any reason is recorded and skipped; the others still merge.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        config: Optional[AnalysisConfig] = None,
        cache: Optional[AnalysisCache] = None,
        on_event: Optional[Callable[[PipelineEvent], None]] = None,
    ):
        self.llm_client = llm_client
        self.config = config or AnalysisConfig()
        self.cache = cache
        self.on_event = on_event

    def enrich(
        self,
        content_type: ContentType,
        items: list[ContentItem],
        groups: list[DuplicateItem],
        budget: TokenBudget,
        cancel_event: Optional[threading.Event] = None,
    ) -> EnrichmentOutcome:
        """
        Enrich ``groups`` (in place) with model findings about ``items``.

        Args:
            content_type: Content type being analyzed.
            items: The sampled items the groups were detected in.
            groups: Rule-based groups, mutated by merging.
            budget: Shared run budget, charged per dispatched batch.
            cancel_event: Stops further dispatches when set.

        Returns:
            EnrichmentOutcome with call, token and failure counts.
        """
        outcome = EnrichmentOutcome()
        if not items or budget.is_exhausted:
            outcome.budget_exhausted = budget.is_exhausted
            return outcome

        limit = batch_token_limit(calculate_content_stats(items), budget.available_tokens)
        batches = create_analysis_batches(
            items, content_type, limit, batch_size=self.config.batch_size
        )
        logger.info(f"Enriching {content_type.value}: {len(batches)} batches, {budget.available_tokens} tokens left")

        self._run_batches(DUPLICATE_PASS, content_type, batches, groups, budget, cancel_event, outcome)
        return outcome

    def detect_templates(
        self,
        content_type: ContentType,
        items: list[ContentItem],
        groups: list[DuplicateItem],
        budget: TokenBudget,
        cancel_event: Optional[threading.Event] = None,
    ) -> EnrichmentOutcome:
        """
        Ask the model for template patterns and add them to ``groups``.

        Each pattern used on at least two pages becomes a group with
        duplication type "template". Only the first MAX_TEMPLATE_BATCHES
        batches are sent.
        """
        outcome = EnrichmentOutcome()
        if len(items) < MIN_TEMPLATE_ITEMS or budget.is_exhausted:
            outcome.budget_exhausted = budget.is_exhausted
            return outcome

        limit = batch_token_limit(calculate_content_stats(items), budget.available_tokens)
        batches = create_analysis_batches(
            items, content_type, limit, batch_size=MAX_TEMPLATE_PROMPT_ITEMS
        )[:MAX_TEMPLATE_BATCHES]
        logger.info(f"Detecting {content_type.value} templates: {len(batches)} batches")

        self._run_batches(TEMPLATE_PASS, content_type, batches, groups, budget, cancel_event, outcome)
        return outcome

    def _run_batches(
        self,
        enrichment_pass: EnrichmentPass,
        content_type: ContentType,
        batches: list[AnalysisBatch],
        groups: list[DuplicateItem],
        budget: TokenBudget,
        cancel_event: Optional[threading.Event],
        outcome: EnrichmentOutcome,
    ) -> None:
        max_in_flight = self.config.max_concurrent_batches
        pending: dict[Future, tuple[AnalysisBatch, str]] = {}
        dispatched = 0

        with ThreadPoolExecutor(
            max_workers=max_in_flight, thread_name_prefix="enrichment"
        ) as pool:
            for batch in batches:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Enrichment of {content_type.value} cancelled, finishing in-flight batches")
                    outcome.cancelled = True
                    break

                key = batch_cache_key(batch)
                cached = self._cache_get(enrichment_pass, content_type, key)
                if cached is not None:
                    merge_enrichment(
                        groups, cached, rank=batch.priority,
                        duplication_type=enrichment_pass.duplication_type,
                    )
                    outcome.cached_batches += 1
                    continue

                if not budget.can_afford(batch.estimated_tokens):
                    outcome.budget_exhausted = True
                    self._emit(
                        "budget_exhausted", content_type,
                        f"Budget cannot cover batch {batch.priority} "
                        f"({batch.estimated_tokens} > {budget.available_tokens} tokens)",
                        batch=batch.priority,
                    )
                    break

                while len(pending) >= max_in_flight:
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        self._collect(enrichment_pass, future, pending.pop(future), content_type, groups, outcome)

                if dispatched and self.config.inter_batch_delay:
                    time.sleep(self.config.inter_batch_delay)

                outcome.tokens_used += budget.consume(batch.estimated_tokens)
                outcome.calls_made += 1
                dispatched += 1
                future = pool.submit(self._analyze_batch, enrichment_pass, batch)
                pending[future] = (batch, key)

            for future in list(pending):
                self._collect(enrichment_pass, future, pending.pop(future), content_type, groups, outcome)

    def _analyze_batch(
        self, enrichment_pass: EnrichmentPass, batch: AnalysisBatch
    ) -> list[EnrichmentGroupSchema]:
        """Worker: one model call plus validation."""
        text = self.llm_client.complete_json(
            system=enrichment_pass.system_prompt(batch.content_type),
            prompt=enrichment_pass.user_prompt(batch),
            max_tokens=self.config.max_tokens_per_request,
        )
        return enrichment_pass.parse(text)

    def _collect(
        self,
        enrichment_pass: EnrichmentPass,
        future: Future,
        entry: tuple[AnalysisBatch, str],
        content_type: ContentType,
        groups: list[DuplicateItem],
        outcome: EnrichmentOutcome,
    ) -> None:
        """Merge a finished batch, or record its failure."""
        batch, key = entry
        try:
            enriched = future.result()
        except (LLMClientError, EnrichmentParseError) as e:
            self._record_failure(enrichment_pass, batch, content_type, outcome, str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error in {enrichment_pass.name} batch {batch.priority}")
            self._record_failure(
                enrichment_pass, batch, content_type, outcome, f"{type(e).__name__}: {e}"
            )
            return

        merge_enrichment(
            groups, enriched, rank=batch.priority,
            duplication_type=enrichment_pass.duplication_type,
        )
        self._cache_put(enrichment_pass, content_type, key, enriched)
        self._emit(
            "batch_completed", content_type,
            f"Batch {batch.priority} returned {len(enriched)} {enrichment_pass.name} findings",
            batch=batch.priority, groups=len(enriched), tokens=batch.estimated_tokens,
            enrichment=enrichment_pass.name,
        )

    def _record_failure(
        self,
        enrichment_pass: EnrichmentPass,
        batch: AnalysisBatch,
        content_type: ContentType,
        outcome: EnrichmentOutcome,
        reason: str,
    ) -> None:
        outcome.failed_batches += 1
        logger.error(
            f"{enrichment_pass.name.capitalize()} batch {batch.priority} "
            f"for {content_type.value} failed: {reason}"
        )
        self._emit(
            "batch_failed", content_type, reason,
            batch=batch.priority, enrichment=enrichment_pass.name,
        )

    def _cache_get(
        self, enrichment_pass: EnrichmentPass, content_type: ContentType, key: str
    ) -> Optional[list[EnrichmentGroupSchema]]:
        if self.cache is None:
            return None
        return self.cache.get((content_type.value, enrichment_pass.name, key))

    def _cache_put(
        self,
        enrichment_pass: EnrichmentPass,
        content_type: ContentType,
        key: str,
        value: list[EnrichmentGroupSchema],
    ) -> None:
        if self.cache is not None:
            self.cache.put((content_type.value, enrichment_pass.name, key), value)

    def _emit(self, kind: str, content_type: Union[ContentType, str], message: str, **details) -> None:
        if self.on_event is None:
            return
        type_name = content_type.value if isinstance(content_type, ContentType) else content_type
        try:
            self.on_event(PipelineEvent(kind=kind, content_type=type_name, message=message, details=details))
        except Exception as e:
            logger.warning(f"Event callback failed for {kind}: {e}")
