"""
Keyword repetition analysis.

Detects keyword stuffing and over-optimization across a crawl:
- Site-wide keyword density over titles, descriptions and paragraphs
- Impact grading by density
- Optional model pass for natural-usage strategies and alternatives
"""

import logging
import re
from collections import Counter
from typing import Any, Iterable, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from .enrichment import EnrichmentParseError, extract_json_object
from .llm_client import LLMClient, LLMClientError
from .models import (
    ImpactLevel,
    KeywordDensityItem,
    KeywordOpportunity,
    KeywordRepetitionAnalysis,
    PageRecord,
)
from .token_budget import TokenBudget, estimate_token_usage

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset([
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "as", "is", "was", "are", "were", "be", "been", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "this", "that", "these", "those", "a", "an",
])

MIN_WORD_LENGTH = 4
MAX_KEYWORDS = 10

# Density thresholds (fractions of all counted words)
PROBLEM_DENSITY = 0.02
HIGH_DENSITY = 0.03
CRITICAL_DENSITY = 0.05

_EDGE_PUNCTUATION_RE = re.compile(r"^[^\w]+|[^\w]+$")

HEALTH_RECOMMENDATIONS = [
    "Review keyword density across pages for natural usage",
    "Use synonyms and related terms to diversify content",
    "Focus on readability over keyword repetition",
]

PATTERN_RECOMMENDATIONS = [
    "Vary vocabulary to avoid repetitive patterns",
    "Use long-tail keywords for better targeting",
]

IMPROVEMENT_AREAS = ["Keyword diversity", "Natural language flow", "Content uniqueness"]

DEFAULT_OPPORTUNITIES = [
    KeywordOpportunity(
        suggestion="Use more long-tail keywords",
        benefit="Better targeting and natural content flow",
        implementation="Replace repeated short keywords with specific phrases",
    ),
    KeywordOpportunity(
        suggestion="Implement semantic keyword strategies",
        benefit="Improved search relevance without over-optimization",
        implementation="Use related terms and synonyms throughout content",
    ),
]

KEYWORD_SYSTEM_PROMPT = """You are an SEO and content optimization expert. Analyze keyword usage patterns to identify over-optimization, keyword stuffing, and opportunities for natural content improvement. Focus on readability and search engine best practices. Always respond in valid JSON."""


class KeywordAdviceSchema(BaseModel):
    """Model advice for one over-used keyword."""

    keyword: str = Field(min_length=1)
    improvement_strategy: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("improvementStrategy", "improvement_strategy"),
    )
    alternatives: list[str] = Field(default_factory=list)

    @field_validator("alternatives", mode="before")
    @classmethod
    def alternatives_are_strings(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [a.strip() for a in v if isinstance(a, str) and a.strip()]
        return v


class KeywordAdviceResponseSchema(BaseModel):
    top_problematic_keywords: list[KeywordAdviceSchema] = Field(
        default_factory=list,
        validation_alias=AliasChoices("topProblematicKeywords", "top_problematic_keywords"),
    )


def analyze_keyword_repetition(
    pages: Iterable[Union[PageRecord, dict[str, Any]]],
    llm_client: Optional[LLMClient] = None,
    budget: Optional[TokenBudget] = None,
    max_tokens: int = 3000,
) -> KeywordRepetitionAnalysis:
    """
    Analyze keyword density across all pages.

    Args:
        pages: Page records (PageRecord instances or dicts).
        llm_client: Optional client for strategy and alternative suggestions.
        budget: Optional shared budget charged for the model call.
        max_tokens: Maximum response tokens for the model call.

    Returns:
        KeywordRepetitionAnalysis. The rule-based result is always returned
        when the model call is skipped or fails.
    """
    records = [PageRecord.from_dict(page) for page in (pages or [])]
    analysis = _rule_based_analysis(records)

    if llm_client is None or not analysis.top_problematic_keywords:
        return analysis

    prompt = build_keyword_prompt(records, analysis)
    if budget is not None:
        estimated = estimate_token_usage(prompt)
        if not budget.can_afford(estimated):
            logger.info("Skipping keyword enrichment: token budget exhausted")
            return analysis
        budget.consume(estimated)

    try:
        text = llm_client.complete_json(
            system=KEYWORD_SYSTEM_PROMPT,
            prompt=prompt,
            max_tokens=max_tokens,
        )
        advice = parse_keyword_response(text)
    except (LLMClientError, EnrichmentParseError) as e:
        logger.warning(f"Keyword enrichment failed, using rule-based analysis: {e}")
        return analysis

    merge_keyword_advice(analysis, advice)
    return analysis


def _rule_based_analysis(records: list[PageRecord]) -> KeywordRepetitionAnalysis:
    """Density analysis without any model involvement."""
    page_texts = [_page_text(page) for page in records]
    page_words = [set(tokenize_keywords(text)) for text in page_texts]
    words = tokenize_keywords(" ".join(page_texts))
    total_words = len(words)
    counts = Counter(words)

    keywords: list[KeywordDensityItem] = []
    if total_words:
        for word, count in counts.most_common():
            ratio = count / total_words
            if ratio <= PROBLEM_DENSITY:
                break
            keywords.append(KeywordDensityItem(
                keyword=word,
                density=round(ratio * 100, 2),
                occurrences=count,
                impact_level=impact_for_density(ratio),
                affected_pages=[
                    page.url for page, vocabulary in zip(records, page_words) if word in vocabulary
                ],
                improvement_strategy=(
                    f'Reduce usage of "{word}" and use synonyms to improve natural flow'
                ),
            ))
            if len(keywords) >= MAX_KEYWORDS:
                break

    affected = sum(
        1 for vocabulary in page_words
        if any(k.keyword in vocabulary for k in keywords)
    )

    if not keywords:
        severity = ImpactLevel.LOW
    elif any(k.impact_level == ImpactLevel.CRITICAL for k in keywords):
        severity = ImpactLevel.HIGH
    else:
        severity = ImpactLevel.MEDIUM

    return KeywordRepetitionAnalysis(
        health_score=max(30, 100 - len(keywords) * 10),
        issues=len(keywords),
        health_recommendations=list(HEALTH_RECOMMENDATIONS),
        top_problematic_keywords=keywords,
        repetitive_count=len(keywords),
        total_analyzed=total_words,
        pattern_examples=[k.keyword for k in keywords[:3]],
        pattern_recommendations=list(PATTERN_RECOMMENDATIONS),
        affected_pages=affected,
        severity_level=severity,
        improvement_areas=list(IMPROVEMENT_AREAS),
        opportunities=list(DEFAULT_OPPORTUNITIES),
    )


def tokenize_keywords(text: str) -> list[str]:
    """Lowercased words longer than 3 chars, edge punctuation stripped, no stop words."""
    words = []
    for raw in text.lower().split():
        word = _EDGE_PUNCTUATION_RE.sub("", raw)
        if len(word) >= MIN_WORD_LENGTH and word not in STOP_WORDS:
            words.append(word)
    return words


def impact_for_density(ratio: float) -> ImpactLevel:
    """Grade a density ratio (0-1)."""
    if ratio > CRITICAL_DENSITY:
        return ImpactLevel.CRITICAL
    if ratio > HIGH_DENSITY:
        return ImpactLevel.HIGH
    return ImpactLevel.MEDIUM


def _page_text(page: PageRecord) -> str:
    """Title, meta description and paragraphs, the text density is measured over."""
    return f"{page.title or ''} {page.meta_description or ''} {' '.join(page.paragraphs)}"


def build_keyword_prompt(records: list[PageRecord], analysis: KeywordRepetitionAnalysis) -> str:
    """Prompt asking for natural-usage strategies for the flagged keywords."""
    keyword_lines = "\n".join(
        f'- "{k.keyword}": {k.density}% density, {k.occurrences} occurrences, '
        f"{len(k.affected_pages)} pages"
        for k in analysis.top_problematic_keywords
    )
    samples = "\n".join(
        f'Page {index}: {page.url}\nTitle: "{(page.title or "")[:100]}"\n'
        f"Content: {' '.join(page.paragraphs)[:300]}\n---"
        for index, page in enumerate(records[:6], start=1)
    )
    more = f"\n(+ {len(records) - 6} more pages analyzed)" if len(records) > 6 else ""

    return f"""These keywords are over-used across a {len(records)}-page website:

{keyword_lines}

CONTENT SAMPLES:
{samples}{more}

For each keyword, suggest how to use it more naturally and give 2-4 synonyms
or related terms that fit the site's topic.

Respond in JSON format:
{{
  "topProblematicKeywords": [
    {{
      "keyword": "example keyword",
      "improvementStrategy": "Reduce usage and use synonyms naturally",
      "alternatives": ["synonym1", "synonym2"]
    }}
  ]
}}"""


def parse_keyword_response(text: str) -> KeywordAdviceResponseSchema:
    """
    Parse and validate a keyword-advice reply.

    Raises:
        EnrichmentParseError: On malformed JSON or any schema violation.
    """
    data = extract_json_object(text)
    try:
        return KeywordAdviceResponseSchema.model_validate(data)
    except ValidationError as e:
        raise EnrichmentParseError(
            f"Keyword response failed validation ({e.error_count()} errors)"
        )


def merge_keyword_advice(
    analysis: KeywordRepetitionAnalysis,
    advice: KeywordAdviceResponseSchema,
) -> KeywordRepetitionAnalysis:
    """Apply model advice to matching keywords (case-insensitive). Unknown keywords are ignored."""
    by_keyword = {k.keyword.lower(): k for k in analysis.top_problematic_keywords}
    for item in advice.top_problematic_keywords:
        keyword = by_keyword.get(item.keyword.strip().lower())
        if keyword is None:
            continue
        if item.improvement_strategy:
            keyword.improvement_strategy = item.improvement_strategy
        if item.alternatives:
            keyword.alternatives = item.alternatives
    return analysis
