"""
Content extraction module.

Turns crawled page records into typed, sanitized content items:
- Titles and meta descriptions
- Headings grouped by level (H1-H6)
- The first substantial paragraphs of each page
"""

import logging
import math
from typing import Any, Iterable, Union

from .models import (
    HEADING_LEVELS,
    ContentItem,
    ContentStats,
    ExtractedContent,
    PageRecord,
)
from .text_utils import round_score, sanitize_content

logger = logging.getLogger(__name__)

# Paragraph limits per page
MAX_PARAGRAPHS_PER_PAGE = 10
MIN_PARAGRAPH_LENGTH = 30
MAX_PARAGRAPH_LENGTH = 300
TRUNCATION_MARKER = "..."


def extract_page_content(
    pages: Iterable[Union[PageRecord, dict[str, Any]]],
) -> ExtractedContent:
    """
    Extract and structure content from crawled pages.

    Empty fields are skipped. Malformed records never raise, they just
    contribute no items.

    Args:
        pages: Page records (PageRecord instances or loosely-typed dicts).

    Returns:
        ExtractedContent with per-type item lists.
    """
    extracted = ExtractedContent()
    page_list = list(pages or [])

    for page_index, raw_page in enumerate(page_list):
        page = PageRecord.from_dict(raw_page)
        url = page.url

        if page.title and page.title.strip():
            _append(extracted.titles, page.title, url, page_index)

        if page.meta_description and page.meta_description.strip():
            _append(extracted.descriptions, page.meta_description, url, page_index)

        for heading in page.headings:
            if not heading.text or not heading.text.strip():
                continue
            if not 1 <= heading.level <= 6:
                continue
            _append(extracted.headings[f"h{heading.level}"], heading.text, url, page_index)

        for paragraph in page.paragraphs[:MAX_PARAGRAPHS_PER_PAGE]:
            if len(paragraph.strip()) <= MIN_PARAGRAPH_LENGTH:
                continue
            if len(paragraph) > MAX_PARAGRAPH_LENGTH:
                paragraph = paragraph[:MAX_PARAGRAPH_LENGTH] + TRUNCATION_MARKER
            _append(extracted.paragraphs, paragraph, url, page_index)

    extracted.total_pages = len(page_list)

    logger.debug(
        f"Extracted {len(extracted.titles)} titles, {len(extracted.descriptions)} descriptions, "
        f"{sum(len(extracted.headings[level]) for level in HEADING_LEVELS)} headings, "
        f"{len(extracted.paragraphs)} paragraphs from {extracted.total_pages} pages"
    )

    return extracted


def _append(target: list[ContentItem], text: str, url: str, page_index: int) -> None:
    """Sanitize text and append it as an item unless nothing survives."""
    content = sanitize_content(text)
    if content:
        target.append(ContentItem(content=content, url=url, page_index=page_index))


def calculate_content_stats(items: list[ContentItem]) -> ContentStats:
    """
    Calculate volume statistics for sampling and budgeting decisions.

    Token estimate uses the usual 4-characters-per-token rule of thumb.
    """
    if not items:
        return ContentStats()

    total_length = sum(len(item.content) for item in items)
    estimated_tokens = math.ceil(total_length / 4)

    complexity = "low"
    if len(items) > 50 or estimated_tokens > 5000:
        complexity = "high"
    elif len(items) > 20 or estimated_tokens > 2000:
        complexity = "medium"

    return ContentStats(
        total_items=len(items),
        average_length=round_score(total_length / len(items)),
        estimated_tokens=estimated_tokens,
        complexity=complexity,
    )
