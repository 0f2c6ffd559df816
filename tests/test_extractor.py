"""Tests for page content extraction."""

from seo_content_audit.extractor import (
    MAX_PARAGRAPH_LENGTH,
    MAX_PARAGRAPHS_PER_PAGE,
    TRUNCATION_MARKER,
    calculate_content_stats,
    extract_page_content,
)
from seo_content_audit.models import HeadingRecord, PageRecord

from conftest import make_items


class TestExtractPageContent:
    """Tests for extract_page_content."""

    def test_extracts_all_types(self, sample_pages):
        """Titles, descriptions, headings and paragraphs are split by type."""
        extracted = extract_page_content(sample_pages)

        assert extracted.total_pages == 3
        assert [t.content for t in extracted.titles] == [
            "Home | Acme", "Home | Acme", "Contact the Acme sales team",
        ]
        assert len(extracted.descriptions) == 3
        assert len(extracted.headings["h1"]) == 3
        assert len(extracted.headings["h2"]) == 2
        assert extracted.headings["h3"] == []

    def test_items_keep_provenance(self, sample_pages):
        """Each item carries its page URL and index."""
        extracted = extract_page_content(sample_pages)
        contact = extracted.titles[2]

        assert contact.url == "https://acme.com/contact"
        assert contact.page_index == 2

    def test_skips_empty_fields(self):
        """Blank titles and missing descriptions produce no items."""
        extracted = extract_page_content([{"url": "https://acme.com/x", "title": "   "}])

        assert extracted.titles == []
        assert extracted.descriptions == []
        assert extracted.total_pages == 1

    def test_short_paragraphs_skipped(self):
        """Paragraphs of 30 characters or fewer are not extracted."""
        page = {"url": "u", "paragraphs": ["Too short to matter.", "x" * 31]}
        extracted = extract_page_content([page])

        assert [p.content for p in extracted.paragraphs] == ["x" * 31]

    def test_long_paragraphs_truncated(self):
        """Long paragraphs are cut and marked."""
        page = {"url": "u", "paragraphs": ["word " * 200]}
        paragraph = extract_page_content([page]).paragraphs[0].content

        assert paragraph.endswith(TRUNCATION_MARKER)
        assert len(paragraph) <= MAX_PARAGRAPH_LENGTH + len(TRUNCATION_MARKER)

    def test_paragraph_limit_per_page(self):
        """Only the first paragraphs of each page are considered."""
        page = {"url": "u", "paragraphs": [f"Paragraph number {i} with enough text" for i in range(15)]}
        extracted = extract_page_content([page])

        assert len(extracted.paragraphs) == MAX_PARAGRAPHS_PER_PAGE

    def test_malformed_records_never_raise(self):
        """Wrong types are dropped rather than rejected."""
        pages = [
            None,
            "not a page",
            {"url": 5, "title": ["x"], "headings": [{"level": "h9", "text": "Nine"}, {"level": "bad"}]},
            {"url": "https://acme.com/ok", "headings": [{"level": "H2", "text": "Level two heading"}]},
        ]
        extracted = extract_page_content(pages)

        assert extracted.total_pages == 4
        assert extracted.titles == []
        assert [h.content for h in extracted.headings["h2"]] == ["Level two heading"]

    def test_accepts_page_records(self):
        """PageRecord instances are used as-is."""
        page = PageRecord(
            url="https://acme.com/",
            title="Acme",
            headings=[HeadingRecord(level=3, text="Widgets")],
        )
        extracted = extract_page_content([page])

        assert extracted.titles[0].content == "Acme"
        assert extracted.headings["h3"][0].content == "Widgets"

    def test_snake_case_keys(self):
        """meta_description is accepted alongside metaDescription."""
        extracted = extract_page_content([{"url": "u", "meta_description": "Snake case works"}])

        assert extracted.descriptions[0].content == "Snake case works"

    def test_empty_input(self):
        extracted = extract_page_content([])

        assert extracted.total_pages == 0
        assert extracted.titles == []


class TestCalculateContentStats:
    """Tests for calculate_content_stats."""

    def test_empty(self):
        stats = calculate_content_stats([])

        assert stats.total_items == 0
        assert stats.complexity == "low"

    def test_estimates_tokens(self):
        """Four characters per token, rounded up."""
        stats = calculate_content_stats(make_items(["abcde", "abc"]))

        assert stats.total_items == 2
        assert stats.estimated_tokens == 2
        assert stats.average_length == 4

    def test_medium_complexity(self):
        stats = calculate_content_stats(make_items(["title text"] * 21))
        assert stats.complexity == "medium"

    def test_high_complexity(self):
        stats = calculate_content_stats(make_items(["title text"] * 51))
        assert stats.complexity == "high"

    def test_high_complexity_from_tokens(self):
        """A few very long items are enough for high complexity."""
        stats = calculate_content_stats(make_items(["x" * 500] * 41))
        assert stats.complexity == "high"
