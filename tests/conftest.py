"""
Pytest fixtures and configuration for SEO Content Audit tests.
"""

import json
from unittest.mock import MagicMock

import pytest

from seo_content_audit.config import AnalysisConfig
from seo_content_audit.models import ContentItem


def make_items(texts, url_prefix="https://acme.com/page"):
    """Build one ContentItem per text, each on its own page."""
    return [
        ContentItem(content=text, url=f"{url_prefix}-{i}", page_index=i)
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def sample_pages() -> list[dict]:
    """A small crawl with duplicated titles, descriptions and H1s."""
    boilerplate = (
        "Acme Corporation has delivered reliable industrial widgets to "
        "customers around the world since 1952."
    )
    return [
        {
            "url": "https://acme.com/",
            "title": "Home | Acme",
            "metaDescription": "Acme builds industrial widgets for every factory floor.",
            "headings": [
                {"level": 1, "text": "Welcome to Acme Widgets"},
                {"level": 2, "text": "Why choose our widgets"},
            ],
            "paragraphs": [boilerplate, "Our homepage lists the newest widget ranges."],
            "wordCount": 120,
        },
        {
            "url": "https://acme.com/about",
            "title": "Home | Acme",
            "metaDescription": "Acme builds industrial widgets for every factory floor.",
            "headings": [
                {"level": 1, "text": "Welcome to Acme Widgets"},
                {"level": 2, "text": "Why choose our widgets"},
            ],
            "paragraphs": [boilerplate, "The founders started in a small garage workshop."],
            "wordCount": 140,
        },
        {
            "url": "https://acme.com/contact",
            "title": "Contact the Acme sales team",
            "metaDescription": "Reach the Acme sales team by phone or email today.",
            "headings": [{"level": 1, "text": "Get in touch with sales"}],
            "paragraphs": [boilerplate],
            "wordCount": 80,
        },
    ]


@pytest.fixture
def welcome_pages() -> list[dict]:
    """Twelve pages sharing one boilerplate H1 and nothing else."""
    return [
        {
            "url": f"https://acme.com/products/item-{i}",
            "title": f"Widget model number {i} specifications",
            "headings": [{"level": 1, "text": "Welcome to our store"}],
        }
        for i in range(12)
    ]


@pytest.fixture
def rule_based_config() -> AnalysisConfig:
    """Config that never calls the model."""
    return AnalysisConfig.rule_based_only()


@pytest.fixture
def fast_config() -> AnalysisConfig:
    """Enrichment config with no delay between dispatches."""
    return AnalysisConfig(inter_batch_delay=0.0)


@pytest.fixture
def enrichment_response() -> str:
    """A well-formed enrichment reply wrapped in prose."""
    payload = {
        "duplicate_groups": [
            {
                "content": "Home | Acme",
                "affected_urls": ["https://acme.com/", "https://acme.com/about"],
                "similarity_score": "95%",
                "impact_level": "critical",
                "root_cause": "Shared CMS title template",
                "improvement_strategy": "Write a unique title for each page",
            }
        ],
        "summary": "Template titles",
    }
    return f"Here is the analysis:\n```json\n{json.dumps(payload)}\n```"


@pytest.fixture
def mock_llm_client(enrichment_response):
    """LLM client mock returning the well-formed enrichment reply."""
    client = MagicMock()
    client.complete_json.return_value = enrichment_response
    return client
