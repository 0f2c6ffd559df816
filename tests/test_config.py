"""Tests for AnalysisConfig."""

import pytest

from seo_content_audit.config import AnalysisConfig
from seo_content_audit.models import ContentType
from seo_content_audit.similarity import SimilarityOptions


class TestAnalysisConfigDefaults:
    """Tests for default configuration values."""

    def test_defaults(self):
        config = AnalysisConfig()

        assert config.max_total_tokens == 15000
        assert config.use_ai_analysis is True
        assert config.batch_size == 10
        assert config.max_concurrent_batches == 3
        assert config.similarity.fuzzy_match_threshold == 85
        assert config.similarity.semantic_threshold == 75
        assert config.similarity.min_content_length == 10

    def test_should_enrich(self):
        assert AnalysisConfig().should_enrich

    def test_custom_similarity(self):
        config = AnalysisConfig(similarity=SimilarityOptions(fuzzy_match_threshold=90))

        assert config.similarity.fuzzy_match_threshold == 90
        assert config.similarity.semantic_threshold == 75

    def test_headings_use_shorter_minimum(self):
        config = AnalysisConfig()
        headings = config.similarity_for(ContentType.HEADINGS)

        assert config.enable_template_detection is True
        assert headings.min_content_length == 5
        assert headings.fuzzy_match_threshold == config.similarity.fuzzy_match_threshold
        assert config.similarity_for(ContentType.TITLES) is config.similarity
        assert config.similarity.min_content_length == 10


class TestAnalysisConfigPresets:
    """Tests for preset constructors."""

    def test_rule_based_only(self):
        config = AnalysisConfig.rule_based_only()

        assert config.use_ai_analysis is False
        assert not config.should_enrich

    def test_rule_based_only_overrides(self):
        config = AnalysisConfig.rule_based_only(max_total_tokens=500)

        assert config.max_total_tokens == 500
        assert config.use_ai_analysis is False

    def test_with_budget(self):
        config = AnalysisConfig.with_budget(4000, batch_size=5)

        assert config.max_total_tokens == 4000
        assert config.batch_size == 5
        assert config.should_enrich

    def test_zero_budget_never_enriches(self):
        config = AnalysisConfig.with_budget(0)

        assert config.use_ai_analysis is True
        assert not config.should_enrich


class TestAnalysisConfigValidation:
    """Tests for __post_init__ validation."""

    @pytest.mark.parametrize("field,value", [
        ("max_total_tokens", -1),
        ("temperature", 1.5),
        ("temperature", -0.1),
        ("max_tokens_per_request", 0),
        ("batch_size", 0),
        ("max_concurrent_batches", 0),
        ("inter_batch_delay", -1.0),
        ("remaining_headings_min_tokens", -1),
        ("heading_min_content_length", -1),
        ("cache_size", -1),
    ])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            AnalysisConfig(**{field: value})

    @pytest.mark.parametrize("options", [
        SimilarityOptions(fuzzy_match_threshold=101),
        SimilarityOptions(semantic_threshold=-5),
        SimilarityOptions(min_content_length=-1),
    ])
    def test_rejects_invalid_similarity(self, options):
        with pytest.raises(ValueError, match="similarity"):
            AnalysisConfig(similarity=options)
