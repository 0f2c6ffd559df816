"""Tests for the LLM client wrapper."""

from unittest.mock import MagicMock, patch

import pytest

from seo_content_audit import llm_client as llm_module
from seo_content_audit.llm_client import LLMClient, LLMClientError, create_llm_client


@pytest.fixture
def fake_anthropic():
    """Replace the anthropic module with a mock."""
    with patch.object(llm_module, "anthropic") as mock_module:
        yield mock_module


def _response(text):
    return MagicMock(content=[MagicMock(text=text)])


class TestLLMClientInit:
    """Tests for client construction."""

    def test_requires_api_key(self, monkeypatch, fake_anthropic):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(LLMClientError, match="No API key"):
            LLMClient()

    def test_reads_key_from_environment(self, monkeypatch, fake_anthropic):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        client = LLMClient()

        assert client.api_key == "env-key"
        assert fake_anthropic.Anthropic.call_args.kwargs["api_key"] == "env-key"

    def test_missing_package(self):
        with patch.object(llm_module, "anthropic", None):
            with pytest.raises(LLMClientError, match="not installed"):
                LLMClient(api_key="key")

    def test_factory(self, fake_anthropic):
        client = create_llm_client(api_key="key", model="test-model", temperature=0.1)

        assert client.model == "test-model"
        assert client.temperature == 0.1


class TestCompleteJson:
    """Tests for complete_json."""

    def test_returns_first_text_block(self, fake_anthropic):
        client = LLMClient(api_key="key", model="test-model", temperature=0.2)
        client.client.messages.create.return_value = _response('{"duplicate_groups": []}')

        text = client.complete_json(system="sys", prompt="prompt", max_tokens=123)

        assert text == '{"duplicate_groups": []}'
        kwargs = client.client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 123
        assert kwargs["temperature"] == 0.2
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_api_error_wrapped(self, fake_anthropic):
        client = LLMClient(api_key="key")
        client.client.messages.create.side_effect = RuntimeError("rate limited")

        with pytest.raises(LLMClientError, match="rate limited"):
            client.complete_json(system="sys", prompt="prompt")

    def test_empty_content(self, fake_anthropic):
        client = LLMClient(api_key="key")
        client.client.messages.create.return_value = MagicMock(content=[])

        with pytest.raises(LLMClientError, match="no content"):
            client.complete_json(system="sys", prompt="prompt")

    def test_empty_text_block(self, fake_anthropic):
        client = LLMClient(api_key="key")
        client.client.messages.create.return_value = _response("")

        with pytest.raises(LLMClientError, match="empty text"):
            client.complete_json(system="sys", prompt="prompt")
