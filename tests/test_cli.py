"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from seo_content_audit.cli import PageFileError, load_pages, main


@pytest.fixture
def pages_file(tmp_path, sample_pages):
    path = tmp_path / "pages.json"
    path.write_text(json.dumps(sample_pages))
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestLoadPages:
    """Tests for load_pages."""

    def test_list(self, pages_file, sample_pages):
        assert load_pages(pages_file) == sample_pages

    def test_wrapped_object(self, tmp_path, sample_pages):
        path = tmp_path / "crawl.json"
        path.write_text(json.dumps({"pages": sample_pages}))

        assert len(load_pages(path)) == 3

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        with pytest.raises(PageFileError, match="Invalid JSON"):
            load_pages(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "shape.json"
        path.write_text(json.dumps({"items": []}))

        with pytest.raises(PageFileError):
            load_pages(path)


class TestMain:
    """Tests for the main command."""

    def test_rule_based_run(self, runner, pages_file):
        result = runner.invoke(main, [str(pages_file), "--no-ai"])

        assert result.exit_code == 0, result.output
        assert "Duplication Summary" in result.output
        assert "Recommendations" in result.output

    def test_writes_report(self, runner, pages_file, tmp_path):
        output = tmp_path / "report.json"
        result = runner.invoke(main, [str(pages_file), "--no-ai", "--keywords", "-o", str(output)])

        assert result.exit_code == 0, result.output
        report = json.loads(output.read_text())
        assert report["contentDuplication"]["analysis"]["titleRepetition"]["repetitiveCount"] == 1
        assert "keywordRepetition" in report

    def test_missing_api_key_falls_back(self, runner, pages_file):
        result = runner.invoke(main, [str(pages_file)], env={"ANTHROPIC_API_KEY": None})

        assert result.exit_code == 0, result.output
        assert "No API key provided" in result.output

    def test_bad_input_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[broken")
        result = runner.invoke(main, [str(path), "--no-ai"])

        assert result.exit_code == 1
        assert "Input error" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, [str(tmp_path / "absent.json")])

        assert result.exit_code != 0

    def test_negative_budget(self, runner, pages_file):
        result = runner.invoke(main, [str(pages_file), "--budget", "-5"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_no_templates_flag(self, runner, pages_file, mock_llm_client):
        with patch("seo_content_audit.cli._build_client", return_value=mock_llm_client):
            result = runner.invoke(main, [str(pages_file), "--no-templates"])

        assert result.exit_code == 0, result.output
        systems = [c.kwargs["system"] for c in mock_llm_client.complete_json.call_args_list]
        assert systems
        assert not any("template patterns" in s for s in systems)
