"""
Command-line interface for SEO Content Audit.

Provides a CLI for running duplication and keyword analysis over a JSON
file of crawled page records.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import AnalysisConfig
from .keyword_repetition import analyze_keyword_repetition
from .llm_client import LLMClient, LLMClientError, create_llm_client
from .models import KeywordRepetitionAnalysis, PipelineEvent, ProcessingResult
from .orchestrator import analyze_content_duplication_with_stats
from .token_budget import TokenBudget

console = Console()


class PageFileError(Exception):
    """Raised when the page records file cannot be used."""
    pass


def load_pages(path: Path) -> list[dict[str, Any]]:
    """
    Load page records from a JSON file.

    Accepts a top-level list of records or an object with a ``pages`` list.

    Raises:
        PageFileError: If the file is unreadable or has the wrong shape.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PageFileError(f"Cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        raise PageFileError(f"Invalid JSON in {path}: {e}")

    if isinstance(data, dict):
        data = data.get("pages")
    if not isinstance(data, list):
        raise PageFileError("Expected a list of page records or an object with a 'pages' list")

    return data


@click.command()
@click.argument(
    "pages_json",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--no-ai",
    is_flag=True,
    default=False,
    help="Rule-based analysis only, never call the model.",
)
@click.option(
    "--no-templates",
    is_flag=True,
    default=False,
    help="Skip the model pass that looks for templated content.",
)
@click.option(
    "--budget",
    type=int,
    default=15000,
    show_default=True,
    help="Token budget for model enrichment.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the full report as JSON to this path.",
)
@click.option(
    "--keywords",
    is_flag=True,
    default=False,
    help="Also run keyword repetition analysis.",
)
@click.option(
    "--api-key",
    type=str,
    envvar="ANTHROPIC_API_KEY",
    help="Anthropic API key. Can also be set via ANTHROPIC_API_KEY env var.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
def main(
    pages_json: Path,
    no_ai: bool,
    no_templates: bool,
    budget: int,
    output: Optional[Path],
    keywords: bool,
    api_key: Optional[str],
    verbose: bool,
) -> None:
    """
    SEO Content Audit - Find duplicated content across a crawled site.

    Reads page records (url, title, metaDescription, headings, paragraphs)
    from PAGES_JSON and reports duplicate titles, descriptions, headings
    and paragraphs in SEO-impact order.

    Examples:

        seo-content-audit pages.json --no-ai

        seo-content-audit pages.json --budget 8000 --keywords -o report.json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        pages = load_pages(pages_json)
    except PageFileError as e:
        console.print(f"[red]Input error:[/red] {e}")
        sys.exit(1)

    try:
        if no_ai:
            config = AnalysisConfig.rule_based_only(max_total_tokens=budget)
        else:
            config = AnalysisConfig.with_budget(
                budget, enable_template_detection=not no_templates
            )
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    console.print(Panel.fit(
        "[bold blue]SEO Content Audit[/bold blue]\n"
        f"Analyzing {len(pages)} pages for duplicate content",
        border_style="blue",
    ))

    llm_client = _build_client(config, api_key)

    def on_event(event: PipelineEvent) -> None:
        if verbose and event.kind != "run_started":
            console.print(f"  [dim]{event.kind}:[/dim] {event.message}")

    try:
        with console.status("[bold green]Analyzing content..."):
            result = analyze_content_duplication_with_stats(
                pages, config=config, llm_client=llm_client, on_event=on_event
            )

        keyword_analysis = None
        if keywords:
            with console.status("[bold green]Analyzing keyword repetition..."):
                remaining = TokenBudget(
                    max(0, config.max_total_tokens - result.performance.tokens_used)
                )
                keyword_analysis = analyze_keyword_repetition(
                    pages, llm_client=llm_client, budget=remaining
                )

        _display_summary(result, verbose)
        if keyword_analysis is not None:
            _display_keywords(keyword_analysis)

        if output:
            report: dict[str, Any] = {"contentDuplication": result.to_dict()}
            if keyword_analysis is not None:
                report["keywordRepetition"] = keyword_analysis.to_dict()
            output.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
            console.print(f"\n[bold green]Success![/bold green] Report saved to: {output}")

    except OSError as e:
        console.print(f"[red]Output error:[/red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        sys.exit(1)


def _build_client(config: AnalysisConfig, api_key: Optional[str]) -> Optional[LLMClient]:
    """Create the model client, or None for a rule-based run."""
    if not config.should_enrich:
        return None
    if not api_key:
        console.print("[yellow]No API key provided, running rule-based analysis only[/yellow]")
        return None
    try:
        return create_llm_client(
            api_key=api_key, model=config.model, temperature=config.temperature
        )
    except LLMClientError as e:
        console.print(f"[yellow]LLM unavailable, running rule-based analysis only:[/yellow] {e}")
        return None


def _display_summary(result: ProcessingResult, verbose: bool) -> None:
    """Display duplication summary."""
    analysis = result.analysis
    console.print("\n[bold]Duplication Summary[/bold]")

    table = Table(title="Content Repetition", show_header=True)
    table.add_column("Content", style="cyan")
    table.add_column("Analyzed", justify="right")
    table.add_column("Duplicates", justify="right", style="yellow")
    table.add_column("Groups", justify="right")

    for label, section in (
        ("Titles", analysis.title_repetition),
        ("Meta descriptions", analysis.description_repetition),
        ("Headings", analysis.heading_repetition),
        ("Paragraphs", analysis.paragraph_repetition),
    ):
        table.add_row(
            label,
            str(section.total_count),
            str(section.repetitive_count),
            str(len(section.duplicate_groups)),
        )
    console.print(table)

    groups = [
        group
        for section in (
            analysis.title_repetition,
            analysis.description_repetition,
            analysis.heading_repetition,
            analysis.paragraph_repetition,
        )
        for group in section.duplicate_groups
    ]
    if groups:
        groups_table = Table(title="Top Duplicate Groups", show_header=True)
        groups_table.add_column("Impact", style="red")
        groups_table.add_column("Pages", justify="right")
        groups_table.add_column("Match")
        groups_table.add_column("Content", style="green")
        for group in sorted(groups, key=lambda g: len(g.urls), reverse=True)[:10]:
            groups_table.add_row(
                group.impact_level.value,
                str(len(group.urls)),
                group.duplication_type or "",
                group.content[:60],
            )
        console.print(groups_table)

    console.print("\n[bold]Recommendations[/bold]")
    for recommendation in analysis.overall_recommendations:
        console.print(f"  - {recommendation}")

    performance = result.performance
    if verbose:
        console.print(
            f"\n[dim]{performance.ai_calls_made} model calls, {performance.tokens_used} tokens, "
            f"{performance.failed_batches} failed batches, "
            f"{performance.total_processing_time:.2f}s[/dim]"
        )
        for type_name, sampling in performance.sampling_stats.items():
            console.print(f"[dim]{type_name}: {'; '.join(sampling.insights)}[/dim]")


def _display_keywords(analysis: KeywordRepetitionAnalysis) -> None:
    """Display keyword repetition summary."""
    console.print(
        f"\n[bold]Keyword Health:[/bold] {analysis.health_score}/100 "
        f"({analysis.issues} issues)"
    )
    if not analysis.top_problematic_keywords:
        return

    table = Table(title="Over-used Keywords", show_header=True)
    table.add_column("Keyword", style="cyan")
    table.add_column("Density", justify="right")
    table.add_column("Occurrences", justify="right")
    table.add_column("Impact", style="red")
    for keyword in analysis.top_problematic_keywords:
        table.add_row(
            keyword.keyword,
            f"{keyword.density:.2f}%",
            str(keyword.occurrences),
            keyword.impact_level.value,
        )
    console.print(table)


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
