"""
Command-line interface for Headline Forge.

Usage:
    python -m headline_forge generate article.md -t AI -t 반도체   # Best headline + candidates
    python -m headline_forge evaluate article.md "제목 후보"        # Score one title
    python -m headline_forge analyze article.md                    # Show content analysis
    python -m headline_forge serve                                 # Start the API server
    python -m headline_forge config                                # Show current configuration
"""

import asyncio
import json
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .analyzer import ContentAnalyzer
from .config import get_settings
from .context import PipelineContext
from .evaluator import TitleQualityEvaluator
from .logging_conf import get_logger, setup_logging
from .models import EnhanceRequest, Filters, Guidelines
from .orchestrator import HeadlineOrchestrator

console = Console()
logger = get_logger(__name__)


def _read_content(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, encoding="utf-8") as f:
        return f.read()


def _build_filters(title_min: Optional[int], title_max: Optional[int], include: tuple, exclude: tuple) -> Filters:
    raw: dict = {}
    if title_min is not None or title_max is not None:
        defaults = Filters().title_len
        raw["titleLen"] = {
            "min": title_min if title_min is not None else defaults.min,
            "max": title_max if title_max is not None else defaults.max,
        }
    if include:
        raw["mustInclude"] = list(include)
    if exclude:
        raw["mustExclude"] = list(exclude)
    return Filters.from_raw(raw)


def _score_style(score: float) -> str:
    if score >= 0.7:
        return "green"
    if score >= 0.4:
        return "yellow"
    return "red"


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug: bool):
    """Headline Forge CLI."""
    settings = get_settings()
    level = "DEBUG" if debug else settings.log_level
    setup_logging(level=level, json_output=settings.log_json, app_env=settings.app_env)


@cli.command()
@click.argument("source", default="-")
@click.option("--tag", "-t", "tags", multiple=True, help="Article tag (repeatable)")
@click.option("--subject", "-s", default="", help="Subject description")
@click.option("--tone", default="객관적", help="Writing tone")
@click.option("--provider", "-p", type=click.Choice(["openai", "claude", "gemini"]), help="Preferred text provider")
@click.option("--title-min", type=int, help="Minimum title length (chars)")
@click.option("--title-max", type=int, help="Maximum title length (chars)")
@click.option("--include", "-i", multiple=True, help="Term every title must contain")
@click.option("--exclude", "-x", multiple=True, help="Banned term (replaces the default list)")
@click.option("--json-output", "-j", is_flag=True, help="Output the full response as JSON")
def generate(
    source: str,
    tags: tuple,
    subject: str,
    tone: str,
    provider: Optional[str],
    title_min: Optional[int],
    title_max: Optional[int],
    include: tuple,
    exclude: tuple,
    json_output: bool,
):
    """
    Generate the best headline for an article.

    SOURCE is a markdown file, or - to read from stdin.

    Examples:
      python -m headline_forge generate article.md -t AI
      cat article.md | python -m headline_forge generate - -p claude --json-output
    """
    content = _read_content(source)
    if not content.strip():
        console.print("[bold red]Error: content is empty[/bold red]")
        raise click.Abort()

    request = EnhanceRequest(
        content=content,
        tags=list(tags),
        subject=subject,
        tone=tone,
        filters=_build_filters(title_min, title_max, include, exclude),
        text_provider=provider,
    )

    async def _run():
        async with PipelineContext.create() as context:
            return await HeadlineOrchestrator(context).enhance(request)

    try:
        response = asyncio.run(_run())
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise click.Abort()

    if json_output:
        console.print(json.dumps(response.model_dump(by_alias=True, exclude_none=True), ensure_ascii=False, indent=2))
        return

    console.print(Panel(f"[bold green]{response.title}[/bold green]", title=f"Best headline ({response.source})"))
    console.print(f"SEO description: {response.seo.description}")

    table = Table(title="Candidates")
    table.add_column("#", style="cyan")
    table.add_column("Title")
    for i, title in enumerate(response.candidates, 1):
        table.add_row(str(i), title)
    console.print(table)

    if response.error:
        console.print(f"[yellow]{response.error}[/yellow]")

    if response.diagnostics:
        console.print("\n[cyan]Steps:[/cyan]")
        for step in response.diagnostics.get("steps", []):
            console.print(f"  {step}")


@cli.command()
@click.argument("source")
@click.argument("title")
@click.option("--tag", "-t", "tags", multiple=True, help="Article tag (repeatable)")
@click.option("--subject", "-s", default="", help="Subject description")
@click.option("--brand-tone", type=click.Choice(["positive", "neutral", "authoritative"]), default="neutral")
def evaluate(source: str, title: str, tags: tuple, subject: str, brand_tone: str):
    """Score TITLE against the article in SOURCE."""
    content = _read_content(source)
    analysis = ContentAnalyzer().analyze(content, list(tags), subject)
    evaluator = TitleQualityEvaluator(analysis, Filters(), Guidelines(brand_tone=brand_tone))
    result = evaluator.evaluate_title(title)

    status = "[green]PASS[/green]" if result.passes_filters else "[red]FAIL[/red]"
    console.print(Panel(f"{title}\n\nOverall: {result.overall_score:.3f}  {status}", title="Evaluation"))

    table = Table(title="Scores")
    table.add_column("Axis", style="cyan")
    table.add_column("Score")
    for axis, score in result.scores.items():
        table.add_row(axis, f"[{_score_style(score)}]{score:.3f}[/{_score_style(score)}]")
    console.print(table)

    if result.failed_filters:
        console.print("\n[red]Failed filters:[/red]")
        for failure in result.failed_filters:
            console.print(f"  - {failure}")

    console.print("\n[cyan]Reasons:[/cyan]")
    for reason in result.reasons:
        console.print(f"  - {reason}")

    if result.recommendations:
        console.print("\n[cyan]Recommendations:[/cyan]")
        for rec in result.recommendations:
            console.print(f"  - {rec}")


@cli.command()
@click.argument("source")
@click.option("--tag", "-t", "tags", multiple=True, help="Article tag (repeatable)")
@click.option("--subject", "-s", default="", help="Subject description")
@click.option("--json-output", "-j", is_flag=True, help="Output the full analysis as JSON")
def analyze(source: str, tags: tuple, subject: str, json_output: bool):
    """Show the content analysis of an article."""
    analysis = ContentAnalyzer().analyze(_read_content(source), list(tags), subject)

    if json_output:
        console.print(json.dumps(analysis.to_dict(), ensure_ascii=False, indent=2))
        return

    summary = analysis.summary()
    table = Table(title="Content Analysis")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key, value in summary.items():
        table.add_row(key, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)

    if analysis.key_phrases:
        phrases = Table(title="Key Phrases")
        phrases.add_column("Phrase", style="cyan")
        phrases.add_column("Frequency")
        phrases.add_column("Importance")
        phrases.add_column("Source")
        for kp in analysis.key_phrases:
            phrases.add_row(kp.phrase, str(kp.frequency), f"{kp.importance:.2f}", kp.source)
        console.print(phrases)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", "-p", type=int, help="Port to bind to")
def serve(host: str, port: int):
    """Start the API server."""
    from .server import run_server

    console.print(Panel("[bold blue]Starting Server[/bold blue]"))

    settings = get_settings()
    port = port or settings.port

    console.print(f"Host: {host}")
    console.print(f"Port: {port}")
    console.print()

    run_server(host=host, port=port)


@cli.command()
def config():
    """Show current configuration (excluding secrets)."""
    settings = get_settings()

    console.print(Panel("[bold blue]Current Configuration[/bold blue]"))

    console.print("\n[cyan]Runtime:[/cyan]")
    console.print(f"  app_env:   {settings.app_env}")
    console.print(f"  log_level: {settings.log_level}")
    console.print(f"  port:      {settings.port}")

    console.print("\n[cyan]Cache:[/cyan]")
    console.print(f"  cache_max_size:               {settings.cache_max_size}")
    console.print(f"  cache_ttl_seconds:            {settings.cache_ttl_seconds}")
    console.print(f"  cache_sweep_interval_seconds: {settings.cache_sweep_interval_seconds}")

    console.print("\n[cyan]Providers:[/cyan]")
    console.print(f"  text_provider:             {settings.text_provider or '(default order)'}")
    console.print(f"  rate_limit_max_calls:      {settings.rate_limit_max_calls}")
    console.print(f"  rate_limit_window_seconds: {settings.rate_limit_window_seconds}")
    console.print(f"  provider_timeout_seconds:  {settings.provider_timeout_seconds}")
    console.print(f"  openai:  {settings.openai_model} ({'configured' if settings.openai_api_key else 'no key'})")
    console.print(f"  claude:  {settings.anthropic_model} ({'configured' if settings.anthropic_api_key else 'no key'})")
    console.print(f"  gemini:  {settings.gemini_model} ({'configured' if settings.google_api_key else 'no key'})")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
