"""Typer CLI — ``aitrainer collect``, ``analyze``, ``count``, ``top`` and friends."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from aitrainer.config import load_config
from aitrainer.errors import AITrainerError
from aitrainer.schemas.config import CollectorConfig

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="aitrainer",
    help="AI-Trainer — collect and score competitor website designs per business type.",
    no_args_is_help=True,
)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Path to collector.yml (optional; env vars fill the rest).")
VerboseOption = typer.Option(False, "--verbose", "-v")
BusinessTypeOption = typer.Option(..., "--business-type", "-b", help="Business category, e.g. 'ristorante'.")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(config: Path | None) -> CollectorConfig:
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


def _repository(cfg: CollectorConfig):
    from aitrainer.storage.repository import PatternRepository

    try:
        return PatternRepository.from_url(cfg.require_database_url())
    except AITrainerError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to collector.yml"),
    verbose: bool = VerboseOption,
) -> None:
    """Validate a configuration file without touching any external service."""
    _setup_logging(verbose)
    cfg = _load(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Database:        {'configured' if cfg.database_url else '(none)'}")
    console.print(f"  OpenAI key:      {'configured' if cfg.openai_api_key else '(none)'}")
    console.print(f"  OpenAI model:    {cfg.openai_model}")
    console.print(f"  Unsplash key:    {'configured' if cfg.unsplash_access_key else '(none, no stock images)'}")
    console.print(f"  Target count:    {cfg.target_competitors}")
    console.print(f"  Request delay:   {cfg.request_delay_seconds}s")
    console.print(f"  Nav timeout:     {cfg.navigation_timeout_ms}ms")
    console.print(f"  Viewport:        {cfg.viewport_width}x{cfg.viewport_height}")


@app.command("init-db")
def init_db(
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Create the ai_design_patterns table if it does not exist."""
    _setup_logging(verbose)
    repo = _repository(_load(config))

    async def _run() -> None:
        try:
            await repo.init_schema()
        finally:
            await repo.dispose()

    _run_or_exit(_run())
    console.print("[green]Schema ready.[/]")


@app.command()
def collect(
    business_type: str = BusinessTypeOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Use a canned competitor list (no OpenAI calls)."),
    report: Path = typer.Option(None, "--report", help="Write a Markdown summary of the run to this path."),
) -> None:
    """Top up stored competitor patterns for a business type."""
    _setup_logging(verbose)
    cfg = _load(config)

    if dry_run:
        console.print("[yellow]DRY-RUN mode — no OpenAI calls will be made.[/]\n")

    repo = _repository(cfg)
    summary = _run_or_exit(_run_collection(cfg, repo, business_type, dry_run=dry_run, report=report))

    if summary.sufficient:
        console.print(f"[green]{summary.message}[/]")
        return
    console.print(
        f"\n[bold]Saved {summary.success_count} of {summary.total_processed}[/] "
        f"(already stored: {summary.existing_count})"
    )


async def _run_collection(cfg, repo, business_type: str, *, dry_run: bool, report: Path | None):
    from aitrainer.collection.orchestrator import build_collector
    from aitrainer.shared.progress import PipelineProgress

    collector = build_collector(cfg, repo, dry_run=dry_run)
    try:
        with PipelineProgress(output=console) as progress:
            progress.print_phase(f"Collecting competitors for {business_type}")
            progress.start(business_type)
            try:
                summary = await collector.run(
                    business_type,
                    on_progress=lambda m: progress.update(business_type, m),
                )
            except Exception as exc:
                progress.fail(business_type, str(exc))
                raise
            for item in summary.results:
                if not item.success:
                    progress.log_event(business_type, f"{item.url}: {item.error}", style="red")
            progress.finish(business_type, f"{summary.success_count}/{summary.total_processed} saved")

        if report:
            from aitrainer.output.markdown import render_collection_report

            top = await repo.top_patterns(business_type, limit=10)
            report.parent.mkdir(parents=True, exist_ok=True)
            report.write_text(render_collection_report(summary, top_patterns=top))
            console.print(f"[green]Markdown report written to:[/] {report}")
        return summary
    finally:
        await repo.dispose()


@app.command()
def analyze(
    business_type: str = BusinessTypeOption,
    url: str = typer.Option(..., "--url", "-u", help="Competitor page to fetch and analyze."),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Fetch, analyze and store a single competitor page."""
    _setup_logging(verbose)
    cfg = _load(config)
    repo = _repository(cfg)

    async def _run():
        from aitrainer.collection.orchestrator import build_collector

        try:
            return await build_collector(cfg, repo).analyze_url(business_type, url)
        finally:
            await repo.dispose()

    record = _run_or_exit(_run())
    console.print(f"[green]Saved pattern {record.id}[/] for {record.source_url}\n")
    console.print(f"  Design score:        {record.design_score}")
    console.print(f"  Accessibility score: {record.accessibility_score}")
    console.print(f"  Quality score:       {record.quality_score}")
    console.print(f"  Confidence:          {record.confidence_score}")
    console.print(f"  Training priority:   {record.training_priority}")
    console.print(f"  Mobile responsive:   {record.mobile_responsive}")
    console.print(f"  Colors:              {', '.join(record.color_palette.primary) or '(none)'}")
    console.print(f"  Fonts:               {', '.join(record.font_families.primary) or '(none)'}")
    console.print(f"  Tags:                {', '.join(record.tags)}")


@app.command()
def count(
    business_type: str = BusinessTypeOption,
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print how many active patterns are stored for a business type."""
    _setup_logging(verbose)
    repo = _repository(_load(config))

    async def _run() -> int:
        try:
            return await repo.count_active(business_type)
        finally:
            await repo.dispose()

    console.print(f"{business_type}: {_run_or_exit(_run())} active patterns")


@app.command()
def top(
    business_type: str = BusinessTypeOption,
    limit: int = typer.Option(10, "--limit", "-n", min=1, max=100),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List the highest-priority stored patterns for a business type."""
    _setup_logging(verbose)
    repo = _repository(_load(config))

    async def _run():
        try:
            return await repo.top_patterns(business_type, limit=limit)
        finally:
            await repo.dispose()

    patterns = _run_or_exit(_run())
    if not patterns:
        console.print(f"No patterns stored for {business_type}.")
        return

    table = Table(title=f"Top patterns: {business_type}")
    for column in ("ID", "Priority", "Quality", "Design", "A11y", "URL"):
        table.add_column(column)
    for p in patterns:
        table.add_row(
            str(p.id),
            str(p.training_priority),
            str(p.quality_score),
            str(p.design_score),
            str(p.accessibility_score),
            p.source_url,
        )
    console.print(table)


@app.command()
def stats(
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show active pattern counts and average quality per business type."""
    _setup_logging(verbose)
    repo = _repository(_load(config))

    async def _run():
        try:
            return await repo.business_type_stats()
        finally:
            await repo.dispose()

    rows = _run_or_exit(_run())
    if not rows:
        console.print("No patterns stored yet.")
        return

    table = Table(title="Stored patterns")
    for column in ("Business type", "Patterns", "Avg quality"):
        table.add_column(column)
    for row in rows:
        table.add_row(row["business_type"], str(row["count"]), f"{row['avg_quality']:.1f}")
    console.print(table)


@app.command()
def serve(
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from aitrainer.api import create_app

    _setup_logging(verbose)
    uvicorn.run(create_app(_load(config)), host=host, port=port)


def _run_or_exit(coro):
    """Run ``coro`` to completion; pipeline errors become a red message and exit 1."""
    try:
        return asyncio.run(coro)
    except (AITrainerError, ValueError) as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)
