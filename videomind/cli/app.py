"""VideoMind CLI application using Typer."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from videomind import __version__
from videomind.config import settings
from videomind.core.analysis.analysis_client import AnalysisClient
from videomind.core.ingestion.external_media import ExternalMediaIngestor
from videomind.core.ingestion.video import VideoIngestor
from videomind.core.ingestion.web_scraping import (
    BatchIngestor,
    BatchStatus,
    BatchSummary,
    ContentExtractor,
    DiscoverySession,
    LinkDiscoverer,
    ProxyFetcher,
    ScrapeOrchestrator,
)
from videomind.core.ingestion.web_scraping.url_utils import is_social_url
from videomind.db.repositories import KnowledgeItemRepository
from videomind.db.session import AsyncSessionLocal, close_db, init_db
from videomind.utils.exceptions import DiscoveryError, VideoMindError
from videomind.utils.logging import configure_logging

app = typer.Typer(
    name="videomind",
    help="VideoMind - ingest web pages and media into a searchable knowledge library",
    add_completion=False,
)
console = Console()


@dataclass
class Pipeline:
    """Pipeline components wired around one database session."""

    store: KnowledgeItemRepository
    analysis: AnalysisClient
    fetcher: ProxyFetcher
    orchestrator: ScrapeOrchestrator
    discoverer: LinkDiscoverer
    media: ExternalMediaIngestor
    video: VideoIngestor


def build_pipeline(session: AsyncSession, user_id: str) -> Pipeline:
    """Wire the ingestion pipeline with settings-derived collaborators."""
    store = KnowledgeItemRepository(session)
    analysis = AnalysisClient()
    fetcher = ProxyFetcher()
    orchestrator = ScrapeOrchestrator(
        fetcher=fetcher,
        extractor=ContentExtractor(),
        analysis=analysis,
        store=store,
        user_id=user_id,
    )
    return Pipeline(
        store=store,
        analysis=analysis,
        fetcher=fetcher,
        orchestrator=orchestrator,
        discoverer=LinkDiscoverer(analysis=analysis, fetcher=fetcher),
        media=ExternalMediaIngestor(analysis=analysis, store=store, user_id=user_id),
        video=VideoIngestor(analysis=analysis, store=store, user_id=user_id),
    )


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        console.print(f"[bold cyan]VideoMind[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """VideoMind - ingest web pages and media into a searchable knowledge library."""
    configure_logging(log_level=settings.log_level, environment=settings.environment)


def validate_environment(require_openai: bool = True) -> None:
    """
    Validate required environment configuration.

    Raises:
        typer.Exit: If validation fails
    """
    errors = []

    if require_openai and (
        settings.openai_api_key is None or not settings.openai_api_key.get_secret_value()
    ):
        errors.append("OPENAI_API_KEY not set")

    if not settings.database_url:
        errors.append("DATABASE_URL not set")

    if errors:
        console.print("\n[bold red]Configuration Errors:[/bold red]")
        for error in errors:
            console.print(f"  • {error}")
        console.print("\n[yellow]Hint:[/yellow] Check your .env file or environment variables")
        raise typer.Exit(code=1)


def run_async(coro, action: str):
    """Run a coroutine, translating interrupts and failures into exit codes."""

    async def _run():
        try:
            return await coro
        finally:
            await close_db()

    try:
        return asyncio.run(_run())
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Cancelled by user (Ctrl+C)[/yellow]")
        raise typer.Exit(code=130) from None
    except VideoMindError as e:
        console.print(f"\n[bold red]{action} Failed:[/bold red] {e}")
        raise typer.Exit(code=1) from None
    except Exception as e:
        console.print(f"\n[bold red]{action} Failed:[/bold red]")
        console.print(f"  {type(e).__name__}: {e}")
        console.print("\n[yellow]Hint:[/yellow] Check logs for more details or retry")
        raise typer.Exit(code=1) from None


def describe_batch(summary: BatchSummary) -> tuple[str, str]:
    """Message and border style for a batch's terminal status."""
    if summary.status is BatchStatus.ALL_FAILED:
        return (
            f"[bold red]All nodes blocked[/bold red]: 0 of {summary.total} pages ingested",
            "red",
        )
    if summary.status is BatchStatus.COMPLETED_WITH_FAILURES:
        return (
            f"[bold yellow]Partial success[/bold yellow]: {summary.succeeded} ingested, "
            f"{summary.failed} failed of {summary.total}",
            "yellow",
        )
    return (
        f"[bold green]Batch complete[/bold green]: "
        f"{summary.succeeded} of {summary.total} pages ingested",
        "green",
    )


@app.command(name="init-db")
def init_db_command() -> None:
    """Create the knowledge library tables."""
    validate_environment(require_openai=False)
    run_async(init_db(), "Database Initialization")
    console.print("[green]✓ Database tables ready[/green]")


@app.command()
def scrape(
    url: Annotated[str, typer.Argument(help="Page URL to ingest (scheme optional)")],
    instruction: Annotated[
        str,
        typer.Option("--instruction", "-i", help="What the analysis should extract"),
    ] = "",
    selector: Annotated[
        str | None,
        typer.Option("--selector", "-s", help="CSS selector scoping the extracted text"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Library owner (default: DEFAULT_USER_ID)"),
    ] = None,
) -> None:
    """
    Scrape a single web page into the library.

    Examples:
        videomind scrape example.com/blog/post-1
        videomind scrape https://docs.example.com/guide -s "main .content" -i "List the API calls"
    """
    validate_environment()

    async def run_scrape():
        async with AsyncSessionLocal() as session:
            pipeline = build_pipeline(session, user or settings.default_user_id)
            return await pipeline.orchestrator.scrape_one(url, instruction, selector)

    with console.status(f"Ingesting {url}..."):
        item = run_async(run_scrape(), "Scrape")

    console.print(
        Panel.fit(
            f"[bold green]✓ Page ingested[/bold green]\n\n"
            f"ID: {item.id}\n"
            f"Title: {item.title}\n"
            f"Characters: {item.size}\n"
            f"Keywords: {', '.join(item.keywords) or 'N/A'}",
            title="Success",
            border_style="green",
        )
    )


@app.command()
def media(
    url: Annotated[str, typer.Argument(help="Social-media or video URL")],
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Library owner (default: DEFAULT_USER_ID)"),
    ] = None,
) -> None:
    """Ingest an external media URL (YouTube, TikTok, Vimeo, ...) from its public metadata."""
    validate_environment()
    if not is_social_url(url):
        console.print(
            "[yellow]URL does not look like a media platform; "
            "use 'videomind scrape' for regular web pages.[/yellow]"
        )

    async def run_media():
        async with AsyncSessionLocal() as session:
            pipeline = build_pipeline(session, user or settings.default_user_id)
            return await pipeline.media.ingest(url)

    with console.status(f"Analyzing {url}..."):
        item = run_async(run_media(), "Media Ingestion")

    console.print(
        Panel.fit(
            f"[bold green]✓ Media ingested[/bold green]\n\nID: {item.id}\nTitle: {item.title}",
            title="Success",
            border_style="green",
        )
    )


@app.command()
def upload(
    path: Annotated[
        Path,
        typer.Argument(help="Video file to upload (mp4, mpeg, webm)", dir_okay=False),
    ],
    mime_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help="Video MIME type (guessed from the extension)"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Library owner (default: DEFAULT_USER_ID)"),
    ] = None,
) -> None:
    """
    Transcribe and analyze a local video file into the library.

    Examples:
        videomind upload ~/Movies/standup.mp4
        videomind upload recording.bin --type video/webm
    """
    validate_environment()

    async def run_upload():
        async with AsyncSessionLocal() as session:
            pipeline = build_pipeline(session, user or settings.default_user_id)
            return await pipeline.video.ingest(path, mime_type)

    with console.status(f"Transcribing {path.name}..."):
        item = run_async(run_upload(), "Upload")

    console.print(
        Panel.fit(
            f"[bold green]✓ Video ingested[/bold green]\n\n"
            f"ID: {item.id}\n"
            f"Title: {item.title}\n"
            f"Type: {item.type}\n"
            f"Bytes: {item.size}\n"
            f"Keywords: {', '.join(item.keywords) or 'N/A'}",
            title="Success",
            border_style="green",
        )
    )


@app.command()
def discover(
    url: Annotated[str, typer.Argument(help="Domain or site URL to map")],
    ingest: Annotated[
        bool,
        typer.Option("--ingest", help="Scrape the selected links after discovery"),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Only select the first N discovered links"),
    ] = None,
    instruction: Annotated[
        str,
        typer.Option("--instruction", "-i", help="What the analysis should extract"),
    ] = "",
    selector: Annotated[
        str | None,
        typer.Option("--selector", "-s", help="CSS selector scoping the extracted text"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Library owner (default: DEFAULT_USER_ID)"),
    ] = None,
) -> None:
    """
    Discover content pages on a site and optionally ingest them.

    Examples:
        videomind discover example.com
        videomind discover https://blog.example.com --ingest --limit 10
    """
    validate_environment()

    async def run_discover() -> tuple[DiscoverySession, BatchSummary | None]:
        async with AsyncSessionLocal() as session:
            pipeline = build_pipeline(session, user or settings.default_user_id)

            with console.status("Mapping site (search, crawl, prediction)..."):
                result = await pipeline.discoverer.run(url)

            discovery = DiscoverySession.start(result.links)
            if limit is not None:
                discovery.select_only(link.url for link in result.links[:limit])

            if discovery.is_empty:
                for phase, error in result.phase_errors.items():
                    console.print(f"[dim]  {phase.value}: {error}[/dim]")
                raise DiscoveryError(
                    "Zero paths found. The domain may be strictly protected."
                )

            table = Table(title=f"Discovered Links ({len(result.links)} total)")
            table.add_column("#", justify="right", style="dim")
            table.add_column("Title", style="cyan", max_width=40)
            table.add_column("URL", style="white", no_wrap=False)
            table.add_column("Selected", justify="center")
            for index, link in enumerate(discovery.links, start=1):
                selected = "✓" if link.url in discovery.selected else ""
                table.add_row(str(index), link.title, link.url, selected)
            console.print("\n", table, "\n")

            if not ingest:
                return discovery, None

            ingestor = BatchIngestor(pipeline.orchestrator)
            with Progress(
                TextColumn("[bold cyan]Ingesting"),
                BarColumn(),
                MofNCompleteColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("ingest", total=len(discovery.selected))
                summary = await ingestor.ingest_all(
                    discovery.selected_urls(),
                    instruction=instruction,
                    selector=selector,
                    on_progress=lambda completed, total: progress.update(
                        task, completed=completed, total=total
                    ),
                )
            discovery.clear()
            return discovery, summary

    discovery, summary = run_async(run_discover(), "Discovery")

    if summary is None:
        console.print(
            f"[dim]{len(discovery.selected)} links selected. "
            "Run again with --ingest to scrape them[/dim]\n"
        )
        return

    message, style = describe_batch(summary)
    console.print(Panel.fit(message, title="Batch Result", border_style=style))
    if summary.status is BatchStatus.ALL_FAILED:
        raise typer.Exit(code=1)


@app.command(name="list")
def list_items(
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Library owner (default: DEFAULT_USER_ID)"),
    ] = None,
) -> None:
    """List items in the knowledge library."""
    validate_environment(require_openai=False)

    async def run_list():
        async with AsyncSessionLocal() as session:
            return await KnowledgeItemRepository(session).get_all(user or settings.default_user_id)

    items = run_async(run_list(), "List")
    if not items:
        console.print("\n[yellow]Library empty.[/yellow]")
        console.print(
            "[dim]Run 'videomind scrape <url>', 'videomind discover <url>' "
            "or 'videomind upload <file>' to add items[/dim]\n"
        )
        return

    table = Table(title=f"Knowledge Library ({len(items)} items)")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Type", style="green")
    table.add_column("Source", style="white", max_width=40)
    table.add_column("Added", style="dim")
    for item in items:
        table.add_row(
            item.id,
            item.title,
            item.type,
            item.external_url or item.file_name,
            item.upload_date.strftime("%Y-%m-%d"),
        )
    console.print("\n", table, "\n")


@app.command()
def show(item_id: Annotated[str, typer.Argument(help="Item ID")]) -> None:
    """Show a stored item's summary, keywords and extracted data."""
    validate_environment(require_openai=False)

    async def run_show():
        async with AsyncSessionLocal() as session:
            return await KnowledgeItemRepository(session).get(item_id)

    item = run_async(run_show(), "Show")
    if item is None:
        console.print(f"[bold red]Item not found:[/bold red] {item_id}")
        raise typer.Exit(code=1)

    body = (
        f"[bold]{item.title}[/bold]\n"
        f"{item.external_url or item.file_name}\n\n"
        f"[bold]Summary[/bold]\n{item.summary}\n\n"
        f"[bold]Keywords[/bold]\n{', '.join(item.keywords) or 'N/A'}"
    )
    if item.scraped_content:
        body += f"\n\n[bold]Extracted Data[/bold]\n{item.scraped_content}"
    console.print(Panel(body, title=item.type, border_style="cyan"))


@app.command()
def delete(item_id: Annotated[str, typer.Argument(help="Item ID")]) -> None:
    """Delete an item from the library."""
    validate_environment(require_openai=False)

    async def run_delete() -> bool:
        async with AsyncSessionLocal() as session:
            return await KnowledgeItemRepository(session).delete(item_id)

    if not run_async(run_delete(), "Delete"):
        console.print(f"[bold red]Item not found:[/bold red] {item_id}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Deleted {item_id}[/green]")


@app.command()
def ask(
    question: Annotated[str, typer.Argument(help="Question about your library")],
    item_id: Annotated[
        str | None,
        typer.Option("--item", help="Ask about one item using its full content"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Library owner (default: DEFAULT_USER_ID)"),
    ] = None,
) -> None:
    """
    Ask a question answered from your library, or from a single item.

    Examples:
        videomind ask "Which posts cover asyncio?"
        videomind ask "What are the action items?" --item 3f2a...
    """
    validate_environment()

    async def run_ask() -> str | None:
        async with AsyncSessionLocal() as session:
            pipeline = build_pipeline(session, user or settings.default_user_id)
            if item_id is not None:
                item = await pipeline.store.get(item_id)
                if item is None:
                    return None
                return await pipeline.analysis.ask_item(question, item)

            items = await pipeline.store.get_all(user or settings.default_user_id)
            if not items:
                return None
            return await pipeline.analysis.ask_library(question, items)

    with console.status("Searching library..."):
        answer = run_async(run_ask(), "Query")

    if answer is None:
        if item_id is not None:
            console.print(f"[bold red]Item not found:[/bold red] {item_id}")
        else:
            console.print("[yellow]Library empty - nothing to answer from.[/yellow]")
        raise typer.Exit(code=1)
    console.print(Panel(answer, title="Answer", border_style="cyan"))


if __name__ == "__main__":
    app()
