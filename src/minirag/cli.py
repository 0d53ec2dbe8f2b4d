"""
Command-line interface for minirag.

Commands:
    ingest    - Scrape URLs and add them to the vector store
    ask       - Answer a question from the stored passages
    serve     - Start the FastAPI server
    version   - Show version information
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from minirag.exceptions import RAGError

app = typer.Typer(
    name="minirag",
    help="Minimal retrieval-augmented generation pipeline",
    add_completion=False,
)
console = Console()


def _pipeline():
    from minirag.config import settings
    from minirag.logging_config import configure_logging
    from minirag.pipeline import Pipeline

    configure_logging(settings.log_level)
    return Pipeline.from_settings(settings)


@app.command()
def ingest(
    urls: list[str] = typer.Argument(None, help="URLs to ingest"),
    url_file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="File with one URL per line"
    ),
) -> None:
    """Scrape URLs, chunk and embed them, and store the records."""
    all_urls = list(urls or [])
    if url_file is not None:
        if not url_file.exists():
            console.print(f"[red]URL file not found: {url_file}[/red]")
            raise typer.Exit(1)
        lines = url_file.read_text(encoding="utf-8").splitlines()
        all_urls.extend(line.strip() for line in lines if line.strip() and not line.startswith("#"))

    if not all_urls:
        console.print("[red]No URLs given.[/red]")
        raise typer.Exit(1)

    pipeline = _pipeline()
    console.print(f"[blue]Ingesting {len(all_urls)} URLs into '{pipeline.config.collection_name}'...[/blue]\n")

    try:
        with console.status("[bold green]Ingesting..."):
            report = asyncio.run(pipeline.run_ingestion(all_urls))
    except RAGError as e:
        console.print(f"[red]Ingestion failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    table = Table(title="Ingestion Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Documents", str(report.documents_processed))
    table.add_row("Chunks", str(report.chunks_created))
    table.add_row("Records inserted", str(report.records_inserted))
    table.add_row("Errors", str(len(report.errors)))
    console.print(table)

    if report.errors:
        console.print("\n[yellow]Errors:[/yellow]")
        for error in report.errors:
            where = f" chunk {error.sequence_index}" if error.sequence_index is not None else ""
            console.print(f"  • \\[{error.stage}] {error.source}{where}: {escape(error.message)}")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Passages to retrieve"),
    sources: bool = typer.Option(False, "--sources", "-s", help="Show retrieved passages"),
) -> None:
    """Answer a question from the ingested documents."""
    pipeline = _pipeline()

    console.print(f"[blue]Question:[/blue] {question}\n")

    try:
        with console.status("[bold green]Thinking..."):
            result = asyncio.run(pipeline.ask_question_with_sources(question, k))
    except RAGError as e:
        console.print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid question: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print("[green]Answer:[/green]")
    console.print(result.answer)

    if sources:
        console.print()
        table = Table(title="Sources")
        table.add_column("#", style="dim")
        table.add_column("Score", style="cyan")
        table.add_column("Source", style="green")
        table.add_column("Passage")
        for i, passage in enumerate(result.passages, start=1):
            preview = passage.text[:120].replace("\n", " ")
            table.add_row(str(i), f"{passage.score:.3f}", passage.source, preview)
        console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind"),
    port: Optional[int] = typer.Option(None, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Start the FastAPI server."""
    import uvicorn

    from minirag.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[green]Starting minirag server on {host}:{port}[/green]")

    uvicorn.run(
        "minirag.api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1,  # the FAISS store lives in process memory
    )


@app.command()
def version() -> None:
    """Show version information."""
    from minirag import __version__

    console.print(f"minirag v{__version__}")


if __name__ == "__main__":
    app()
