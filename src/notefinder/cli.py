"""Command line interface for NoteFinder."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from notefinder.config import AppConfig, load_config
from notefinder.errors import ConfigurationError, SnapshotError
from notefinder.index.indexer import Indexer, IndexStats
from notefinder.index.persistent import FileVectorStore
from notefinder.models import SearchResult
from notefinder.search.engine import SearchEngine
from notefinder.search.factory import create_search_engine, parse_search_mode

console = Console()
app = typer.Typer(help="NoteFinder - local hybrid search for Markdown notes")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_app_config(config_path: Path | None) -> AppConfig:
    try:
        return load_config(config_path)
    except (ConfigurationError, OSError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _build_engine(config: AppConfig, mode: str | None) -> SearchEngine:
    try:
        return create_search_engine(config, parse_search_mode(mode) if mode else None, base_dir=Path.cwd())
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _inputs_or_configured(inputs: Sequence[Path] | None, config: AppConfig) -> List[Path]:
    if inputs:
        return list(inputs)
    return [path for path in config.knowledge_paths if path.exists()]


async def _run_index(engine: SearchEngine, indexer: Indexer, paths: List[Path]) -> IndexStats:
    try:
        return await indexer.index(paths)
    finally:
        await engine.dispose()


async def _run_search(
    engine: SearchEngine, indexer: Indexer, paths: List[Path], query: str, limit: int
) -> List[SearchResult]:
    try:
        await indexer.index(paths)
        return await engine.search(query, limit=limit)
    finally:
        await engine.dispose()


def _store_for(config: AppConfig) -> FileVectorStore:
    return FileVectorStore(config.resolve_cache_path(Path.cwd()))


@app.command()
def index(
    inputs: Optional[List[Path]] = typer.Argument(
        None, help="Folders or files with Markdown notes (default: configured knowledge paths).", resolve_path=True
    ),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="keyword, semantic or hybrid"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index notes; semantic and hybrid modes store embeddings in the vector cache."""
    _setup_logging(verbose)
    config = _load_app_config(config_path)
    paths = _inputs_or_configured(inputs, config)
    if not paths:
        console.print("[yellow]No folders to index.[/yellow]")
        return

    engine = _build_engine(config, mode)
    indexer = Indexer(engine, ignore_patterns=config.ignore_patterns, max_file_size_mb=config.max_file_size_mb)

    console.print(f"Indexing [bold]{len(paths)}[/bold] location(s)...")
    stats = asyncio.run(_run_index(engine, indexer, paths))
    console.print(f"Loaded: {stats.loaded}, skipped: {stats.skipped}, failed: {stats.failed}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    inputs: Optional[List[Path]] = typer.Argument(
        None, help="Folders or files to search (default: configured knowledge paths).", resolve_path=True
    ),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="keyword, semantic or hybrid"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of results to display"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search notes by keyword, meaning, or both."""
    _setup_logging(verbose)
    config = _load_app_config(config_path)
    paths = _inputs_or_configured(inputs, config)
    if not paths:
        raise typer.BadParameter("No folders to search")

    engine = _build_engine(config, mode)
    indexer = Indexer(engine, ignore_patterns=config.ignore_patterns, max_file_size_mb=config.max_file_size_mb)
    results = asyncio.run(_run_search(engine, indexer, paths, query, limit or config.max_results))
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Line")
    table.add_column("Snippet")

    for result in results:
        document = result.document
        first = result.matches[0] if result.matches else None
        snippet = first.snippet.replace("\n", " ") if first else ""
        table.add_row(
            f"{result.score:.4f}",
            document.relative_path or document.path,
            str(first.line_number) if first else "",
            snippet[:180],
        )

    console.print(table)


@app.command()
def backup(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Backup file path"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
) -> None:
    """Copy the vector cache snapshot."""
    store = _store_for(_load_app_config(config_path))
    try:
        target = store.backup(output)
    except SnapshotError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"Backup written to [bold]{target}[/bold]")


@app.command()
def restore(
    backup_path: Path = typer.Argument(..., help="Backup file to restore", exists=True, dir_okay=False),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
) -> None:
    """Replace the vector cache snapshot with a backup."""
    store = _store_for(_load_app_config(config_path))
    try:
        store.restore(backup_path)
    except SnapshotError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"Restored {store.size()} vectors into [bold]{store.path}[/bold]")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    from notefinder.web.app import create_app

    config = _load_app_config(config_path)
    console.print(f"Starting web interface on http://{host}:{port}")
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
