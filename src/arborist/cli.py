"""Command line interface for Arborist."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import tomli_w
import typer
from rich.console import Console
from rich.table import Table

from arborist.config import AppConfig, load_config
from arborist.embedding.encoder import EmbeddingConfig, EmbeddingModel, SparseEmbeddingModel
from arborist.embedding.generator import EmbeddingGenerator
from arborist.errors import ArboristError, ConfigError
from arborist.index.indexer import Indexer, IndexStats
from arborist.index.search import QueryEngine
from arborist.index.storage import QdrantIndexStore
from arborist.ingestion.extractor import ContentExtractor
from arborist.ingestion.scanner import DirectoryScanner, DirScanResult
from arborist.llm.client import OllamaClient
from arborist.llm.summarizer import Summarizer
from arborist.utils.text import Chunker


console = Console()
app = typer.Typer(help="Arborist - semantic index of your files")

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to a config.toml file")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    for name in ("httpx", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _load_config(path: Optional[Path]) -> AppConfig:
    try:
        config, _ = load_config(path)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    return config


def _build_embeddings(config: AppConfig) -> EmbeddingGenerator:
    dense = EmbeddingModel(EmbeddingConfig(model_name=config.scan.embedding_model))
    sparse = SparseEmbeddingModel(config.scan.sparse_model)
    chunker = Chunker(config.scan.tokenizer_name, config.scan.max_tokens)
    return EmbeddingGenerator(dense, sparse, chunker)


def _build_store(config: AppConfig) -> QdrantIndexStore:
    return QdrantIndexStore.connect(
        config.db_url,
        config.collection_name,
        timeout=config.db_timeout,
        hnsw_ef=config.query.hnsw_ef,
    )


def _print_scan_result(result: DirScanResult, show_lists: bool) -> None:
    table = Table(title="Directory Scan Results", show_header=True, header_style="bold magenta")
    table.add_column("Extension")
    table.add_column("Files", justify="right")
    for ext, count in result.extension_counts:
        table.add_row(f".{ext}", str(count))
    console.print(table)
    console.print(
        f"Total files: {result.file_count}, total folders: {result.folder_count}, "
        f"scan took {result.elapsed:.2f}s"
    )
    if show_lists:
        for path in result.folder_list:
            console.print(f"[blue]{path}[/blue]")
        for path in result.file_list:
            console.print(path)


def _print_index_stats(stats: IndexStats) -> None:
    for path in stats.skipped_files:
        console.print(f"[dim]Skipped {path}: already indexed[/dim]")
    for path, reason in stats.failures:
        console.print(f"[yellow]Skipped {path}: {reason}[/yellow]")
    if stats.nothing_indexed:
        console.print("[yellow]Nothing indexed.[/yellow]")
    console.print(
        f"Inserted: {stats.inserted}, already indexed: {stats.skipped}, failed: {stats.failed}"
    )


@app.command()
def scan(
    path: Path = typer.Argument(..., help="Directory to index.", resolve_path=True),
    force: bool = typer.Option(False, "--force", help="Re-index files that are already indexed"),
    folder_summaries: bool = typer.Option(
        False, "--folder-summaries", help="Also print a summary for every folder"
    ),
    show_lists: bool = typer.Option(False, "--show-lists", help="Print scanned file and folder paths"),
    config_path: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Scan a directory, summarize and embed its files, and index them."""
    _setup_logging(verbose)
    config = _load_config(config_path)

    if not path.is_dir():
        raise typer.BadParameter(f"Not a directory: {path}")

    client = OllamaClient(config.llm_url, timeout=config.llm_timeout)
    if not client.is_available():
        console.print(f"[red]Language model service unreachable at {config.llm_url}[/red]")
        raise typer.Exit(code=1)

    scanner = DirectoryScanner(
        path,
        skip_hidden=config.scan.skip_hidden,
        skip_dirs=config.scan.skip_dirs,
        max_depth=config.scan.max_depth,
    )
    result = scanner.scan()
    _print_scan_result(result, show_lists)

    store = _build_store(config)
    try:
        store.ensure_collection()
        embeddings = _build_embeddings(config)
        summarizer = Summarizer(
            client,
            ContentExtractor(),
            model=config.scan.model_name,
            vision_model=config.scan.vision_model,
            max_content_chars=config.scan.max_content_chars,
        )
        indexer = Indexer(summarizer, embeddings, store, force=force)

        console.print(f"Indexing {result.file_count} files into [bold]{config.collection_name}[/bold]...")
        stats = indexer.index(result.files)
        _print_index_stats(stats)

        if folder_summaries:
            for folder in result.folders:
                try:
                    summarizer.summarize_folder(folder)
                except ArboristError as exc:
                    console.print(f"[yellow]No summary for {folder.path}: {exc}[/yellow]")
                    continue
                console.print(f"[bold]{folder.path}[/bold]\n{folder.summary}\n")
    except ArboristError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()
        client.close()


@app.command()
def query(
    text: str = typer.Argument(..., help="Query text"),
    top_k: Optional[int] = typer.Option(None, "--top-k", min=1, help="Number of results to display"),
    sparse: bool = typer.Option(False, "--sparse", help="Match on lexical (sparse) vectors"),
    config_path: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Find the indexed files that best match a query."""
    _setup_logging(verbose)
    config = _load_config(config_path)

    store = _build_store(config)
    try:
        engine = QueryEngine(_build_embeddings(config), store, top_k=config.query.top_k_results)
        results = engine.search(text, top_k=top_k, sparse=sparse)
    except ArboristError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("File")
    table.add_column("Summary")
    for result in results:
        snippet = result.summary.replace("\n", " ")
        table.add_row(f"{result.score:.4f}", str(result.path), snippet[:180])
    console.print(table)


@app.command()
def prune(
    config_path: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Remove indexed files that no longer exist on disk."""
    _setup_logging(verbose)
    config = _load_config(config_path)

    store = _build_store(config)
    try:
        removed = store.remove_missing_files()
    except ArboristError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()
    console.print(f"Removed {removed} orphaned files.")


@app.command("config")
def show_config(config_path: Optional[Path] = CONFIG_OPTION) -> None:
    """Print the effective configuration."""
    try:
        config, source = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    console.print(f"# {source}")
    console.print(tomli_w.dumps(config.to_dict()), markup=False, highlight=False)
