"""CLI entrypoints for pagetree."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pagetree.config import Settings, load_settings
from pagetree.errors import ConfigError, IndexNotFoundError, PageTreeError
from pagetree.indexing.indexer import IndexerOptions, TreeIndexer
from pagetree.llm.client import OpenAIReasoningClient
from pagetree.logging import configure_logging, get_logger
from pagetree.models.document import Document
from pagetree.models.search import Relevance, SearchResult
from pagetree.persistence import load_tree, save_tree, tree_size
from pagetree.retrieval.searcher import SearchOptions, TreeSearcher

app = typer.Typer(add_completion=False, help="pagetree: reasoning-based document tree index")
logger = get_logger(__name__)

CONTENT_PREVIEW_CHARS = 500


def _setup() -> Settings:
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=1)


def _unescape(text: str) -> str:
    # lets "--delimiter '\f'" mean a form feed
    return text.encode("latin-1", "backslashreplace").decode("unicode_escape")


@app.command()
def index(
    document: Path = typer.Argument(..., help="UTF-8 text document to index"),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Index file (.json, or .bin/.pkl for binary). Defaults to PAGETREE_DEFAULT_INDEX_PATH",
    ),
    delimiter: str | None = typer.Option(
        None,
        "--delimiter",
        help="Page delimiter, backslash escapes allowed (default: form feed)",
    ),
    summaries: bool = typer.Option(False, "--summaries", help="Generate a summary per section"),
    verify: bool = typer.Option(False, "--verify", help="Verify and fix section start pages"),
) -> None:
    """Build a tree index for a document and save it."""

    settings = _setup()
    output = output or settings.default_index_path
    page_delimiter = _unescape(delimiter) if delimiter is not None else settings.page_delimiter

    try:
        doc = Document.from_file(document, delimiter=page_delimiter)
        client = OpenAIReasoningClient(settings)
        options = IndexerOptions.from_settings(settings)
        options = replace(
            options,
            verify_pages=options.verify_pages or verify,
            generate_summaries=options.generate_summaries or summaries,
        )
        logger.info("Indexing %s (%d pages)", document, doc.page_count())
        tree = asyncio.run(TreeIndexer(client, options).index(doc))
        save_tree(tree, output)
    except (OSError, UnicodeDecodeError) as exc:
        raise _fail(f"Could not read {document}: {exc}") from exc
    except PageTreeError as exc:
        raise _fail(str(exc)) from exc

    typer.echo(tree.format())
    typer.echo(str(output))


@app.command()
def search(
    query: str = typer.Argument(..., help="Question to answer"),
    index_path: Path | None = typer.Option(None, "--index", "-i", help="Index file to search"),
    top_k: int | None = typer.Option(None, "--top-k", "-k", min=1, help="Maximum number of results"),
    min_relevance: Relevance | None = typer.Option(
        None,
        "--min-relevance",
        case_sensitive=False,
        help="Lowest relevance to keep",
    ),
    with_content: bool = typer.Option(False, "--with-content", help="Show the text of each result"),
    document: Path | None = typer.Option(
        None,
        "--document",
        "-d",
        help="Source document (required with --with-content)",
    ),
    delimiter: str | None = typer.Option(
        None,
        "--delimiter",
        help="Page delimiter of --document, backslash escapes allowed (default: form feed)",
    ),
) -> None:
    """Search an index with a natural-language query."""

    if with_content and document is None:
        raise _fail("--with-content requires --document")

    settings = _setup()
    index_path = index_path or settings.default_index_path
    defaults = SearchOptions.from_settings(settings)
    options = SearchOptions(
        top_k=top_k or defaults.top_k,
        min_relevance=min_relevance or defaults.min_relevance,
    )
    page_delimiter = _unescape(delimiter) if delimiter is not None else settings.page_delimiter

    try:
        tree = load_tree(index_path)
        searcher = TreeSearcher(OpenAIReasoningClient(settings), options)
        if with_content and document is not None:
            doc = Document.from_file(document, delimiter=page_delimiter)
            results = asyncio.run(searcher.search_with_content(tree, doc, query))
        else:
            results = asyncio.run(searcher.search(tree, query))
    except IndexNotFoundError as exc:
        raise _fail(f"{exc}. Run 'pagetree index' first.") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise _fail(f"Could not read {document}: {exc}") from exc
    except PageTreeError as exc:
        raise _fail(str(exc)) from exc

    _print_results(results)


def _print_results(results: list[SearchResult]) -> None:
    console = Console()
    if not results:
        console.print("No relevant sections found.")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Section")
    table.add_column("Pages")
    table.add_column("Relevance")
    table.add_column("Reason")
    for n, r in enumerate(results, start=1):
        table.add_row(str(n), escape(r.title), f"{r.start_index}-{r.end_index}", r.relevance.value, escape(r.reason))
    console.print(table)

    for n, r in enumerate(results, start=1):
        if r.content is None:
            continue
        preview = r.content[:CONTENT_PREVIEW_CHARS]
        if len(r.content) > CONTENT_PREVIEW_CHARS:
            preview += "..."
        console.rule(f"[bold]{n}. {escape(r.title)}[/bold]")
        console.print(preview or "[dim](no content)[/dim]", markup=False)


@app.command()
def show(
    index_path: Path = typer.Argument(..., help="Index file"),
    as_json: bool = typer.Option(False, "--json", help="Print the stored JSON form"),
) -> None:
    """Print the tree stored in an index file."""

    _setup()
    try:
        tree = load_tree(index_path)
    except PageTreeError as exc:
        raise _fail(str(exc)) from exc
    typer.echo(tree.to_json() if as_json else tree.format())


@app.command()
def info(index_path: Path = typer.Argument(..., help="Index file")) -> None:
    """Print statistics about an index file."""

    _setup()
    try:
        tree = load_tree(index_path)
        size = tree_size(index_path)
    except PageTreeError as exc:
        raise _fail(str(exc)) from exc

    typer.echo(f"Name:       {tree.name}")
    typer.echo(f"Pages:      {tree.total_pages}")
    typer.echo(f"Sections:   {tree.node_count()}")
    typer.echo(f"Top-level:  {len(tree.nodes)}")
    typer.echo(f"Leaves:     {len(tree.leaves())}")
    typer.echo(f"Max depth:  {tree.max_depth()}")
    typer.echo(f"File size:  {size} bytes")


@app.command()
def test() -> None:
    """Check that the reasoning collaborator answers."""

    settings = _setup()
    try:
        client = OpenAIReasoningClient(settings)
        asyncio.run(client.test_connection())
    except ConfigError as exc:
        raise _fail(str(exc)) from exc
    except PageTreeError as exc:
        raise _fail(f"Connection failed: {exc}") from exc
    typer.echo(f"Connection OK (model: {client.model})")


if __name__ == "__main__":
    app()
