"""Tree indexer.

Drives the reasoning collaborator to turn a document into a :class:`DocumentTree`:

1. pages are wrapped in page markers and grouped into chunks that fit the token budget;
2. the first chunk is sent with the "generate structure" prompt, every further chunk with the
   "continue structure" prompt and the descriptors collected so far;
3. optionally, each descriptor's start page is checked against the page text and re-located when
   the title is not found there;
4. the descriptors go through :func:`build_tree_from_toc`, nodes get ids and, optionally, summaries.

Collaborator calls are issued one at a time.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Sequence

from pydantic import ValidationError

from pagetree.config import Settings
from pagetree.errors import ResponseParseError
from pagetree.indexing.builder import build_tree_from_toc
from pagetree.llm import prompts
from pagetree.llm.client import ReasoningClient
from pagetree.logging import document_context, get_logger, set_op
from pagetree.models.document import Document, Page
from pagetree.models.toc import PageRef, RawTocItem, resolve_page_ref
from pagetree.models.tree import DocumentTree
from pagetree.utils.json_extract import loads_json

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexerOptions:
    """Options for tree index generation."""

    max_tokens_per_chunk: int = 20000
    verify_pages: bool = False
    max_fix_attempts: int = 3
    generate_summaries: bool = False
    summary_max_chars: int = 8000

    @classmethod
    def from_settings(cls, settings: Settings) -> "IndexerOptions":
        return cls(
            max_tokens_per_chunk=settings.index_max_tokens_per_chunk,
            verify_pages=settings.index_verify_pages,
            max_fix_attempts=settings.index_max_fix_attempts,
            generate_summaries=settings.index_generate_summaries,
        )


def group_pages(pages: Sequence[Page], max_tokens: int, overlap_pages: int = 1) -> list[str]:
    """Split marker-wrapped pages into chunks that respect a token budget.

    Chunks are balanced around the average size needed to cover the document and consecutive
    chunks share `overlap_pages` pages, so a section starting at a chunk boundary is still seen
    with its context.

    Args:
        pages: Document pages in order.
        max_tokens: Token budget per chunk.
        overlap_pages: Pages repeated at the start of each following chunk.

    Returns:
        Chunk texts in document order.
    """

    texts = [p.with_markers() for p in pages]
    tokens = [p.token_estimate for p in pages]
    total = sum(tokens)
    if total <= max_tokens:
        return ["".join(texts)]

    expected_parts = math.ceil(total / max_tokens)
    target = math.ceil(((total / expected_parts) + max_tokens) / 2)

    chunks: list[str] = []
    current: list[str] = []
    current_tokens = 0
    for i, (text, n_tokens) in enumerate(zip(texts, tokens)):
        if current and current_tokens + n_tokens > target:
            chunks.append("".join(current))
            overlap_start = max(i - overlap_pages, 0)
            current = list(texts[overlap_start:i])
            current_tokens = sum(tokens[overlap_start:i])
        current.append(text)
        current_tokens += n_tokens
    if current:
        chunks.append("".join(current))
    return chunks


def parse_toc_response(response: str) -> list[RawTocItem]:
    """Parse a structure-extraction response.

    Accepts a JSON array of descriptors or an object with a ``table_of_contents`` array.

    Raises:
        ResponseParseError: If the response has neither shape.
    """

    data = loads_json(response, what="TOC response")
    if isinstance(data, dict) and isinstance(data.get("table_of_contents"), list):
        data = data["table_of_contents"]
    if not isinstance(data, list):
        raise ResponseParseError("Failed to parse TOC response: expected a list of sections", response)
    try:
        return [RawTocItem.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ResponseParseError(f"Failed to parse TOC response: {exc.error_count()} invalid item(s)", response) from exc


def _parse_object(response: str, what: str) -> dict[str, Any]:
    data = loads_json(response, what=what)
    if not isinstance(data, dict):
        raise ResponseParseError(f"Failed to parse {what}: expected a JSON object", response)
    return data


class TreeIndexer:
    """Builds tree indexes by asking the reasoning collaborator for document structure."""

    def __init__(self, client: ReasoningClient, options: IndexerOptions | None = None) -> None:
        self._client = client
        self._options = options or IndexerOptions()

    @property
    def options(self) -> IndexerOptions:
        return self._options

    async def index(self, document: Document) -> DocumentTree:
        """Build a tree index for a document.

        Raises:
            ResponseParseError: If a structure response cannot be parsed.
            TransportError: If the collaborator cannot be reached.
        """

        with document_context(document=document.name, op="index"):
            items = await self.extract_toc(document)
            items = self._clamp_pages(items, document.page_count())

            if self._options.verify_pages:
                set_op("verify")
                items = await self.verify_pages(items, document)

            nodes = build_tree_from_toc(items, document.page_count())
            if not nodes:
                logger.warning("No sections extracted from '%s'", document.name)
            tree = DocumentTree(name=document.name, nodes=nodes, total_pages=document.page_count())
            tree.assign_node_ids()

            if self._options.generate_summaries:
                set_op("summarize")
                await self.add_summaries(tree, document)

            logger.info(
                "Indexed '%s': %d sections, depth %d",
                document.name,
                tree.node_count(),
                tree.max_depth(),
            )
            return tree

    async def extract_toc(self, document: Document) -> list[RawTocItem]:
        """Collect flat section descriptors for the whole document, chunk by chunk."""

        chunks = group_pages(document.pages, self._options.max_tokens_per_chunk)
        logger.info("Extracting structure from %d chunk(s)", len(chunks))

        items: list[RawTocItem] = []
        for n, chunk in enumerate(chunks):
            if n == 0:
                prompt = prompts.GENERATE_TOC_INIT.format(content=chunk)
            else:
                previous = json.dumps(
                    [item.model_dump(mode="json") for item in items],
                    indent=2,
                    ensure_ascii=False,
                )
                prompt = prompts.GENERATE_TOC_CONTINUE.format(content=chunk, previous=previous)
            response = await self._client.complete(prompts.SYSTEM_DOCUMENT_ANALYZER, prompt)
            batch = parse_toc_response(response)
            logger.debug("Chunk %d/%d yielded %d sections", n + 1, len(chunks), len(batch))
            items.extend(batch)
        return items

    @staticmethod
    def _clamp_pages(items: list[RawTocItem], total_pages: int) -> list[RawTocItem]:
        out: list[RawTocItem] = []
        for item in items:
            ref = item.physical_index
            if ref is not None and ref.page > total_pages:
                logger.info(
                    "Clamped page of '%s' from %d to last page %d",
                    item.title,
                    ref.page,
                    total_pages,
                )
                item = item.model_copy(update={"physical_index": PageRef(ref.kind, total_pages)})
            out.append(item)
        return out

    async def verify_pages(self, items: list[RawTocItem], document: Document) -> list[RawTocItem]:
        """Check each descriptor's start page and re-locate the ones whose title is not there.

        Runs up to `max_fix_attempts` fix rounds. Descriptors that still fail are kept as they are.
        """

        items = list(items)
        wrong = [i for i, item in enumerate(items) if not await self._title_on_page(item, document)]
        logger.info("Page verification: %d of %d sections misplaced", len(wrong), len(items))

        for attempt in range(self._options.max_fix_attempts):
            if not wrong:
                break
            still_wrong: list[int] = []
            for i in wrong:
                fixed = await self._fix_page(items, i, document)
                if fixed is not None:
                    items[i] = fixed
                if fixed is None or not await self._title_on_page(items[i], document):
                    still_wrong.append(i)
            logger.debug("Fix round %d: %d section(s) still misplaced", attempt + 1, len(still_wrong))
            wrong = still_wrong

        if wrong:
            logger.warning("%d section(s) could not be re-located", len(wrong))
        return items

    async def _title_on_page(self, item: RawTocItem, document: Document) -> bool:
        page = item.page_number
        if page is None:
            return False
        prompt = prompts.CHECK_TITLE_APPEARANCE.format(
            title=item.title,
            page_text=document.page_text(page, page),
        )
        response = await self._client.complete(prompts.SYSTEM_DOCUMENT_ANALYZER, prompt)
        data = _parse_object(response, "title check response")
        return str(data.get("answer", "")).strip().lower() == "yes"

    async def _fix_page(self, items: list[RawTocItem], i: int, document: Document) -> RawTocItem | None:
        total = document.page_count()
        prev_page = next((it.page_number for it in reversed(items[:i]) if it.page_number), 1)
        next_page = next((it.page_number for it in items[i + 1 :] if it.page_number), total)
        lo, hi = min(prev_page, next_page), max(prev_page, next_page)

        prompt = prompts.SINGLE_ITEM_INDEX_FIXER.format(
            title=items[i].title,
            content=document.content_range(lo, hi),
        )
        response = await self._client.complete(prompts.SYSTEM_DOCUMENT_ANALYZER, prompt)
        data = _parse_object(response, "index fixer response")
        ref = resolve_page_ref(data.get("physical_index"))
        if ref is None or not lo <= ref.page <= hi:
            return None
        return items[i].model_copy(update={"physical_index": ref})

    async def add_summaries(self, tree: DocumentTree, document: Document) -> None:
        """Annotate every node with a short summary of its pages."""

        for node in tree.iter_nodes():
            content = document.page_text(node.start_index, node.end_index)
            prompt = prompts.GENERATE_NODE_SUMMARY.format(
                title=node.title,
                content=content[: self._options.summary_max_chars],
            )
            summary = await self._client.complete(prompts.SYSTEM_DOCUMENT_ANALYZER, prompt)
            node.summary = summary.strip() or None
