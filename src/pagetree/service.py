"""Retrieval service.

Glues the indexer, the searcher and the tree cache together: a document is indexed at most once
per process (per content fingerprint), then queried as often as needed.
"""

from __future__ import annotations

from pagetree.config import Settings
from pagetree.core.cache import CachedTree, TreeCache
from pagetree.indexing.indexer import IndexerOptions, TreeIndexer
from pagetree.llm.client import ReasoningClient
from pagetree.logging import document_context, get_logger
from pagetree.models.document import Document
from pagetree.models.search import SearchResult
from pagetree.retrieval.searcher import SearchOptions, TreeSearcher

logger = get_logger(__name__)


class RetrievalService:
    """Index-once, query-many front end over a reasoning collaborator."""

    def __init__(
        self,
        indexer: TreeIndexer,
        searcher: TreeSearcher,
        cache: TreeCache | None = None,
    ) -> None:
        self.indexer = indexer
        self.searcher = searcher
        self.cache = cache or TreeCache()

    @classmethod
    def from_settings(cls, settings: Settings, client: ReasoningClient) -> "RetrievalService":
        """Wire a service from settings around one collaborator client."""

        return cls(
            indexer=TreeIndexer(client, IndexerOptions.from_settings(settings)),
            searcher=TreeSearcher(client, SearchOptions.from_settings(settings)),
            cache=TreeCache(settings.cache_max_entries),
        )

    async def index(self, document: Document) -> CachedTree:
        """Return the tree for `document`, building it on first use."""

        return await self.cache.get_or_build(document, self.indexer.index)

    async def query(
        self,
        document: Document,
        query: str,
        with_content: bool = True,
    ) -> list[SearchResult]:
        """Answer `query` against `document`, indexing it first if needed.

        Raises:
            ResponseParseError: If a collaborator response cannot be parsed.
            TransportError: If the collaborator cannot be reached.
        """

        cached = await self.index(document)
        with document_context(document=document.name, op="query"):
            logger.debug("Querying '%s' (%d sections)", document.name, cached.tree.node_count())
            if with_content:
                return await self.searcher.search_with_content(cached.tree, cached.document, query)
            return await self.searcher.search(cached.tree, query)
