"""Reasoning-based tree search.

The whole tree outline goes to the collaborator in one prompt, together with the query. The
collaborator names the sections it considers relevant; those are filtered, ranked and truncated
here, and optionally filled with the text of their pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from pydantic import BaseModel, ValidationError, field_validator

from pagetree.config import Settings
from pagetree.errors import ResponseParseError
from pagetree.llm import prompts
from pagetree.llm.client import ReasoningClient
from pagetree.logging import document_context, get_logger
from pagetree.models.document import Document
from pagetree.models.search import Relevance, SearchResult
from pagetree.models.tree import DocumentTree
from pagetree.utils.json_extract import loads_json

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchOptions:
    """Options for tree search."""

    top_k: int = 10
    min_relevance: Relevance = Relevance.LOW

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchOptions":
        return cls(
            top_k=settings.search_top_k,
            min_relevance=Relevance.parse(settings.search_min_relevance),
        )


class _RawSection(BaseModel):
    title: str
    start_index: int
    end_index: int
    relevance: Relevance
    reason: str

    @field_validator("relevance", mode="before")
    @classmethod
    def _parse_relevance(cls, value: Any) -> Any:
        # only labels are normalized; null or non-text values fail validation
        if isinstance(value, str):
            return Relevance.parse(value)
        return value


class _RawSearchResponse(BaseModel):
    thinking: Any = None
    relevant_sections: list[_RawSection]


def parse_search_response(response: str) -> list[SearchResult]:
    """Parse a tree-search response into results, in the order the collaborator gave them.

    Raises:
        ResponseParseError: If the response is not a ``relevant_sections`` object. Nothing is
            partially parsed.
    """

    data = loads_json(response, what="search response")
    try:
        parsed = _RawSearchResponse.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError(
            f"Failed to parse search response: {exc.error_count()} validation error(s)",
            response,
        ) from exc

    if parsed.thinking:
        logger.debug("Search reasoning: %s", str(parsed.thinking)[:500])
    return [
        SearchResult(
            title=s.title,
            start_index=s.start_index,
            end_index=s.end_index,
            relevance=s.relevance,
            reason=s.reason,
        )
        for s in parsed.relevant_sections
    ]


def rank_results(
    results: Sequence[SearchResult],
    min_relevance: Relevance = Relevance.LOW,
    top_k: int = 10,
) -> list[SearchResult]:
    """Drop results below `min_relevance`, order by relevance and keep the first `top_k`.

    The sort is stable: results of equal relevance keep the collaborator's order.
    """

    kept = [r for r in results if r.relevance.rank >= min_relevance.rank]
    kept.sort(key=lambda r: -r.relevance.rank)
    return kept[: max(top_k, 0)]


class TreeSearcher:
    """Answers queries by letting the collaborator reason over a tree outline."""

    def __init__(self, client: ReasoningClient, options: SearchOptions | None = None) -> None:
        self._client = client
        self._options = options or SearchOptions()

    @property
    def options(self) -> SearchOptions:
        return self._options

    async def search(self, tree: DocumentTree, query: str) -> list[SearchResult]:
        """Find the sections of `tree` relevant to `query`.

        Raises:
            ResponseParseError: If the collaborator response cannot be parsed.
            TransportError: If the collaborator cannot be reached.
        """

        with document_context(document=tree.name, op="search"):
            prompt = prompts.TREE_SEARCH.format(tree_structure=tree.to_json(), query=query)
            response = await self._client.complete(prompts.SYSTEM_DOCUMENT_ANALYZER, prompt)
            results = parse_search_response(response)
            ranked = rank_results(results, self._options.min_relevance, self._options.top_k)
            logger.info("Query matched %d section(s), returning %d", len(results), len(ranked))
            return ranked

    async def search_with_content(
        self,
        tree: DocumentTree,
        document: Document,
        query: str,
    ) -> list[SearchResult]:
        """Like :meth:`search`, with each result's page text attached.

        A result whose range runs past the document gets the text of the pages it does cover; a
        result with no page inside the document gets empty content.
        """

        results = await self.search(tree, query)
        last_page = document.page_count()
        for result in results:
            start = max(result.start_index, 1)
            end = min(result.end_index, last_page)
            if start > end:
                logger.warning(
                    "No content for '%s': pages %d-%d are outside the document (%d pages)",
                    result.title,
                    result.start_index,
                    result.end_index,
                    last_page,
                )
                result.content = ""
                continue
            result.content = document.page_text(start, end)
        return results
