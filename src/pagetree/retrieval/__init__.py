"""Tree search."""

from __future__ import annotations

from pagetree.retrieval.searcher import SearchOptions, TreeSearcher, parse_search_response, rank_results

__all__ = ["SearchOptions", "TreeSearcher", "parse_search_response", "rank_results"]
