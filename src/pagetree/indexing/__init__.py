"""Tree construction: section descriptors to trees, and the indexer that produces them."""

from __future__ import annotations

from pagetree.indexing.builder import build_tree_from_toc, fix_end_indices, parse_structure_code
from pagetree.indexing.indexer import IndexerOptions, TreeIndexer, group_pages, parse_toc_response

__all__ = [
    "build_tree_from_toc",
    "fix_end_indices",
    "parse_structure_code",
    "IndexerOptions",
    "TreeIndexer",
    "group_pages",
    "parse_toc_response",
]
