"""pagetree: hierarchical document tree index with reasoning-based retrieval."""

from __future__ import annotations

from pagetree.errors import PageTreeError
from pagetree.indexing import IndexerOptions, TreeIndexer, build_tree_from_toc
from pagetree.models import Document, DocumentTree, Page, RawTocItem, Relevance, SearchResult, TreeNode
from pagetree.persistence import SaveFormat, load_tree, save_tree
from pagetree.retrieval import SearchOptions, TreeSearcher
from pagetree.service import RetrievalService

__version__ = "0.1.0"

__all__ = [
    "PageTreeError",
    "IndexerOptions",
    "TreeIndexer",
    "build_tree_from_toc",
    "Document",
    "DocumentTree",
    "Page",
    "RawTocItem",
    "Relevance",
    "SearchResult",
    "TreeNode",
    "SaveFormat",
    "load_tree",
    "save_tree",
    "SearchOptions",
    "TreeSearcher",
    "RetrievalService",
]
