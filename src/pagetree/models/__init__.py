"""Pydantic models used across the project."""

from __future__ import annotations

from pagetree.models.document import Document, Page
from pagetree.models.search import Relevance, SearchResult
from pagetree.models.toc import PageRef, PageRefKind, RawTocItem
from pagetree.models.tree import DocumentTree, TreeNode

__all__ = [
    "Document",
    "Page",
    "PageRef",
    "PageRefKind",
    "RawTocItem",
    "Relevance",
    "SearchResult",
    "DocumentTree",
    "TreeNode",
]
