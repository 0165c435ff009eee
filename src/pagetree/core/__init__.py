"""Core runtime pieces shared by the service and the CLI."""

from __future__ import annotations

from pagetree.core.cache import CachedTree, TreeCache

__all__ = ["CachedTree", "TreeCache"]
