"""In-memory tree cache.

Indexing a document costs many collaborator calls, so built trees are kept in an LRU keyed by the
document's content fingerprint.

Builds are single-flight: the first caller that misses on a fingerprint builds the tree, and every
concurrent caller for the same fingerprint awaits that build instead of starting its own. A failed
build reaches all of them and leaves nothing cached.

The cache is meant for one event loop. Its bookkeeping never awaits between reading and updating
its state, so no lock is needed.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pagetree.logging import get_logger
from pagetree.models.document import Document
from pagetree.models.tree import DocumentTree

logger = get_logger(__name__)

TreeBuilder = Callable[[Document], Awaitable[DocumentTree]]


@dataclass(frozen=True)
class CachedTree:
    """A built tree together with the document it indexes."""

    tree: DocumentTree
    document: Document


class TreeCache:
    """LRU of built trees with single-flight builds."""

    def __init__(self, max_entries: int = 32) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum number of trees to keep.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, CachedTree] = OrderedDict()
        self._inflight: dict[str, asyncio.Future[CachedTree]] = {}
        self._hits = 0
        self._misses = 0
        self._builds = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, document: Document) -> CachedTree | None:
        """Return the cached tree for `document`, if any."""
        key = document.fingerprint()
        entry = self._entries.get(key)
        if entry is None:
            return None
        # Move to end (most recently used)
        self._entries.move_to_end(key)
        return entry

    def put(self, document: Document, tree: DocumentTree) -> CachedTree:
        """Store `tree` for `document`, evicting the least recently used entry if full."""
        entry = CachedTree(tree=tree, document=document)
        self._store(document.fingerprint(), entry)
        return entry

    def _store(self, key: str, entry: CachedTree) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.max_entries:
            evicted, old = self._entries.popitem(last=False)
            logger.debug("Evicted tree '%s' (%s)", old.tree.name, evicted[:12])
        self._entries[key] = entry

    def invalidate(self, document: Document) -> None:
        self._entries.pop(document.fingerprint(), None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_build(self, document: Document, build: TreeBuilder) -> CachedTree:
        """Return the cached tree for `document`, building it at most once.

        Args:
            document: Document to index.
            build: Coroutine function producing the tree; only called on a miss.

        Raises:
            Whatever `build` raises, for the building caller and all waiters alike.
        """

        key = document.fingerprint()
        entry = self.get(document)
        if entry is not None:
            self._hits += 1
            return entry

        pending = self._inflight.get(key)
        if pending is not None:
            self._hits += 1
            logger.debug("Waiting for in-flight build of '%s'", document.name)
            # a cancelled waiter must not cancel the shared build
            return await asyncio.shield(pending)

        self._misses += 1
        self._builds += 1
        future: asyncio.Future[CachedTree] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            tree = await build(document)
        except asyncio.CancelledError:
            self._inflight.pop(key, None)
            future.cancel()
            raise
        except Exception as exc:
            self._inflight.pop(key, None)
            future.set_exception(exc)
            # mark retrieved so an unawaited future does not log at garbage collection
            future.exception()
            raise

        entry = CachedTree(tree=tree, document=document)
        self._inflight.pop(key, None)
        self._store(key, entry)
        future.set_result(entry)
        return entry

    def stats(self) -> dict[str, Any]:
        """Get cache counters."""
        return {
            "hits": self._hits,
            "misses": self._misses,
            "builds": self._builds,
            "entries": len(self._entries),
            "in_flight": len(self._inflight),
            "max_entries": self.max_entries,
        }
