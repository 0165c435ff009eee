"""Tests for the tree cache."""

from __future__ import annotations

import asyncio

import pytest

from pagetree.core.cache import TreeCache
from pagetree.models.document import Document
from pagetree.models.tree import DocumentTree


def _doc(text: str) -> Document:
    return Document.from_pages(text, [text])


def _tree(doc: Document) -> DocumentTree:
    return DocumentTree(name=doc.name, total_pages=doc.page_count())


@pytest.mark.asyncio
async def test_concurrent_misses_build_once() -> None:
    """It should run a single build for concurrent requests of the same document."""

    cache = TreeCache()
    doc = _doc("alpha")
    release = asyncio.Event()
    builds = 0

    async def build(d: Document) -> DocumentTree:
        nonlocal builds
        builds += 1
        await release.wait()
        return _tree(d)

    tasks = [asyncio.create_task(cache.get_or_build(doc, build)) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    entries = await asyncio.gather(*tasks)

    assert builds == 1
    assert all(e is entries[0] for e in entries)
    stats = cache.stats()
    assert (stats["builds"], stats["misses"], stats["hits"], stats["entries"]) == (1, 1, 4, 1)
    assert stats["in_flight"] == 0


@pytest.mark.asyncio
async def test_failed_build_reaches_all_waiters_and_is_not_cached() -> None:
    """It should raise the build error for every caller and allow a later retry."""

    cache = TreeCache()
    doc = _doc("beta")
    release = asyncio.Event()

    async def failing(d: Document) -> DocumentTree:
        await release.wait()
        raise RuntimeError("collaborator down")

    tasks = [asyncio.create_task(cache.get_or_build(doc, failing)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(isinstance(o, RuntimeError) for o in outcomes)
    assert len(cache) == 0

    async def working(d: Document) -> DocumentTree:
        return _tree(d)

    entry = await cache.get_or_build(doc, working)
    assert entry.tree.name == "beta"
    assert cache.stats()["builds"] == 2


@pytest.mark.asyncio
async def test_cache_hit_skips_build() -> None:
    """It should return the stored tree without calling the builder again."""

    cache = TreeCache()
    doc = _doc("gamma")

    async def build(d: Document) -> DocumentTree:
        return _tree(d)

    first = await cache.get_or_build(doc, build)

    async def must_not_run(d: Document) -> DocumentTree:
        raise AssertionError("rebuilt a cached tree")

    second = await cache.get_or_build(Document.from_pages("renamed", ["gamma"]), must_not_run)

    assert second is first


def test_lru_evicts_least_recently_used() -> None:
    """It should drop the entry touched longest ago once full."""

    cache = TreeCache(max_entries=2)
    a, b, c = _doc("a"), _doc("b"), _doc("c")

    cache.put(a, _tree(a))
    cache.put(b, _tree(b))
    assert cache.get(a) is not None
    cache.put(c, _tree(c))

    assert cache.get(b) is None
    assert cache.get(a) is not None
    assert cache.get(c) is not None
    assert len(cache) == 2


def test_invalidate_and_clear() -> None:
    """It should forget single entries or everything."""

    cache = TreeCache()
    a, b = _doc("a"), _doc("b")
    cache.put(a, _tree(a))
    cache.put(b, _tree(b))

    cache.invalidate(a)
    assert cache.get(a) is None
    cache.clear()
    assert len(cache) == 0


def test_rejects_non_positive_capacity() -> None:
    """It should refuse a cache that cannot hold anything."""

    with pytest.raises(ValueError):
        TreeCache(max_entries=0)
