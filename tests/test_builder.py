"""Tests for building trees from flat section descriptors."""

from __future__ import annotations

from typing import Any

import pytest

from pagetree.indexing.builder import build_tree_from_toc, fix_end_indices, parse_structure_code
from pagetree.models.toc import RawTocItem
from pagetree.models.tree import TreeNode


def _items(*rows: tuple[Any, str, Any]) -> list[RawTocItem]:
    return [RawTocItem.model_validate({"structure": s, "title": t, "physical_index": p}) for s, t, p in rows]


def _check_invariants(node: TreeNode) -> None:
    assert 1 <= node.start_index <= node.end_index
    for child in node.nodes:
        assert node.start_index <= child.start_index
        assert child.end_index <= node.end_index
        _check_invariants(child)


def test_builds_nested_tree_with_page_ranges() -> None:
    """It should nest subsections and derive ranges from the next section's start."""

    items = _items(("1", "Intro", 1), ("1.1", "Background", 2), ("2", "Methods", 5))

    roots = build_tree_from_toc(items, total_pages=10)

    assert [r.title for r in roots] == ["Intro", "Methods"]
    intro, methods = roots
    assert (intro.start_index, intro.end_index) == (1, 4)
    assert [c.title for c in intro.nodes] == ["Background"]
    assert (intro.nodes[0].start_index, intro.nodes[0].end_index) == (2, 4)
    assert (methods.start_index, methods.end_index) == (5, 10)


def test_parent_widened_by_child_on_same_start_page() -> None:
    """It should widen a parent to cover a child that starts on the parent's own page."""

    items = _items(("1", "Intro", 1), ("1.1", "Background", 1), ("2", "Methods", 5))

    roots = build_tree_from_toc(items, total_pages=10)

    intro, methods = roots
    assert (intro.title, intro.start_index, intro.end_index) == ("Intro", 1, 4)
    assert [(c.title, c.start_index, c.end_index) for c in intro.nodes] == [("Background", 1, 4)]
    assert (methods.title, methods.start_index, methods.end_index) == ("Methods", 5, 10)
    assert not methods.nodes


def test_marker_and_numeric_pages_build_identical_trees() -> None:
    """It should treat 7 and "<physical_index_7>" as the same page."""

    numeric = build_tree_from_toc(_items(("1", "A", 1), ("2", "B", 7)), total_pages=9)
    marker = build_tree_from_toc(_items(("1", "A", "<physical_index_1>"), ("2", "B", "<physical_index_7>")), total_pages=9)

    assert [n.model_dump() for n in numeric] == [n.model_dump() for n in marker]
    assert numeric[1].start_index == 7


def test_empty_input_gives_empty_tree() -> None:
    """It should return no roots for no descriptors."""

    assert build_tree_from_toc([], total_pages=3) == []


def test_same_start_page_never_inverts_range() -> None:
    """It should keep end >= start when two sections start on the same page."""

    roots = build_tree_from_toc(_items(("1", "A", 3), ("2", "B", 3)), total_pages=5)

    assert (roots[0].start_index, roots[0].end_index) == (3, 3)
    assert (roots[1].start_index, roots[1].end_index) == (3, 5)


def test_unresolved_page_starts_on_first_page() -> None:
    """It should start a section with an unusable page reference on page 1."""

    roots = build_tree_from_toc(_items(("1", "Cover", "?"), ("2", "Body", 2)), total_pages=4)

    assert (roots[0].start_index, roots[0].end_index) == (1, 1)


def test_depth_jump_attaches_to_deepest_available_parent() -> None:
    """It should attach a node that skips a level under the closest existing ancestor."""

    roots = build_tree_from_toc(_items(("1", "A", 1), ("1.1.1", "Deep", 2), ("2", "B", 4)), total_pages=6)

    assert [r.title for r in roots] == ["A", "B"]
    assert [c.title for c in roots[0].nodes] == ["Deep"]
    assert roots[0].nodes[0].structure == "1.1.1"


def test_zero_part_counts_as_a_level() -> None:
    """It should nest "1.0" under "1" and keep its code as given."""

    roots = build_tree_from_toc(_items(("1", "A", 1), ("1.0", "A0", 2), ("2", "B", 4)), total_pages=6)

    assert [r.title for r in roots] == ["A", "B"]
    assert [(c.title, c.structure) for c in roots[0].nodes] == [("A0", "1.0")]
    assert (roots[0].nodes[0].start_index, roots[0].nodes[0].end_index) == (2, 3)


def test_child_before_any_root_becomes_root() -> None:
    """It should promote a nested code to a root when nothing precedes it."""

    roots = build_tree_from_toc(_items(("1.1", "Orphan", 1), ("1.2", "Sibling", 2)), total_pages=3)

    assert [r.title for r in roots] == ["Orphan"]
    assert [c.title for c in roots[0].nodes] == ["Sibling"]


def test_parents_widen_to_cover_children() -> None:
    """It should extend a parent whose child ends later than the parent."""

    parent = TreeNode(title="P", start_index=1, end_index=2, nodes=[TreeNode(title="C", start_index=2, end_index=6)])

    fix_end_indices(parent)

    assert parent.end_index == 6


def test_builder_is_deterministic() -> None:
    """It should produce equal trees for equal input."""

    items = _items(("1", "A", 1), ("1.1", "A1", 2), ("1.2", "A2", 3), ("2", "B", 5), ("2.1", "B1", 6))

    first = [n.model_dump() for n in build_tree_from_toc(items, total_pages=8)]
    second = [n.model_dump() for n in build_tree_from_toc(items, total_pages=8)]

    assert first == second


def test_invariants_hold_for_deep_trees() -> None:
    """It should keep every child inside its parent's range."""

    items = _items(
        ("1", "A", 1),
        ("1.1", "A1", 1),
        ("1.1.1", "A1a", 2),
        ("1.1.1.1", "A1a-i", 2),
        ("1.1.1.1.1", "A1a-i-x", 3),
        ("1.2", "A2", 4),
        ("2", "B", 6),
        ("2.1", "B1", 9),
    )

    roots = build_tree_from_toc(items, total_pages=12)

    for root in roots:
        _check_invariants(root)
    assert max(r.depth() for r in roots) == 5
    assert roots[-1].end_index == 12


@pytest.mark.parametrize(
    "code,expected",
    [
        ("1", (1,)),
        ("2.1.3", (2, 1, 3)),
        ("2.1.", (2, 1)),
        ("A", ()),
        (None, ()),
        ("0.1", (0, 1)),
        ("1.0", (1, 0)),
        ("1.A.2", (1, 2)),
    ],
)
def test_parse_structure_code(code: str | None, expected: tuple[int, ...]) -> None:
    """It should keep every numeric part of a dotted code, zero included."""

    assert parse_structure_code(code) == expected
