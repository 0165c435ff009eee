"""TOC-to-tree builder.

Turns the flat, ordered list of section descriptors produced by the reasoning collaborator into a
nested tree with closed page ranges:

1. each descriptor's range runs from its own start page up to the page before the next
   descriptor's start page (never below its own start), the last one runs to the end of the
   document;
2. descriptors are placed by the depth of their structure code, each as the last child of the most
   recently placed node one level up;
3. parents are widened bottom-up so they span all their children.

The builder trusts the stream order and never sorts.
"""

from __future__ import annotations

from typing import Sequence

from pagetree.logging import get_logger
from pagetree.models.toc import RawTocItem
from pagetree.models.tree import TreeNode

logger = get_logger(__name__)


def parse_structure_code(code: str | None) -> tuple[int, ...]:
    """Split a dotted structure code into its numeric parts.

    Every numeric part counts towards the depth, zero included, so ``"1.0"`` is one level below
    ``"1"``. Empty and non-numeric parts are dropped: ``"2.1."`` gives ``(2, 1)`` and ``"A"``
    gives ``()``.
    """

    if not code:
        return ()
    parts: list[int] = []
    for raw in code.split("."):
        raw = raw.strip()
        if raw.isdecimal():
            parts.append(int(raw))
    return tuple(parts)


def _page_ranges(items: Sequence[RawTocItem], total_pages: int) -> list[tuple[int, int]]:
    starts = [item.start_page for item in items]
    ranges: list[tuple[int, int]] = []
    for i, start in enumerate(starts):
        if i + 1 < len(starts):
            end = max(starts[i + 1] - 1, start)
        else:
            end = max(total_pages, start)
        ranges.append((start, end))
    return ranges


def _attach(roots: list[TreeNode], node: TreeNode, depth: int) -> None:
    parent = roots[-1]
    # descend through last children until the parent sits at depth - 1
    for _ in range(depth - 2):
        if not parent.nodes:
            logger.debug(
                "Structure code %s skips a level; attaching under '%s'",
                node.structure,
                parent.title,
            )
            break
        parent = parent.nodes[-1]
    parent.add_child(node)


def fix_end_indices(node: TreeNode) -> None:
    """Widen `node` and its descendants so every parent spans its children."""

    for child in node.nodes:
        fix_end_indices(child)
    if node.nodes:
        max_end = max(child.end_index for child in node.nodes)
        if max_end > node.end_index:
            node.end_index = max_end


def build_tree_from_toc(items: Sequence[RawTocItem], total_pages: int) -> list[TreeNode]:
    """Build root nodes from flat section descriptors.

    Args:
        items: Descriptors in pre-order, as emitted by the collaborator.
        total_pages: Page count of the document; the last section ends here.

    Returns:
        Root nodes in input order. An empty input gives an empty list.
    """

    if not items:
        return []

    roots: list[TreeNode] = []
    for item, (start, end) in zip(items, _page_ranges(items, total_pages)):
        code = parse_structure_code(item.structure)
        node = TreeNode(
            title=item.title,
            structure=".".join(str(p) for p in code) if code else None,
            start_index=start,
            end_index=end,
        )
        if len(code) <= 1 or not roots:
            roots.append(node)
        else:
            _attach(roots, node, len(code))

    for root in roots:
        fix_end_indices(root)

    logger.debug("Built %d root sections from %d descriptors", len(roots), len(items))
    return roots
