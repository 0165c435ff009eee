"""Document tree models.

A :class:`DocumentTree` is the persisted unit of the index: a document name, its root sections and
the page count. Every :class:`TreeNode` spans an inclusive page range and owns its subsections.
Field names are the ones written to disk.
"""

from __future__ import annotations

import json
from typing import Any, Iterator

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer, model_validator

from pagetree.utils.ids import format_node_id


class TreeNode(BaseModel):
    """A section of the document.

    `structure` is the dotted hierarchy code ("1", "1.2", "1.2.3"); `start_index` and `end_index`
    are 1-indexed and inclusive.
    """

    title: str
    structure: str | None = None
    start_index: int = Field(ge=1)
    end_index: int = Field(ge=1)
    nodes: list["TreeNode"] = Field(default_factory=list)
    summary: str | None = None
    node_id: str | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "TreeNode":
        if self.end_index < self.start_index:
            raise ValueError(
                f"end_index {self.end_index} precedes start_index {self.start_index} in '{self.title}'"
            )
        return self

    @model_serializer(mode="wrap")
    def _omit_empty_children(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if not data.get("nodes"):
            data.pop("nodes", None)
        return data

    def add_child(self, child: "TreeNode") -> None:
        """Append a subsection."""

        self.nodes.append(child)

    def has_children(self) -> bool:
        return bool(self.nodes)

    def page_span(self) -> int:
        """Number of pages covered."""

        return self.end_index - self.start_index + 1

    def page_numbers(self) -> list[int]:
        return list(range(self.start_index, self.end_index + 1))

    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Yield this node and its descendants in pre-order."""

        yield self
        for child in self.nodes:
            yield from child.iter_nodes()

    def node_count(self) -> int:
        """Count of nodes in this subtree, including self."""

        return 1 + sum(child.node_count() for child in self.nodes)

    def depth(self) -> int:
        """Length of the longest chain from this node down to a leaf."""

        return 1 + max((child.depth() for child in self.nodes), default=0)

    def leaves(self) -> list["TreeNode"]:
        """Nodes without children, left to right."""

        if not self.nodes:
            return [self]
        out: list[TreeNode] = []
        for child in self.nodes:
            out.extend(child.leaves())
        return out

    def find_by_title(self, title: str) -> "TreeNode | None":
        """First node in pre-order whose title matches case-insensitively."""

        wanted = title.lower()
        for node in self.iter_nodes():
            if node.title.lower() == wanted:
                return node
        return None

    def format_tree(self, indent: int = 0) -> str:
        prefix = "  " * indent
        code = f"{self.structure} " if self.structure else ""
        out = f"{prefix}{code}{self.title} [pages {self.start_index}-{self.end_index}]\n"
        for child in self.nodes:
            out += child.format_tree(indent + 1)
        return out


class DocumentTree(BaseModel):
    """A complete hierarchical index of one document."""

    name: str
    nodes: list[TreeNode] = Field(default_factory=list)
    total_pages: int = Field(ge=1)
    description: str | None = None

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Yield every node in pre-order."""

        for node in self.nodes:
            yield from node.iter_nodes()

    def node_count(self) -> int:
        return sum(node.node_count() for node in self.nodes)

    def max_depth(self) -> int:
        """Longest root-to-leaf chain; 0 for an empty tree."""

        return max((node.depth() for node in self.nodes), default=0)

    def find_by_title(self, title: str) -> TreeNode | None:
        """First node in pre-order whose title matches case-insensitively."""

        for node in self.nodes:
            found = node.find_by_title(title)
            if found is not None:
                return found
        return None

    def find_by_id(self, node_id: str) -> TreeNode | None:
        for node in self.iter_nodes():
            if node.node_id == node_id:
                return node
        return None

    def leaves(self) -> list[TreeNode]:
        out: list[TreeNode] = []
        for node in self.nodes:
            out.extend(node.leaves())
        return out

    def assign_node_ids(self) -> None:
        """Number every node in pre-order as ``0000``, ``0001``, ..."""

        for n, node in enumerate(self.iter_nodes()):
            node.node_id = format_node_id(n)

    def format(self) -> str:
        """Human-readable outline of the tree."""

        out = f"Document: {self.name} ({self.total_pages} pages, {self.node_count()} sections)\n"
        out += "─" * 50 + "\n"
        for node in self.nodes:
            out += node.format_tree(0)
        return out

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping with absent optionals and empty child lists omitted."""

        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "DocumentTree":
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str) -> "DocumentTree":
        return cls.model_validate_json(text)
