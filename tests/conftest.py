"""Shared fixtures."""

from __future__ import annotations

import pytest

from pagetree.models.document import Document
from pagetree.models.tree import DocumentTree, TreeNode


class ScriptedClient:
    """Reasoning client that replays canned responses and records the prompts it got."""

    def __init__(self, *responses: str) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str | None, str]] = []

    async def complete(self, system_prompt: str | None, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if not self.responses:
            raise AssertionError("unexpected collaborator call")
        return self.responses.pop(0)


@pytest.fixture
def scripted_client() -> type[ScriptedClient]:
    return ScriptedClient


@pytest.fixture
def five_page_document() -> Document:
    return Document.from_pages("report", [f"page {n} text" for n in range(1, 6)])


@pytest.fixture
def sample_tree() -> DocumentTree:
    tree = DocumentTree(
        name="report",
        total_pages=10,
        nodes=[
            TreeNode(
                title="Intro",
                structure="1",
                start_index=1,
                end_index=4,
                nodes=[TreeNode(title="Background", structure="1.1", start_index=2, end_index=4)],
            ),
            TreeNode(title="Methods", structure="2", start_index=5, end_index=10),
        ],
    )
    tree.assign_node_ids()
    return tree
