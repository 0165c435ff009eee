"""Collaborator clients and prompts."""

from __future__ import annotations

from pagetree.llm.client import ChatMessage, OpenAIReasoningClient, ReasoningClient
from pagetree.llm.embeddings import EmbeddingClient, OpenAIEmbeddingClient

__all__ = [
    "ChatMessage",
    "ReasoningClient",
    "OpenAIReasoningClient",
    "EmbeddingClient",
    "OpenAIEmbeddingClient",
]
