"""Search result models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class Relevance(str, Enum):
    """Relevance level assigned by the reasoning collaborator."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: Any) -> "Relevance":
        """Case-insensitive parse; anything unrecognized is LOW."""

        text = str(value).strip().lower() if value is not None else ""
        for member in cls:
            if member.value == text:
                return member
        return cls.LOW

    @property
    def rank(self) -> int:
        """Sort key, higher is more relevant."""

        return _RANKS[self]


_RANKS = {Relevance.HIGH: 3, Relevance.MEDIUM: 2, Relevance.LOW: 1}


class SearchResult(BaseModel):
    """A section the collaborator judged relevant to a query."""

    title: str
    start_index: int
    end_index: int
    relevance: Relevance
    reason: str = ""
    content: str | None = None
