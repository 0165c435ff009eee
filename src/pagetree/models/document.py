"""Paginated document models.

A document is an ordered sequence of pages. Pages are the unit every other component addresses:
section descriptors point at page numbers, tree nodes span page ranges and search results are
sliced out of the document by page.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pagetree.errors import EmptyDocumentError, PageRangeError

PAGE_MARKER_PREFIX = "<physical_index_"


def page_marker(number: int) -> str:
    """Return the page-boundary marker for page `number`."""

    return f"{PAGE_MARKER_PREFIX}{number}>"


def estimate_tokens(text: str) -> int:
    """Estimate token count from text (words / 0.75, rounded down)."""

    return int(len(text.split()) / 0.75)


def strip_page_markers(text: str) -> str:
    """Drop page-boundary marker lines and trim the result."""

    lines = [line for line in text.splitlines() if not line.strip().startswith(PAGE_MARKER_PREFIX)]
    return "\n".join(lines).strip()


class Page(BaseModel):
    """A single 1-indexed page."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    content: str
    token_estimate: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _derive_tokens(cls, data: object) -> object:
        if isinstance(data, dict) and "token_estimate" not in data:
            data = {**data, "token_estimate": estimate_tokens(str(data.get("content", "")))}
        return data

    def with_markers(self) -> str:
        """Wrap the page content in page-boundary markers."""

        marker = page_marker(self.number)
        return f"{marker}\n{self.content}\n{marker}\n\n"


class Document(BaseModel):
    """A document made of contiguous pages numbered from 1."""

    model_config = ConfigDict(frozen=True)

    name: str
    source_path: Path | None = None
    pages: list[Page]

    @model_validator(mode="after")
    def _check_pages(self) -> "Document":
        if not self.pages:
            raise ValueError("a document needs at least one page")
        for expected, page in enumerate(self.pages, start=1):
            if page.number != expected:
                raise ValueError(f"page numbers must be contiguous from 1; got {page.number} at position {expected}")
        return self

    @classmethod
    def from_pages(
        cls,
        name: str,
        texts: Iterable[str],
        *,
        source_path: Path | None = None,
    ) -> "Document":
        """Build a document from page texts, dropping blank pages.

        Raises:
            EmptyDocumentError: If no page has content.
        """

        kept = [t for t in texts if t.strip()]
        if not kept:
            raise EmptyDocumentError(name)
        pages = [Page(number=i, content=t) for i, t in enumerate(kept, start=1)]
        return cls(name=name, source_path=source_path, pages=pages)

    @classmethod
    def from_text(cls, name: str, text: str) -> "Document":
        """Treat `text` as a single-page document."""

        return cls.from_pages(name, [text])

    @classmethod
    def from_file(cls, path: Path, *, delimiter: str | None = None) -> "Document":
        """Load a UTF-8 text file.

        Args:
            path: File to read.
            delimiter: Page delimiter. Without one (or when it never occurs) the whole file is one page.

        Raises:
            EmptyDocumentError: If the file has no content.
        """

        content = path.read_text(encoding="utf-8")
        texts = content.split(delimiter) if delimiter else [content]
        return cls.from_pages(path.stem or "untitled", texts, source_path=path)

    def page_count(self) -> int:
        """Total number of pages."""

        return len(self.pages)

    def total_tokens(self) -> int:
        """Sum of page token estimates."""

        return sum(p.token_estimate for p in self.pages)

    def get_page(self, number: int) -> Page | None:
        """Return page `number` (1-indexed) or None when out of range."""

        if number < 1 or number > len(self.pages):
            return None
        return self.pages[number - 1]

    def content_with_markers(self) -> str:
        """All pages wrapped in page-boundary markers."""

        return "".join(p.with_markers() for p in self.pages)

    def content_range(self, start: int, end: int) -> str:
        """Marker-wrapped content of pages `start`..`end` inclusive (out-of-range pages are skipped)."""

        return "".join(p.with_markers() for p in self.pages if start <= p.number <= end)

    def page_text(self, start: int, end: int) -> str:
        """Plain text of pages `start`..`end` inclusive, without markers.

        Raises:
            PageRangeError: If the range is inverted or leaves `[1, page_count]`.
        """

        if start < 1 or end > len(self.pages) or start > end:
            raise PageRangeError(start, end, len(self.pages))
        return strip_page_markers(self.content_range(start, end))

    def fingerprint(self) -> str:
        """Deterministic content hash, used as tree cache key."""

        h = hashlib.sha256()
        for page in self.pages:
            h.update(page.content.encode("utf-8"))
            h.update(b"\f")
        return h.hexdigest()
