"""Exception hierarchy.

Every error raised by pagetree derives from :class:`PageTreeError`. The subclasses mirror the four
failure classes callers need to tell apart: bad input, collaborator protocol violations, transport
failures and persistence failures.
"""

from __future__ import annotations

from pathlib import Path

EXCERPT_MAX_CHARS = 200


def excerpt(text: str, limit: int = EXCERPT_MAX_CHARS) -> str:
    """Return at most `limit` characters of `text` for diagnostics."""

    return text[:limit]


class PageTreeError(Exception):
    """Base class for all pagetree errors."""


# Input errors


class InputError(PageTreeError):
    """Caller supplied input that cannot be processed."""


class EmptyDocumentError(InputError):
    """A document has no textual content."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Document '{name}' has no content")
        self.name = name


class PageRangeError(InputError):
    """A page range lies outside the document or is inverted."""

    def __init__(self, start: int, end: int, total_pages: int) -> None:
        super().__init__(f"Page range {start}-{end} is outside 1-{total_pages}")
        self.start = start
        self.end = end
        self.total_pages = total_pages


class ConfigError(InputError):
    """Configuration is missing or invalid."""


# Collaborator protocol errors


class CollaboratorError(PageTreeError):
    """The reasoning collaborator answered with something unusable."""


class ResponseParseError(CollaboratorError):
    """A collaborator response could not be parsed into the expected shape.

    Attributes:
        excerpt: The first characters of the offending response.
    """

    def __init__(self, message: str, response: str) -> None:
        self.excerpt = excerpt(response)
        super().__init__(f"{message}. Response: {self.excerpt}")


# Transport errors


class TransportError(PageTreeError):
    """A collaborator could not be reached."""


class ApiStatusError(TransportError):
    """A collaborator answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"API error ({status_code}): {message}")
        self.status_code = status_code


# Persistence errors


class PersistenceError(PageTreeError):
    """Reading or writing a tree index failed."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class IndexNotFoundError(PersistenceError):
    """The tree index file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Index file not found at '{path}'", path)


class DirectoryCreationError(PersistenceError):
    """The parent directory of a tree index could not be created."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not create directory '{path}': {reason}", path)


class SerializationError(PersistenceError):
    """A tree could not be encoded, or a stored tree could not be decoded."""
