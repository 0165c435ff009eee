"""Logging utilities."""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Iterator

from rich.logging import RichHandler


_document_var: contextvars.ContextVar[str] = contextvars.ContextVar("pagetree_document", default="-")
_op_var: contextvars.ContextVar[str] = contextvars.ContextVar("pagetree_op", default="-")


class _ContextFilter(logging.Filter):
    """Inject document context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.document = _document_var.get()  # type: ignore[attr-defined]
        record.op = _op_var.get()  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def document_context(*, document: str, op: str | None = None) -> Iterator[None]:
    """Temporarily bind document context for structured logging.

    Args:
        document: Name of the document being processed.
        op: Optional operation name (``index``, ``search``...).
    """

    token_doc = _document_var.set(document)
    token_op = _op_var.set(op or _op_var.get())
    try:
        yield
    finally:
        _document_var.reset(token_doc)
        _op_var.reset(token_op)


def set_op(op: str) -> None:
    """Update current operation in context."""

    _op_var.set(op)


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Logging level name.
    """

    handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
    handler.addFilter(_ContextFilter())

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s doc=%(document)s op=%(op)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level.upper())
    # configure_logging may run more than once (CLI + tests)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(handler)
    else:
        for h in root.handlers:
            if isinstance(h, RichHandler):
                if not any(isinstance(f, _ContextFilter) for f in h.filters):
                    h.addFilter(_ContextFilter())
                h.setFormatter(formatter)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)
