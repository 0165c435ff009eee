"""Tests for the paginated document model."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from pagetree.errors import EmptyDocumentError, PageRangeError
from pagetree.models.document import Document, Page, estimate_tokens, page_marker, strip_page_markers


def test_from_pages_drops_blank_pages_and_renumbers() -> None:
    """It should skip whitespace-only pages and number the rest contiguously from 1."""

    doc = Document.from_pages("d", ["first", "   ", "second", "\n"])

    assert doc.page_count() == 2
    assert [p.number for p in doc.pages] == [1, 2]
    assert doc.get_page(2).content == "second"
    assert doc.get_page(3) is None
    assert doc.get_page(0) is None


def test_from_pages_rejects_empty_document() -> None:
    """It should raise EmptyDocumentError when no page has content."""

    with pytest.raises(EmptyDocumentError):
        Document.from_pages("empty", ["", "  "])


def test_pages_must_be_contiguous() -> None:
    """It should refuse a page list with gaps."""

    with pytest.raises(ValidationError):
        Document(name="d", pages=[Page(number=1, content="a"), Page(number=3, content="b")])


def test_token_estimate_is_words_over_three_quarters() -> None:
    """It should estimate tokens as word count / 0.75, rounded down."""

    assert estimate_tokens("one two three") == 4
    assert Page(number=1, content="a b c d e f").token_estimate == 8
    assert Document.from_pages("d", ["a b c", "d e f"]).total_tokens() == 8


def test_from_file_splits_on_delimiter(tmp_path: Path) -> None:
    """It should split file content into pages on the delimiter."""

    path = tmp_path / "manual.txt"
    path.write_text("one\fTwo\f\fthree", encoding="utf-8")

    doc = Document.from_file(path, delimiter="\f")

    assert doc.name == "manual"
    assert doc.source_path == path
    assert [p.content for p in doc.pages] == ["one", "Two", "three"]


def test_from_file_without_delimiter_is_single_page(tmp_path: Path) -> None:
    """It should treat the whole file as one page when no delimiter is given."""

    path = tmp_path / "note.txt"
    path.write_text("just\fone page", encoding="utf-8")

    assert Document.from_file(path).page_count() == 1


def test_page_text_returns_plain_text_of_range(five_page_document: Document) -> None:
    """It should return the selected pages without page markers."""

    text = five_page_document.page_text(2, 3)

    assert "page 2 text" in text
    assert "page 3 text" in text
    assert "page 1 text" not in text
    assert "physical_index" not in text


@pytest.mark.parametrize("start,end", [(0, 2), (4, 6), (3, 2)])
def test_page_text_rejects_bad_ranges(five_page_document: Document, start: int, end: int) -> None:
    """It should raise PageRangeError for ranges outside the document or inverted."""

    with pytest.raises(PageRangeError):
        five_page_document.page_text(start, end)


def test_content_range_wraps_pages_in_markers(five_page_document: Document) -> None:
    """It should wrap each page in its opening and closing marker."""

    text = five_page_document.content_range(2, 2)

    assert text.count(page_marker(2)) == 2
    assert page_marker(1) not in text
    assert strip_page_markers(text) == "page 2 text"


def test_fingerprint_depends_on_content_only() -> None:
    """It should give equal fingerprints for equal pages regardless of the name."""

    a = Document.from_pages("a", ["x", "y"])
    b = Document.from_pages("b", ["x", "y"])
    c = Document.from_pages("a", ["xy"])

    assert a.fingerprint() == b.fingerprint()
    assert a.fingerprint() != c.fingerprint()
