"""Tests for JSON extraction from collaborator responses."""

from __future__ import annotations

import pytest

from pagetree.errors import ResponseParseError
from pagetree.utils.json_extract import extract_json_text, loads_json, strip_code_fences


def test_strip_code_fences_returns_fence_body() -> None:
    """It should return the body of a ```json fence."""

    text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'

    assert strip_code_fences(text) == '{"a": 1}'


def test_strip_code_fences_without_fence_trims() -> None:
    """It should return the trimmed text when there is no fence."""

    assert strip_code_fences('  [1, 2]  ') == "[1, 2]"


def test_extract_picks_first_bracket_kind() -> None:
    """It should cut the outermost value starting at the first bracket."""

    assert extract_json_text('Sure! [{"a": 1}, {"b": 2}] done') == '[{"a": 1}, {"b": 2}]'
    assert extract_json_text('Answer: {"items": [1, 2]} ok') == '{"items": [1, 2]}'


def test_loads_json_repairs_python_literals_and_trailing_commas() -> None:
    """It should accept None/True/False and trailing commas."""

    assert loads_json('{"a": None, "b": True, "c": [1, 2,],}') == {"a": None, "b": True, "c": [1, 2]}


def test_loads_json_raises_with_excerpt() -> None:
    """It should raise ResponseParseError carrying at most 200 characters of the response."""

    response = "no json here " * 50

    with pytest.raises(ResponseParseError) as info:
        loads_json(response, what="search response")

    assert len(info.value.excerpt) == 200
    assert "search response" in str(info.value)
