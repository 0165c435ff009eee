"""JSON extraction from collaborator responses.

Models often wrap their JSON in markdown code fences or surround it with prose. This module turns
such a response into the bare JSON text before it is parsed, so the normalization can be tested on
its own and the parsers stay strict.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pagetree.errors import ResponseParseError
from pagetree.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?(?P<body>.*?)\n?```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*(?=[\]}])")
_PY_LITERALS = ((r"\bNone\b", "null"), (r"\bTrue\b", "true"), (r"\bFalse\b", "false"))


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or the trimmed text if there is none."""

    cleaned = text.strip()
    m = _FENCE_RE.search(cleaned)
    if m:
        return m.group("body").strip()
    return cleaned


def extract_json_text(text: str) -> str:
    """Isolate the JSON value in a response.

    Strategy (from strict to loose):
        1. Take the body of a markdown code fence, if present.
        2. Otherwise cut from the first ``[`` or ``{`` (whichever comes first) to the last
           matching closing bracket.
        3. Otherwise return the trimmed text unchanged.
    """

    cleaned = strip_code_fences(text)
    if not cleaned:
        return cleaned

    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
    if not starts:
        return cleaned
    start = min(starts)
    closing = "]" if cleaned[start] == "[" else "}"
    end = cleaned.rfind(closing)
    if end > start:
        return cleaned[start : end + 1]
    return cleaned


def _repair(text: str) -> str:
    for pattern, replacement in _PY_LITERALS:
        text = re.sub(pattern, replacement, text)
    return _TRAILING_COMMA_RE.sub("", text)


def loads_json(response: str, *, what: str = "response") -> Any:
    """Parse a collaborator response as JSON.

    A second attempt rewrites Python literals (``None``, ``True``, ``False``) and trailing commas,
    which the prompts' own examples tend to provoke.

    Args:
        response: Raw collaborator text.
        what: Name of the expected payload, used in the error message.

    Raises:
        ResponseParseError: If no JSON value can be parsed.
    """

    candidate = extract_json_text(response)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("loads_json: strict parse failed, retrying with literal repair")

    try:
        return json.loads(_repair(candidate))
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Failed to parse {what}: {exc.msg}", response) from exc
