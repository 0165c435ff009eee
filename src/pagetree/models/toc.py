"""Section descriptors returned by the reasoning collaborator.

The collaborator reports the starting page of a section either as a bare integer or echoed back as
the page marker string (``"<physical_index_7>"``). Both spellings are resolved exactly once, when
the descriptor is validated, into a :class:`PageRef`. Anything that cannot be resolved becomes
``None`` instead of failing the whole response.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_serializer, field_validator

_MARKER_RE = re.compile(r"^<?\s*physical_index_(?P<n>\d+)\s*>?$", re.IGNORECASE)


class PageRefKind(str, Enum):
    """How the collaborator spelled a page reference."""

    NUMERIC = "numeric"
    MARKER = "marker"


@dataclass(frozen=True)
class PageRef:
    """A resolved page reference."""

    kind: PageRefKind
    page: int


def resolve_page_ref(value: Any) -> PageRef | None:
    """Resolve a raw page reference.

    Args:
        value: An int, an integral float, a digit string or a page marker string.

    Returns:
        The resolved reference, or None when `value` does not name a positive page.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, PageRef):
        return value
    if isinstance(value, int):
        return PageRef(PageRefKind.NUMERIC, value) if value >= 1 else None
    if isinstance(value, float):
        if value.is_integer() and value >= 1:
            return PageRef(PageRefKind.NUMERIC, int(value))
        return None
    if isinstance(value, str):
        text = value.strip()
        m = _MARKER_RE.match(text)
        if m:
            page = int(m.group("n"))
            return PageRef(PageRefKind.MARKER, page) if page >= 1 else None
        if text.isdigit() and int(text) >= 1:
            return PageRef(PageRefKind.NUMERIC, int(text))
    return None


class RawTocItem(BaseModel):
    """One flat section descriptor, before tree construction."""

    structure: str | None = None
    title: str
    physical_index: PageRef | None = Field(
        default=None,
        validation_alias=AliasChoices("physical_index", "page"),
    )

    @field_validator("structure", mode="before")
    @classmethod
    def _coerce_structure(cls, value: Any) -> str | None:
        # models sometimes emit 1 or 1.2 as JSON numbers
        if value is None or isinstance(value, bool):
            return None
        text = str(value).strip()
        if not text or text.lower() in {"none", "null"}:
            return None
        return text

    @field_validator("physical_index", mode="before")
    @classmethod
    def _resolve_page(cls, value: Any) -> PageRef | None:
        return resolve_page_ref(value)

    @field_serializer("physical_index")
    def _serialize_page(self, ref: PageRef | None) -> str | None:
        # echo back the marker format the prompts ask for
        return f"<physical_index_{ref.page}>" if ref else None

    @property
    def page_number(self) -> int | None:
        """The resolved page, or None if it could not be resolved."""

        return self.physical_index.page if self.physical_index else None

    @property
    def start_page(self) -> int:
        """The resolved page, defaulting to the first page."""

        return self.page_number or 1
