"""Embedding collaborator.

Only comparative benchmarks against a vector-search baseline use embeddings; the tree engine never
does. The protocol is kept here so such a harness can plug in any provider.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

import openai
from openai import AsyncOpenAI

from pagetree.config import Settings
from pagetree.errors import ApiStatusError, ResponseParseError, TransportError
from pagetree.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class EmbeddingClient(Protocol):
    """Batch text embedding service."""

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Return one fixed-length vector per input text, in input order."""
        ...


class OpenAIEmbeddingClient:
    """Embedding client using the OpenAI-compatible Embeddings API."""

    def __init__(self, settings: Settings, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        if client is None:
            settings.validate_llm()
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=0,
            )
        self._client = client

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed `texts`.

        Raises:
            TransportError: If the endpoint cannot be reached.
            ApiStatusError: If the endpoint answers with a non-success status.
            ResponseParseError: If the number of vectors does not match the input.
        """

        if not texts:
            return []
        try:
            resp = await self._client.embeddings.create(
                model=self._settings.embedding_model,
                input=list(texts),
                timeout=self._settings.openai_timeout_s,
            )
        except openai.APIStatusError as e:
            raise ApiStatusError(e.status_code, e.message) from e
        except openai.APIConnectionError as e:
            raise TransportError(f"HTTP request failed: {e}") from e

        if len(resp.data) != len(texts):
            raise ResponseParseError(
                f"Expected {len(texts)} embeddings, got {len(resp.data)}",
                str(resp)[:200],
            )
        # providers may return items out of order; `index` is authoritative
        ordered = sorted(resp.data, key=lambda item: item.index)
        logger.debug("Embedded %d texts with %s", len(texts), self._settings.embedding_model)
        return [list(item.embedding) for item in ordered]
