"""Reasoning collaborator client.

The engine only needs one operation from the reasoning service: ``complete(system, user) -> text``.
:class:`ReasoningClient` is that contract; :class:`OpenAIReasoningClient` implements it on top of
any OpenAI-compatible Chat Completions endpoint.

No retries happen here. Callers that want retry or backoff wrap the client; the distinct
:class:`~pagetree.errors.TransportError` class exists so they can tell what to retry.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Literal, Protocol, Sequence, runtime_checkable

import openai
from openai import AsyncOpenAI

from pagetree.config import Settings
from pagetree.errors import ApiStatusError, CollaboratorError, ResponseParseError, TransportError
from pagetree.llm.prompts import CONNECTION_PROBE
from pagetree.logging import get_logger

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


@runtime_checkable
class ReasoningClient(Protocol):
    """Text-in/text-out reasoning service."""

    async def complete(self, system_prompt: str | None, user_prompt: str) -> str:
        """Answer `user_prompt`, optionally steered by `system_prompt`."""
        ...


class OpenAIReasoningClient:
    """Reasoning client using the OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings, *, client: AsyncOpenAI | None = None) -> None:
        """Initialize the client.

        Args:
            settings: Application settings.
            client: Preconfigured SDK client (tests inject a fake here).
        """

        self._settings = settings
        if client is None:
            settings.validate_llm()
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=0,  # retry policy belongs to the caller
            )
        self._client = client

        # Metrics
        self._request_count = 0
        self._error_count = 0
        self._total_tokens = 0
        self._total_latency = 0.0

    @property
    def model(self) -> str:
        return self._settings.openai_model

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        """Send a chat completion request.

        Args:
            messages: Chat messages.

        Returns:
            Assistant message content.

        Raises:
            TransportError: If the endpoint cannot be reached or times out.
            ApiStatusError: If the endpoint answers with a non-success status.
            ResponseParseError: If the completion carries no choices.
        """

        payload: list[dict[str, str]] = [{"role": m.role, "content": m.content} for m in messages]
        start_time = time.monotonic()
        try:
            resp = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=payload,
                temperature=self._settings.openai_temperature,
                max_tokens=self._settings.openai_max_tokens,
                timeout=self._settings.openai_timeout_s,
            )
        except openai.APIStatusError as e:
            self._error_count += 1
            raise ApiStatusError(e.status_code, _error_message(e)) from e
        except openai.APIConnectionError as e:
            # APITimeoutError is a subclass
            self._error_count += 1
            raise TransportError(f"HTTP request failed: {e}") from e

        latency = time.monotonic() - start_time
        self._request_count += 1
        self._total_latency += latency

        if not resp.choices:
            self._error_count += 1
            raise ResponseParseError("No choices in response", str(resp))

        if resp.usage:
            self._total_tokens += resp.usage.total_tokens

        logger.debug(
            "LLM completion successful",
            extra={
                "model": self._settings.openai_model,
                "latency_ms": latency * 1000,
                "tokens": resp.usage.total_tokens if resp.usage else None,
            },
        )

        choice = resp.choices[0]
        if not choice.message or choice.message.content is None:
            return ""
        return choice.message.content

    async def complete(self, system_prompt: str | None, user_prompt: str) -> str:
        """Single user message with an optional system prompt."""

        messages: list[ChatMessage] = []
        if system_prompt:
            messages.append(ChatMessage(role="system", content=system_prompt))
        messages.append(ChatMessage(role="user", content=user_prompt))
        return await self.chat(messages)

    async def test_connection(self) -> None:
        """Probe the endpoint with a trivial prompt.

        Raises:
            CollaboratorError: If the endpoint answers but not as asked.
        """

        answer = await self.complete(None, CONNECTION_PROBE)
        if "hello" not in answer.lower():
            raise CollaboratorError(f"Unexpected response: {answer[:200]}")

    def get_metrics(self) -> dict[str, Any]:
        """Get client metrics."""

        avg_latency = self._total_latency / self._request_count if self._request_count > 0 else 0.0
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
            "total_tokens": self._total_tokens,
            "avg_latency_ms": avg_latency * 1000,
            "total_latency_ms": self._total_latency * 1000,
        }


def _error_message(error: openai.APIStatusError) -> str:
    body = error.body
    if isinstance(body, dict):
        detail = body.get("error", body)
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
    return error.message
