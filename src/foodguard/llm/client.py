"""Async OpenAI-compatible LLM client.

Wraps ``openai.AsyncOpenAI`` with exponential-backoff retries for transient provider
failures. Two entry points: plain text completion (chat side-channel) and a single
tool-calling turn (reasoning loop).
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Literal, Sequence

import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionMessage

from foodguard.config import Settings
from foodguard.logging import get_logger

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]

_RETRYABLE = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class LLMError(RuntimeError):
    """The model provider failed after retries or rejected the request."""


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


class LLMClient:
    """LLM client using the OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        if client is None:
            if not settings.openai_api_key:
                raise ValueError(
                    "Missing FOODGUARD_OPENAI_API_KEY. "
                    "Set it in environment variables or a .env file."
                )
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=0,  # retries handled in _create
            )
        self._client = client
        self._max_retries = settings.llm_max_retries
        self._retry_backoff = settings.llm_retry_backoff_s

    @property
    def model(self) -> str:
        return self._settings.openai_model

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion.

        Args:
            messages: Chat messages.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.

        Returns:
            Assistant message content ("" when the model returned none).
        """

        payload = [{"role": m.role, "content": m.content} for m in messages]
        resp = await self._create(messages=payload, temperature=temperature, max_tokens=max_tokens)
        choice = resp.choices[0]
        if not choice.message or choice.message.content is None:
            return ""
        return choice.message.content

    async def chat_with_tools(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        *,
        temperature: float = 0.1,
        max_tokens: int | None = None,
    ) -> ChatCompletionMessage:
        """Run one tool-calling turn and return the assistant message."""

        kwargs: dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
        resp = await self._create(messages=messages, temperature=temperature, max_tokens=max_tokens, **kwargs)
        if not resp.choices:
            raise LLMError("Model returned no choices")
        return resp.choices[0].message

    async def _create(self, **kwargs: Any) -> ChatCompletion:
        """Call chat.completions.create with retry logic."""

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                start_time = time.monotonic()
                resp: ChatCompletion = await self._client.chat.completions.create(
                    model=self._settings.openai_model,
                    timeout=self._settings.openai_timeout_s,
                    **kwargs,
                )
                logger.debug(
                    "LLM completion successful",
                    extra={
                        "model": self._settings.openai_model,
                        "latency_ms": (time.monotonic() - start_time) * 1000,
                        "tokens": resp.usage.total_tokens if resp.usage else None,
                    },
                )
                return resp
            except _RETRYABLE as e:
                last_error = e
                if attempt < self._max_retries:
                    wait_time = self._retry_backoff * (2**attempt)
                    logger.warning(
                        "LLM request failed, retrying",
                        extra={
                            "attempt": attempt + 1,
                            "max_retries": self._max_retries,
                            "wait_time": wait_time,
                            "error": str(e),
                        },
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error("LLM request failed after retries", extra={"error": str(e)})
            except openai.OpenAIError as e:
                raise LLMError(f"LLM request rejected: {e}") from e

        raise LLMError(f"LLM request failed after {self._max_retries} retries: {last_error}") from last_error
