"""Chat side-channel: questions about the latest report."""

from __future__ import annotations

import asyncio
from typing import Sequence

from foodguard.config import Settings
from foodguard.llm.client import ChatMessage, LLMClient
from foodguard.logging import get_logger
from foodguard.models.report import Report
from foodguard.prompts import build_chat_system_prompt

logger = get_logger(__name__)


class ChatAssistant:
    """Answers free-text questions with the current report as context."""

    def __init__(self, llm: LLMClient, settings: Settings) -> None:
        self._llm = llm
        self._settings = settings

    async def reply(
        self,
        message: str,
        history: Sequence[ChatMessage] = (),
        report: Report | None = None,
    ) -> str:
        """Generate the assistant's reply.

        Args:
            message: The user's new message.
            history: Previous turns; anything not from the user is treated as the assistant.
            report: The report the dashboard currently shows, if any.

        Raises:
            asyncio.TimeoutError: No reply within ``chat_timeout_s``.
            LLMError: The model provider failed.
        """

        messages = [ChatMessage(role="system", content=build_chat_system_prompt(report))]
        messages += [
            ChatMessage(role="user" if m.role == "user" else "assistant", content=m.content) for m in history
        ]
        messages.append(ChatMessage(role="user", content=message))

        logger.info("Chat request", extra={"history": len(history), "has_report": report is not None})
        return await asyncio.wait_for(
            self._llm.complete(
                messages,
                temperature=self._settings.chat_temperature,
                max_tokens=self._settings.chat_max_tokens,
            ),
            self._settings.chat_timeout_s,
        )
