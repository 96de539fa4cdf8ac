"""Analysis run orchestration.

Streaming runs open with two status milestones, then forward the encoder's events over the
reasoning loop's steps under a whole-run deadline. Quick runs drive the loop to completion and
return the report directly.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
import uuid
from dataclasses import dataclass, field
from typing import AsyncIterator

from foodguard.agent.steps import ReasoningLoop, Step, run_to_completion
from foodguard.config import Settings
from foodguard.events import ProgressEvent, StatusEvent, is_terminal
from foodguard.llm.client import ChatMessage
from foodguard.logging import get_logger, run_context
from foodguard.models.report import Report
from foodguard.prompts import analysis_user_prompt, quick_user_prompt
from foodguard.streaming.encoder import EventEncoder

logger = get_logger(__name__)

INITIALIZING_MESSAGE = "INITIALIZING FOODGUARD AI ANALYSIS SYSTEM"


class AnalysisTimeoutError(TimeoutError):
    """An analysis run exceeded its wall-clock limit."""


@dataclass(frozen=True)
class AnalysisRequest:
    """A streaming analysis request."""

    regions: list[str]
    date_range: str | None = None
    thread_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if not self.regions:
            raise ValueError("At least one region required")


def analyzing_message(regions: list[str]) -> str:
    return f"ANALYZING {len(regions)} REGION(S): {', '.join(regions).upper()}"


async def _with_deadline(steps: AsyncIterator[Step], timeout_s: float) -> AsyncIterator[Step]:
    """Re-yield steps, raising :class:`AnalysisTimeoutError` once ``timeout_s`` has elapsed."""

    deadline = time.monotonic() + timeout_s
    async with contextlib.aclosing(steps):
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise AnalysisTimeoutError(f"Analysis timed out after {timeout_s:g} seconds")
            try:
                step = await asyncio.wait_for(steps.__anext__(), remaining)
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError as e:
                raise AnalysisTimeoutError(f"Analysis timed out after {timeout_s:g} seconds") from e
            yield step


async def stream_analysis(
    request: AnalysisRequest,
    loop: ReasoningLoop,
    settings: Settings,
) -> AsyncIterator[ProgressEvent]:
    """Yield the progress events of one streaming analysis run.

    The sequence always ends with exactly one ``complete`` or ``error`` event.
    """

    with run_context(run_id=request.thread_id, step="init"):
        date_range = request.date_range or settings.default_date_range
        logger.info("Analysis run started", extra={"regions": request.regions, "date_range": date_range})

        yield StatusEvent(message=INITIALIZING_MESSAGE)
        yield StatusEvent(message=analyzing_message(request.regions))

        conversation = [ChatMessage(role="user", content=analysis_user_prompt(request.regions, date_range))]
        steps = _with_deadline(loop.stream(conversation, thread_id=request.thread_id), settings.stream_timeout_s)
        encoder = EventEncoder()

        async with contextlib.aclosing(encoder.encode(steps)) as events:
            async for event in events:
                yield event
                if is_terminal(event):
                    logger.info("Analysis run finished", extra={"outcome": event.type})
                    return


async def run_quick_analysis(region: str, loop: ReasoningLoop, settings: Settings) -> Report:
    """Run a single-region analysis to completion.

    Raises:
        AnalysisTimeoutError: The run exceeded ``quick_timeout_s``.
        ReasoningLoopError: The loop failed or ended without a report.
        LLMError: The model provider failed.
    """

    thread_id = str(uuid.uuid4())
    with run_context(run_id=thread_id, step="quick"):
        logger.info("Quick analysis started", extra={"region": region})
        conversation = [ChatMessage(role="user", content=quick_user_prompt(region))]
        try:
            return await asyncio.wait_for(
                run_to_completion(loop, conversation, thread_id=thread_id),
                settings.quick_timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise AnalysisTimeoutError(
                f"Quick analysis timed out after {settings.quick_timeout_s:g} seconds"
            ) from e
