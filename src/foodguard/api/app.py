"""FastAPI app: streaming analysis, quick analysis and chat endpoints."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from foodguard.agent.loop import OpenAIReasoningLoop
from foodguard.agent.memory import ThreadMemory
from foodguard.agent.steps import ReasoningLoop
from foodguard.chat import ChatAssistant
from foodguard.config import Settings, load_settings
from foodguard.events import ErrorEvent, ProgressEvent
from foodguard.llm.client import ChatMessage, LLMClient
from foodguard.logging import configure_logging, get_logger, log_exception
from foodguard.models.report import Report
from foodguard.orchestrator.runner import (
    AnalysisRequest,
    AnalysisTimeoutError,
    run_quick_analysis,
    stream_analysis,
)
from foodguard.regions import DASHBOARD_REGIONS, DEFAULT_SELECTION, DISTRICTS, PROVINCES
from foodguard.streaming.framing import SSE_HEADERS, encode_frame
from foodguard.tools import build_http_client, build_registry

logger = get_logger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(_CamelModel):
    """Streaming analysis request."""

    regions: list[str] | None = None
    date_range: str | None = None
    thread_id: str | None = None


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatRequest(_CamelModel):
    """Chat request."""

    message: str = ""
    chat_history: list[ChatTurn] = Field(default_factory=list)
    report_context: Report | None = None


class _Services:
    """Lazily built model-backed services.

    The app starts without an API key; endpoints that need the model fail at request time.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        loop: ReasoningLoop | None = None,
        assistant: ChatAssistant | None = None,
    ) -> None:
        self._settings = settings
        self._loop = loop
        self._assistant = assistant
        self._llm: LLMClient | None = None
        self._http: httpx.Client | None = None

    def _get_llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient(self._settings)
        return self._llm

    def loop(self) -> ReasoningLoop:
        if self._loop is None:
            llm = self._get_llm()
            self._http = build_http_client(self._settings)
            registry = build_registry(self._settings, http_client=self._http)
            self._loop = OpenAIReasoningLoop(
                llm, registry, self._settings, ThreadMemory(self._settings.memory_max_threads)
            )
        return self._loop

    def assistant(self) -> ChatAssistant:
        if self._assistant is None:
            self._assistant = ChatAssistant(self._get_llm(), self._settings)
        return self._assistant

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None


def create_app(
    settings: Settings | None = None,
    *,
    loop: ReasoningLoop | None = None,
    assistant: ChatAssistant | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Settings; loaded from the environment if omitted.
        loop: Reasoning loop to use instead of the OpenAI-backed one.
        assistant: Chat assistant to use instead of the OpenAI-backed one.
    """

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    services = _Services(settings, loop=loop, assistant=assistant)

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        services.close()

    app = FastAPI(title="FoodGuard", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/regions")
    def regions() -> dict[str, Any]:
        return {
            "dashboard": list(DASHBOARD_REGIONS),
            "defaultSelection": list(DEFAULT_SELECTION),
            "districts": [loc.name for loc in DISTRICTS.values()],
            "provinces": [loc.name for loc in PROVINCES.values()],
        }

    @app.post("/api/analyze")
    async def analyze(req: AnalyzeRequest, request: Request) -> Any:
        region_list = [r.strip() for r in (req.regions or []) if r.strip()]
        if not region_list:
            return JSONResponse({"error": "At least one region required"}, status_code=400)

        try:
            extra = {"thread_id": req.thread_id} if req.thread_id else {}
            run = AnalysisRequest(regions=region_list, date_range=req.date_range, **extra)
            events = stream_analysis(run, services.loop(), settings)
        except Exception as e:
            log_exception(logger, "Failed to start analysis", regions=region_list)
            return JSONResponse({"error": "Internal server error", "details": str(e)}, status_code=500)

        logger.info("API analysis requested", extra={"regions": region_list, "thread_id": run.thread_id})

        async def frames() -> AsyncGenerator[bytes, None]:
            async with contextlib.aclosing(events) as stream:
                try:
                    async for event in stream:
                        if await request.is_disconnected():
                            logger.info("Client disconnected", extra={"thread_id": run.thread_id})
                            return
                        yield encode_frame(event)
                except Exception as e:
                    log_exception(logger, "Analysis stream failed", thread_id=run.thread_id)
                    failure: ProgressEvent = ErrorEvent(message=str(e) or "Analysis failed")
                    yield encode_frame(failure)

        return StreamingResponse(frames(), headers=SSE_HEADERS, media_type="text/event-stream")

    @app.get("/api/analyze")
    async def quick_analyze(region: str | None = None) -> Any:
        if not region or not region.strip():
            return JSONResponse({"error": "Region required"}, status_code=400)

        try:
            report = await run_quick_analysis(region.strip(), services.loop(), settings)
        except AnalysisTimeoutError as e:
            logger.warning("Quick analysis timed out", extra={"region": region})
            return JSONResponse({"error": "Failed to analyze region", "details": str(e)}, status_code=504)
        except Exception as e:
            log_exception(logger, "Quick analysis failed", region=region)
            return JSONResponse({"error": "Failed to analyze region", "details": str(e)}, status_code=500)

        return {"report": report.to_wire(), "success": True}

    @app.post("/api/chat")
    async def chat(req: ChatRequest) -> Any:
        message = req.message.strip()
        if not message:
            return JSONResponse({"error": "Message is required", "success": False}, status_code=400)

        history = [
            ChatMessage(role="user" if t.role == "user" else "assistant", content=t.content)
            for t in req.chat_history
        ]
        try:
            response = await services.assistant().reply(message, history, req.report_context)
        except TimeoutError:
            logger.warning("Chat timed out")
            return JSONResponse(
                {
                    "error": "Failed to generate response",
                    "message": f"Chat timed out after {settings.chat_timeout_s:g} seconds",
                    "success": False,
                },
                status_code=500,
            )
        except Exception as e:
            log_exception(logger, "Chat failed")
            return JSONResponse(
                {"error": "Failed to generate response", "message": str(e) or "Unknown error", "success": False},
                status_code=500,
            )

        return {"response": response, "success": True}

    return app
