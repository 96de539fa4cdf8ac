"""HTTP client for the FoodGuard API.

Mirrors what the dashboard does: stream an analysis into a :class:`UIState`, run a quick
single-region analysis, and talk to the chat assistant about the latest report.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx

from foodguard.client.reassembler import Reassembler, UIState
from foodguard.events import ProgressEvent
from foodguard.logging import get_logger
from foodguard.models.report import Report

logger = get_logger(__name__)

CHAT_FAILED_REPLY = "I apologize, but I encountered an error processing your request. Please try again."
CHAT_OFFLINE_REPLY = "Error connecting to the assistant. Please check your connection and try again."


class RunInProgressError(RuntimeError):
    """A new analysis was requested while another one is still streaming."""


class DashboardClientError(RuntimeError):
    """The API answered a request with an error."""


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "Request failed"
    if isinstance(body, dict) and body.get("error"):
        detail = body.get("details") or body.get("message")
        return f"{body['error']}: {detail}" if detail else str(body["error"])
    return response.reason_phrase or "Request failed"


class DashboardClient:
    """Async client for one dashboard session.

    Args:
        base_url: API root, e.g. ``http://localhost:8000``.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        timeout_s: Read timeout; streaming runs are bounded by the server's own deadline.
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout_s: float = 90.0,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout_s)
        self.state = UIState()
        self.chat_history: list[dict[str, str]] = []
        self._running = False

    async def __aenter__(self) -> DashboardClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def running(self) -> bool:
        return self._running

    async def analyze(
        self,
        regions: list[str],
        date_range: str | None = None,
        thread_id: str | None = None,
        on_event: Callable[[ProgressEvent], None] | None = None,
    ) -> UIState:
        """Stream one analysis run into :attr:`state`.

        Connectivity and HTTP failures are recorded in the state rather than raised.

        Raises:
            RunInProgressError: Another run on this client has not finished.
        """

        if self._running:
            raise RunInProgressError("An analysis is already running")
        self._running = True
        self.state.reset()
        reassembler = Reassembler(self.state)

        body: dict[str, Any] = {"regions": regions}
        if date_range:
            body["dateRange"] = date_range
        if thread_id:
            body["threadId"] = thread_id

        try:
            async with self._http.stream("POST", "/api/analyze", json=body) as response:
                if response.is_error:
                    await response.aread()
                    reassembler.fail(f"HTTP {response.status_code}: {_error_detail(response)}")
                    return self.state
                async for chunk in response.aiter_bytes():
                    for event in reassembler.feed(chunk):
                        if on_event is not None:
                            on_event(event)
                    if reassembler.done:
                        break
        except httpx.TransportError as e:
            logger.warning("Analysis stream failed", extra={"error": str(e)})
            reassembler.fail(str(e) or "Unknown connection error")
        finally:
            reassembler.close()
            self._running = False
        return self.state

    async def quick(self, region: str) -> Report:
        """Run a synchronous single-region analysis.

        Raises:
            DashboardClientError: The API returned an error.
        """

        response = await self._http.get("/api/analyze", params={"region": region})
        if response.is_error:
            raise DashboardClientError(f"HTTP {response.status_code}: {_error_detail(response)}")
        return Report.model_validate(response.json()["report"])

    async def chat(self, message: str) -> str:
        """Ask the assistant about the current report; returns its reply.

        Failures produce an apology reply instead of raising; both turns are kept in history.
        """

        text = message.strip()
        if not text:
            raise ValueError("Message is required")

        payload: dict[str, Any] = {
            "message": text,
            "chatHistory": list(self.chat_history),
            "reportContext": self.state.report.to_wire() if self.state.report else None,
        }
        self.chat_history.append({"role": "user", "content": text})

        try:
            response = await self._http.post("/api/chat", json=payload)
        except httpx.TransportError as e:
            logger.warning("Chat request failed", extra={"error": str(e)})
            reply = CHAT_OFFLINE_REPLY
        else:
            reply = self._chat_reply(response)

        self.chat_history.append({"role": "assistant", "content": reply})
        return reply

    @staticmethod
    def _chat_reply(response: httpx.Response) -> str:
        if response.is_error:
            logger.warning("Chat API error", extra={"status": response.status_code})
            return CHAT_FAILED_REPLY
        try:
            data = response.json()
        except ValueError:
            return CHAT_FAILED_REPLY
        if isinstance(data, dict) and data.get("success") and isinstance(data.get("response"), str):
            return data["response"]
        return CHAT_FAILED_REPLY
