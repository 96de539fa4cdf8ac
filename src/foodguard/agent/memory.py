"""Per-thread conversation memory."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any


class ThreadMemory:
    """LRU store of conversation messages keyed by thread id.

    Holds the non-system messages of each finished run so a follow-up run with the same
    thread id continues the conversation. Process-local; lost on restart.
    """

    def __init__(self, max_threads: int = 256) -> None:
        """Initialize thread memory.

        Args:
            max_threads: Maximum number of threads kept; the least recently used is evicted.
        """
        self.max_threads = max_threads
        self._threads: OrderedDict[str, list[dict[str, Any]]] = OrderedDict()

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._threads

    def __len__(self) -> int:
        return len(self._threads)

    def load(self, thread_id: str) -> list[dict[str, Any]]:
        """Return a copy of the thread's messages (empty for an unknown thread)."""
        if thread_id not in self._threads:
            return []
        self._threads.move_to_end(thread_id)
        return list(self._threads[thread_id])

    def save(self, thread_id: str, messages: list[dict[str, Any]]) -> None:
        """Replace the thread's messages."""
        if thread_id in self._threads:
            self._threads.move_to_end(thread_id)
        elif len(self._threads) >= self.max_threads:
            self._threads.popitem(last=False)
        self._threads[thread_id] = [m for m in messages if m.get("role") != "system"]

    def clear(self) -> None:
        self._threads.clear()
