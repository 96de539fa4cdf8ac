"""Logging utilities.

Every record is stamped with the analysis run it belongs to (the thread id), the current
step of the reasoning loop and, while a data tool is executing, the tool name.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from dataclasses import dataclass, replace
from typing import Any, Iterator

from rich.logging import RichHandler


@dataclass(frozen=True)
class LogContext:
    """Run context attached to log records."""

    run_id: str = "-"
    step: str = "-"
    tool: str = "-"


_context_var: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "foodguard_log_context", default=LogContext()
)

# Third-party loggers that are chatty at INFO (one line per HTTP request).
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "uvicorn.access")


class _ContextFilter(logging.Filter):
    """Inject run context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        ctx = _context_var.get()
        record.run_id = ctx.run_id  # type: ignore[attr-defined]
        record.step = ctx.step  # type: ignore[attr-defined]
        record.tool = ctx.tool  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def run_context(*, run_id: str, step: str | None = None) -> Iterator[LogContext]:
    """Bind an analysis run to all log records emitted inside the block.

    Args:
        run_id: Run identifier (the analysis thread id).
        step: Optional initial step label.
    """

    ctx = LogContext(run_id=run_id, step=step or "-")
    token = _context_var.set(ctx)
    try:
        yield ctx
    finally:
        _context_var.reset(token)


@contextlib.contextmanager
def tool_context(tool: str) -> Iterator[None]:
    """Bind the executing tool name for the duration of the block."""

    token = _context_var.set(replace(_context_var.get(), tool=tool))
    try:
        yield
    finally:
        _context_var.reset(token)


def set_step(step: str) -> None:
    """Update the current step label."""

    _context_var.set(replace(_context_var.get(), step=step))


def current_context() -> LogContext:
    """Return the context bound to the running task."""

    return _context_var.get()


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Logging level name.
    """

    handler = RichHandler(rich_tracebacks=True, show_time=False, show_level=True)
    handler.addFilter(_ContextFilter())
    handler.setFormatter(
        logging.Formatter(fmt="run=%(run_id)s step=%(step)s tool=%(tool)s %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.setLevel(level.upper())
    # configure_logging runs once per process for the server but repeatedly in tests
    root.handlers = [h for h in root.handlers if not isinstance(h, RichHandler)]
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log an exception with optional structured context."""

    if context:
        logger.exception("%s | context=%s", msg, context)
    else:
        logger.exception("%s", msg)
