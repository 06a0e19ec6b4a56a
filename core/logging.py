# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across workers and the aggregator
# CREATED: 18 OCT 2026
# ============================================================================
"""
Structured Logging

Provides human-readable or JSON-formatted logging for the load harness.

Features:
- Contextual fields (job_id, worker_id, parameter, iteration, dispatch_id)
- Per-task context: the context stack lives in a ContextVar, so every
  asyncio task spawned by the worker pool sees only its own fields
- JSON output for log aggregation
- Named checkpoints for run milestones

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger("harness.main")

    with log_context(worker_id="w-3", parameter="1"):
        logger.info("Dispatching")
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass(frozen=True)
class LogContext:
    """
    Fields attached to every record logged inside a log_context() block.

    Immutable; a nested block copies its parent and overrides fields.
    """
    job_id: Optional[str] = None
    worker_id: Optional[str] = None
    parameter: Optional[str] = None
    iteration: Optional[int] = None
    dispatch_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, with `extra` flattened in."""
        data = {k: v for k, v in asdict(self).items() if v is not None and k != "extra"}
        data.update(self.extra)
        return data


_FIELD_NAMES = frozenset(f.name for f in fields(LogContext)) - {"extra"}

_context_stack: ContextVar[Tuple[LogContext, ...]] = ContextVar(
    "harness_log_context", default=()
)


def get_current_context() -> LogContext:
    """Innermost context of the current task, or an empty one."""
    stack = _context_stack.get()
    return stack[-1] if stack else LogContext()


@contextmanager
def log_context(extra: Optional[Dict[str, Any]] = None, **kwargs):
    """
    Push logging context for the duration of the block.

    Args:
        extra: Free-form fields merged into the parent's extra
        **kwargs: LogContext fields to override

    Example:
        with log_context(worker_id="w-1", dispatch_id="sleeper/dispatch-123"):
            logger.info("Polling")
    """
    unknown = set(kwargs) - _FIELD_NAMES
    if unknown:
        raise TypeError(f"unknown log context fields: {sorted(unknown)}")

    parent = get_current_context()
    merged_extra = {**parent.extra, **(extra or {})}
    current = replace(parent, extra=merged_extra, **kwargs)

    token = _context_stack.set(_context_stack.get() + (current,))
    try:
        yield current
    finally:
        _context_stack.reset(token)


# ============================================================================
# FORMATTERS
# ============================================================================

class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context = get_current_context().to_dict()
            if context:
                entry["context"] = context

        data = getattr(record, "extra", None)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    Single-line format for terminals.

    2026-10-18 12:00:00 INFO     harness.poller [worker=w-1, iter=0]: ...
    """

    _INLINE = (("worker_id", "worker"), ("iteration", "iter"), ("dispatch_id", "dispatch"))

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        context = get_current_context()
        parts = [
            f"{label}={getattr(context, name)}"
            for name, label in self._INLINE
            if getattr(context, name) is not None
        ]
        where = f" [{', '.join(parts)}]" if parts else ""

        line = f"{stamp} {record.levelname:<8} {record.name}{where}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that copies the current LogContext onto each record.

    The fields land on `record.extra`, which StructuredFormatter emits
    under "data".
    """

    def process(self, msg, kwargs):
        data = dict(kwargs.get("extra") or {})
        data.update(get_current_context().to_dict())
        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger (e.g., get_logger("harness.main"))."""
    return ContextLogger(logging.getLogger(name), {})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
) -> None:
    """
    Install one stdout handler on the root logger.

    Args:
        level: Log level name or number
        json_output: JSON lines instead of the human format
            (HARNESS_LOG_FORMAT=json forces it)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if json_output or os.getenv("HARNESS_LOG_FORMAT", "").lower() == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = HumanFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO; one line per poll tick is noise
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


# ============================================================================
# CHECKPOINTS
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log a named run milestone (job_registered, pool_started, pool_drained,
    cancel_requested) with the current job and worker, if any.
    """
    payload: Dict[str, Any] = {"checkpoint": name}

    context = get_current_context()
    for key in ("job_id", "worker_id"):
        value = getattr(context, key)
        if value:
            payload[key] = value
    if data:
        payload["data"] = data

    logging.getLogger("checkpoint").info(f"CHECKPOINT: {name}", extra={"extra": payload})


__all__ = [
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
