"""Logging configuration."""
import datetime
import inspect
import json
import logging
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor

STDERR_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
IGNORED_LOGGERS = [
    "aiohttp",
    "asyncio",
]


def add_timestamp(_, __, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to the event dict."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def add_caller_info(logger: Any, name: str, event_dict: EventDict) -> EventDict:
    """Add caller info to the event dict."""
    frame = inspect.currentframe()
    if frame is not None:
        caller = frame.f_back
        while caller and (
            "structlog" in caller.f_code.co_filename
            or caller.f_code.co_filename.endswith("logging/__init__.py")
        ):
            caller = caller.f_back
        if caller:
            event_dict.update({
                "module": caller.f_code.co_name,
                "line": caller.f_lineno,
                "file": caller.f_code.co_filename.split("/")[-1]
            })
    return event_dict


def level_filter(logger: Any, name: str, event_dict: EventDict) -> EventDict:
    """Drop events below the stderr level or from ignored loggers."""
    logger_name = getattr(logger, "name", "") or ""
    if any(ignored in logger_name for ignored in IGNORED_LOGGERS):
        raise structlog.DropEvent
    level_no = getattr(logging, name.upper(), logging.NOTSET)
    if level_no < getattr(logging, STDERR_LOG_LEVEL):
        raise structlog.DropEvent
    return event_dict


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""

    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
            **{k: v for k, v in event_dict.items() if k in ("module", "line", "file")}
        }
        if other := {k: v for k, v in event_dict.items() if k not in ("module", "line", "file")}:
            items["data"] = other
        return json.dumps(items, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the package.

    Interactive terminals get the colored console renderer, anything else
    (CI logs, files, pipes) gets one compact JSON object per line.
    """
    global STDERR_LOG_LEVEL
    if level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")
    STDERR_LOG_LEVEL = level.upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, STDERR_LOG_LEVEL)
    )

    json_processors: List[Processor] = [
        level_filter,
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_caller_info,
        CompactJSONRenderer()
    ]

    console_processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True)
    ]

    structlog.configure(
        processors=console_processors if sys.stderr.isatty() else json_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
