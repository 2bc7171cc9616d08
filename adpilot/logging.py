import logging
import sys
from typing import Any, Literal

import structlog

type LogFormat = Literal["console", "json"]

# Per-turn fields bound with structlog.contextvars (user_id) ride along on every line
shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%H:%M:%S"),
]

NOISY_LOGGERS = ("LiteLLM", "httpx", "httpcore", "google_genai", "aiohttp.access")


def renderer_for(fmt: LogFormat):
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(level: str = "INFO", fmt: LogFormat = "console"):
    structlog.configure(
        processors=[*shared_processors, structlog.processors.format_exc_info, renderer_for(fmt)],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelNamesMapping()[level.upper()]),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    return structlog.get_logger(name or "adpilot")


def uvicorn_log_config(level: str = "INFO", fmt: LogFormat = "console") -> dict[str, Any]:
    """dictConfig for uvicorn's stdlib loggers, rendered like our own lines."""
    formatter = {
        "()": structlog.stdlib.ProcessorFormatter,
        "processor": renderer_for(fmt),
        "foreign_pre_chain": shared_processors,
    }
    stream = {"class": "logging.StreamHandler", "stream": "ext://sys.stderr"}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {"default": {"formatter": "default", **stream}},
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": level.upper(), "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }
