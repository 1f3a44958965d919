"""
structlog setup shared by the CLI and the API server.

Every event carries the deployment environment; events emitted while
serving a request also carry its request id (see request_context).
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Provider SDKs and the HTTP stack log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google", "uvicorn.access")


def environment_tagger(app_env: str) -> Processor:
    """Processor stamping `env` on every event that does not set it."""

    def tag(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("env", app_env)
        return event_dict

    return tag


def build_processors(json_output: bool, app_env: str) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        environment_tagger(app_env),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        # Korean titles stay readable in log aggregators
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def setup_logging(level: str = "INFO", json_output: bool = False, app_env: str = "development") -> None:
    """
    Configure structlog for the CLI or the server.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        json_output: Render one JSON object per line instead of console output
        app_env: Environment name stamped on every event
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(json_output, app_env),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Logger bound to the calling module's name."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger


@contextmanager
def request_context(**values) -> Iterator[None]:
    """Attach values (e.g. request_id) to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
