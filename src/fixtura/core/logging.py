# src/fixtura/core/logging.py
"""Route engine events and host-runner stdlib logging through one structlog formatter."""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from fixtura.core.config import LoggingSettings

# Pulled in by typical fixture factories (browser drivers, HTTP clients)
_NOISY_LOGGERS: tuple[str, ...] = (
    "asyncio",
    "urllib3",
    "httpx",
    "httpcore",
    "websockets",
)


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install a single root handler rendering console lines or JSON.

    Args:
        settings: Level and output format; defaults to INFO console output
    """
    settings = settings if settings is not None else LoggingSettings()
    log_level = logging.getLevelNamesMapping()[settings.level]

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderers: list[Any] = (
        [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        if settings.json_output
        else [structlog.dev.ConsoleRenderer()]
    )

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processors=[ProcessorFormatter.remove_processors_meta, *renderers],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))
