"""
Configures structured logging for the application using structlog.
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Dict, List

import structlog

if TYPE_CHECKING:
    from docdedup.config.config import MonitoringConfig

# Event keys holding hex digests; full values are noise in log output
DIGEST_KEYS = ("checksum", "fingerprint", "url_hash")
DIGEST_PREFIX_LENGTH = 16

# Libraries that log every statement at DEBUG
QUIET_LOGGERS = ("aiosqlite",)


# --- Custom Processors ---


def shorten_digests(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    """
    Truncates document digests to a recognisable prefix.

    Callers log full checksums; the prefix is enough to correlate a record
    with a row in the document store.
    """
    for key in DIGEST_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > DIGEST_PREFIX_LENGTH:
            event_dict[key] = value[:DIGEST_PREFIX_LENGTH]
    return event_dict


def add_batch_context(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    """
    Adds the pipeline run_id and batch number bound by ContentDeduplicator.

    Both are bound only while a multi-batch run is in progress.
    """
    from structlog.contextvars import get_contextvars

    ctx = get_contextvars()
    for key in ("run_id", "batch"):
        if key in ctx:
            event_dict.setdefault(key, ctx[key])
    return event_dict


# --- Configuration ---


def configure_logging(config: MonitoringConfig) -> None:
    """
    Sets up structlog to handle all logging for the application.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_batch_context,
        shorten_digests,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    log_renderer: Any
    if config.log_file:
        # Structured JSON logging for file output
        log_renderer = structlog.processors.JSONRenderer()
        handler: logging.Handler = logging.FileHandler(config.log_file)
    else:
        log_renderer = structlog.dev.ConsoleRenderer(colors=False)
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=log_renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    logging.basicConfig(
        format="%(message)s",
        level=config.log_level.upper(),
        handlers=[handler],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("docdedup.logging")
    logger.info("Logging configured", level=config.log_level, output=config.log_file or "console")
