"""
Configures structured logging for the application using structlog.
"""
from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List

import structlog

if TYPE_CHECKING:
    from articleflow.config.config import MonitoringConfig


def add_ingestion_id(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Copies the ingestion_id bound for the current call onto every record."""
    ctx = structlog.contextvars.get_contextvars()
    if "ingestion_id" in ctx:
        event_dict.setdefault("ingestion_id", ctx["ingestion_id"])
    return event_dict


@contextmanager
def ingestion_context(url: str) -> Iterator[str]:
    """
    Binds a fresh ``ingestion_id`` and the requested URL into the structlog
    context for the duration of one ingestion call.
    """
    ingestion_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(ingestion_id=ingestion_id, requested_url=url):
        yield ingestion_id


def configure_logging(config: MonitoringConfig) -> None:
    """
    Sets up structlog to handle all logging for the application.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_ingestion_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    log_renderer: Any
    if config.log_file:
        # JSON lines for file output
        log_renderer = structlog.processors.JSONRenderer()
        handler: logging.Handler = logging.FileHandler(config.log_file)
    else:
        log_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=log_renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(config.log_level.upper())

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("articleflow.logging")
    logger.debug("Logging configured", level=config.log_level, output=config.log_file or "stderr")
