"""Structured logging setup.

Every module obtains its logger via :func:`get_logger` and logs
snake_case event names with keyword context::

    log = get_logger(__name__)
    log.info("order_filled", order_id=order.order_id, price=price)
"""

from __future__ import annotations

import logging
import sys

import structlog

from config.settings import Settings, get_settings


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog on top of the stdlib ``logging`` module.

    Args:
        level: Minimum level name (``"DEBUG"``, ``"INFO"``, ...).
        json_output: Render one JSON object per line instead of the
            human-readable console format.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Apply ``SIM_LOG_LEVEL`` / ``SIM_LOG_JSON`` from *settings*."""
    cfg = settings or get_settings()
    configure_logging(cfg.sim_log_level, json_output=cfg.sim_log_json)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a module-level structured logger."""
    return structlog.get_logger(name)
