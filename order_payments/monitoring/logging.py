"""
Structured logging configuration.

Production emits one JSON document per line for the log shipper; every other
environment gets structlog's coloured console output. Both carry the order
number and gateway as fields on each event.
"""
import logging
import sys
from typing import Any, List

import structlog
from pythonjsonlogger import jsonlogger

from order_payments.config import Settings, get_settings

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg")


def add_app_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp every event with the application name and environment."""
    settings = get_settings()
    event_dict.setdefault("app_name", settings.app_name)
    event_dict.setdefault("app_env", settings.app_env)
    return event_dict


def _processors(settings: Settings) -> List[Any]:
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]
    if settings.is_production:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def _handler(settings: Settings) -> logging.Handler:
    """Stdout handler for records coming from non-structlog libraries."""
    handler = logging.StreamHandler(sys.stdout)
    if settings.is_production:
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={
                    "asctime": "@timestamp",
                    "levelname": "level",
                    "name": "logger",
                },
            )
        )
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        settings: Settings to configure from (defaults to the cached ones)
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers[:] = [_handler(settings)]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "logging_configured",
        log_level=settings.log_level,
        app_env=settings.app_env,
        json_output=settings.is_production,
    )
