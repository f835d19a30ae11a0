"""Structured logging configuration — structlog over stdlib logging, on stderr."""

from __future__ import annotations

import logging
import logging.config
import sys

import structlog

from dotnet_bugreport.config import Settings


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(settings: Settings | None = None, *, verbose: bool = False) -> None:
    """Configure structlog and stdlib logging for one CLI run.

    Logs go to stderr so they never interleave with the summary line on
    stdout. ``verbose`` forces DEBUG regardless of BUGREPORT_LOG_LEVEL.
    """
    settings = settings or Settings.from_env()
    log_level = "DEBUG" if verbose else settings.log_level
    shared = _shared_processors()

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "bugreport": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(settings.log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "bugreport",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": {"dotnet_bugreport": {"level": log_level}},
        }
    )
    structlog.get_logger("dotnet_bugreport.logging").debug(
        "logging.configured", level=log_level, format=settings.log_format
    )
