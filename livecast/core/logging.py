"""Structured logging for livecast.

structlog renders every record, including those from stdlib loggers such as
uvicorn's, so stream lifecycle events and HTTP access share one format:
- Console: colored key/value in a terminal, JSON otherwise when configured
- File: always JSON, rotated by size
- Context: request_id, trace_id and subscriber_id from contextvars
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from structlog.types import EventDict, Processor


if TYPE_CHECKING:
    from livecast.config.settings import Settings

from livecast.core.context import get_context


# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error", "watchfiles.main")


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add request and subscriber context to log events."""
    for key, value in get_context().items():
        event_dict.setdefault(key, value)
    return event_dict


def add_app_info_processor(app_name: str, environment: str) -> Processor:
    """Create a processor that tags log events with app name and environment."""

    def processor(
        logger: logging.Logger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["app"] = app_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def build_shared_processors(settings: "Settings") -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        add_app_info_processor(settings.app_name, settings.environment),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )

    return processors


def _formatter(
    renderer: Processor, pre_chain: list[Processor]
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=pre_chain,
    )


def setup_file_handler(
    log_path: Path,
    max_bytes: int,
    backup_count: int,
    level: int,
) -> RotatingFileHandler:
    """Create a size-rotated file handler, creating the directory if needed.

    Args:
        log_path: Full path of the active log file.
        max_bytes: Rotate once the file reaches this size.
        backup_count: Rotated files to keep.
        level: Minimum level written to the file.
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def configure_structlog(
    settings: "Settings",
    log_dir: Path | str | None = None,
) -> None:
    """Route structlog and stdlib logging through the same handlers.

    Safe to call more than once; each call replaces the root handlers, so
    every application instance created in a test run logs with its own
    settings.

    Args:
        settings: Application settings.
        log_dir: Directory for the JSON log file. Defaults to settings.log_dir.
    """
    level = logging.getLevelName(settings.log_level)
    shared = build_shared_processors(settings)

    if settings.log_format == "json":
        console_renderer: Processor = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(_formatter(console_renderer, shared))

    handlers: list[logging.Handler] = [console_handler]

    if settings.log_to_file:
        file_handler = setup_file_handler(
            log_path=Path(log_dir or settings.log_dir) / f"{settings.app_name}.log",
            max_bytes=settings.log_file_max_bytes,
            backup_count=settings.log_file_backup_count,
            level=level,
        )
        file_handler.setFormatter(
            _formatter(
                structlog.processors.JSONRenderer(),
                [*shared, structlog.processors.format_exc_info],
            )
        )
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(level)

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, usually with ``__name__``."""
    return structlog.get_logger(name)
