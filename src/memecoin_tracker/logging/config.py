# -*- coding: utf-8 -*-
"""structlog setup: stdlib handlers, optional Logfire export, service context on every event."""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import logfire
import structlog
from structlog.types import EventDict, Processor

from memecoin_tracker.config import get_settings

if TYPE_CHECKING:
    from memecoin_tracker.config import LoggingSettings, Settings

LOG_LEVEL_TO_LOGFIRE: dict[str, str] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
}


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _service_context(settings: Settings) -> Processor:
    """Processor adding logger, app_name, service and environment fields."""
    app = settings.app
    static: dict[str, Any] = {"app_name": app.app_name, "environment": app.environment}
    if app.service_name:
        static["service_name"] = app.service_name
    if app.service_version:
        static["service_version"] = app.service_version

    def add_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        stdlib_logger = getattr(logger, "_logger", None)
        event_dict["logger"] = getattr(stdlib_logger, "name", None) or getattr(logger, "name", "") or ""
        for key, value in static.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_context


def _build_handlers(logging_settings: LoggingSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if logging_settings.log_to_console:
        console = logging.StreamHandler()
        console.setLevel(_level(logging_settings.console_level))
        handlers.append(console)
    if logging_settings.log_to_file:
        path = Path(logging_settings.log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = TimedRotatingFileHandler(
            path,
            when=logging_settings.log_file_when,
            interval=logging_settings.log_file_interval,
            backupCount=logging_settings.log_file_backup_count,
            encoding="utf-8",
            utc=logging_settings.log_file_utc,
        )
        rotating.setLevel(_level(logging_settings.file_level))
        handlers.append(rotating)
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def _processors(settings: Settings, *, render: bool) -> list[Processor]:
    logging_settings = settings.logging
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(settings),
    ]
    if logging_settings.logfire_enabled:
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]
    if render:
        # The rotating file is parsed by log shippers, so it is always JSON
        if logging_settings.log_to_file or logging_settings.json_format:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure stdlib handlers, Logfire (when enabled) and structlog. Call once at startup."""
    settings = settings or get_settings()
    logging_settings = settings.logging

    handlers = _build_handlers(logging_settings)
    if handlers:
        logging.basicConfig(level=min(h.level for h in handlers), handlers=handlers, force=True)
    for name in logging_settings.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    if logging_settings.logfire_enabled:
        logfire.configure(
            token=logging_settings.logfire_token,
            service_name=settings.app.service_name or settings.app.app_name,
            service_version=settings.app.service_version,
            min_level=LOG_LEVEL_TO_LOGFIRE.get(logging_settings.logfire_level, "info"),  # type: ignore[arg-type]
            environment=settings.app.environment,
        )

    structlog.configure(
        processors=_processors(settings, render=bool(handlers)),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
