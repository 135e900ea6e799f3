"""structlog pipeline shared by continuum and the libraries it drives.

``main.py`` configures logfire (token from LOGFIRE_TOKEN); every event
passes through ``logfire.StructlogProcessor`` before it is rendered, so
invocation logs reach logfire when a token is present and the console
either way.
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger
from structlog.typing import FilteringBoundLogger


def add_error_type(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
    """Name the exception class when an ``error=`` field was passed."""
    error = event_dict.get("error")
    if isinstance(error, BaseException):
        event_dict["error_type"] = type(error).__name__
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[CallsiteParameter.MODULE, CallsiteParameter.FUNC_NAME, CallsiteParameter.LINENO]
        ),
        add_error_type,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]


def setup_logging(level: int | str = logging.INFO, colors: bool = True) -> None:
    """Route structlog and stdlib logging (uvicorn, neo4j, apscheduler) through one renderer."""
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    shared = _shared_processors()
    renderer = structlog.dev.ConsoleRenderer(colors=colors)

    structlog.configure(
        processors=[*shared, logfire.StructlogProcessor(), renderer],
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    # The scheduler logs every job execution at INFO
    logging.getLogger("apscheduler.executors").setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    return structlog.get_logger(name)
