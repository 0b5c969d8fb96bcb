"""structlog configuration for formgate.

formgate is embedded in other applications, so its output is routed through a
handler on the ``formgate`` logger only; the host's root logger is untouched.

Two output modes, picked from :class:`FormgateSettings`:
- Console (default): human-readable lines to stderr
- JSON (``log_json``): one JSON object per line, tracebacks as dicts
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from formgate.config.settings import FormgateSettings

ENGINE_LOGGER = "formgate"

# HTTP client libraries log every request at DEBUG.
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

_HANDLER_MARKER = "_formgate_handler"


def _renderer(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(
    settings: FormgateSettings | None = None,
    *,
    verbose: bool | None = None,
    log_json: bool | None = None,
) -> logging.Handler:
    """Route formgate's structured logs to stderr and return the handler.

    Args:
        settings: Source of the ``verbose`` and ``log_json`` flags.
        verbose: Overrides ``settings.verbose``; DEBUG instead of WARNING.
        log_json: Overrides ``settings.log_json``.

    Calling it again replaces the handler installed by the previous call.
    """
    if verbose is None:
        verbose = settings.verbose if settings is not None else False
    if log_json is None:
        log_json = settings.log_json if settings is not None else False

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer(log_json),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_MARKER, True)

    engine_logger = logging.getLogger(ENGINE_LOGGER)
    engine_logger.handlers = [
        h for h in engine_logger.handlers if not getattr(h, _HANDLER_MARKER, False)
    ]
    engine_logger.addHandler(handler)
    engine_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    engine_logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
