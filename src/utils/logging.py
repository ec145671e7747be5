"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, timestamps, stack info)
feeds either a coloured console renderer for local runs or a JSON renderer
for production.  ``APP_ENV=production`` or ``json_output=True`` selects JSON.

Standard-library ``logging`` is routed through the same formatter so that
httpx, uvicorn and the provider SDKs log in the same shape as our own events.
The CLI can pass ``stream=sys.stderr`` to keep stdout clean for its output.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output.  When False, JSON is still used if
                     ``APP_ENV`` is ``production``.
        stream: Output stream, defaults to stdout.

    Returns:
        A configured structlog BoundLogger.
    """
    # Dual-renderer selection: APP_ENV=production (or json_output) means
    # machine-readable JSON; anything else is the human-readable console.
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    out = stream or sys.stdout

    # Shared processor chain, run regardless of the output format.
    # contextvars first so request-scoped bindings are merged before rendering.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,  # Merge request-scoped context bindings
        structlog.processors.add_log_level,        # Inject "level" key
        structlog.processors.StackInfoRenderer(),  # Render stack_info if present
        structlog.dev.set_exc_info,                # Auto-attach exc_info on error()
        structlog.processors.TimeStamper(fmt="iso"),  # ISO-8601 timestamps
    ]

    # The final renderer is the only processor that differs between modes.
    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        # Drops messages below log_level before any processor runs.
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    # Bridge stdlib logging through the same pipeline so httpx, uvicorn and
    # the SDKs produce identical output.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )
    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()  # Remove default handlers to avoid duplicates
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with ``logger_name``.

    Configures logging with defaults on first use if nothing else has.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
