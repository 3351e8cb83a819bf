"""structlog configuration for lineagectl.

Two output modes, both on stderr so stdout stays clean for piped JSON:
- Human (default): console renderer, colored when stderr is a TTY
- JSON (--log-json): one structured JSON object per line
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers that are chatty at DEBUG and never useful to users.
_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "asyncio")


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output for lineagectl loggers.
        quiet: Only report errors. Ignored when *verbose* is set.
        log_json: Use JSON renderer instead of console renderer.
    """
    if verbose:
        app_level = logging.DEBUG
    elif quiet:
        app_level = logging.ERROR
    else:
        app_level = logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

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
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("lineagectl").setLevel(app_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
